# foodstore/models/item.py
from datetime import datetime
from typing import List, Optional

from foodstore.models.base import ObjectIdStr, Record


class Item(Record):
    name: str
    locationId: ObjectIdStr
    upc: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    unit: str = "ea"
    caseSize: Optional[float] = None
    expiresAt: Optional[datetime] = None
    shelfLifeDays: Optional[float] = None
    allergens: Optional[List[str]] = None
    isActive: bool = True
    note: Optional[str] = None
