# foodstore/models/inventory.py
from datetime import datetime
from typing import Optional

from foodstore.models.base import ObjectIdStr, Record


class InventoryLot(Record):
    itemId: ObjectIdStr
    locationId: ObjectIdStr
    qtyOnHand: float
    unit: str = "ea"
    lotCode: Optional[str] = None
    expiresAt: Optional[datetime] = None
    receivedAt: Optional[datetime] = None
    note: Optional[str] = None
