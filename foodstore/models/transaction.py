# foodstore/models/transaction.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

from foodstore.models.base import ObjectIdStr, Record


class TransactionRef(BaseModel):
    model: str
    id: ObjectIdStr


class StockTransaction(Record):
    type: Literal["IN", "OUT", "MOVE", "ADJUST"]
    reason: Optional[Literal["donation", "distribution", "damage", "count", "correction", "other"]] = None
    itemId: ObjectIdStr
    qty: float
    unit: str = "ea"
    actorId: Optional[ObjectIdStr] = None
    ref: Optional[TransactionRef] = None
    note: Optional[str] = None
    occurredAt: Optional[datetime] = None
