# foodstore/models/audit.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel

from foodstore.models.base import ObjectIdStr, Record


class AuditLine(BaseModel):
    lotId: ObjectIdStr
    expectedQty: float
    countedQty: float
    delta: float
    note: Optional[str] = None


class Audit(Record):
    countedAt: Optional[datetime] = None
    lines: List[AuditLine]
    createdBy: Optional[ObjectIdStr] = None
    status: Literal["draft", "posted"] = "posted"
