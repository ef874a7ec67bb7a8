# foodstore/models/base.py
from datetime import datetime
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

# identifiers go over the wire as strings
ObjectIdStr = Annotated[str, BeforeValidator(str)]


class Record(BaseModel):
    """Wire shape shared by every stored resource."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: ObjectIdStr = Field(alias="_id")
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def serialize(cls, document: dict[str, Any]) -> dict[str, Any]:
        """Render a stored document: string ids, ISO dates, absent optionals omitted."""
        return cls.model_validate(document).model_dump(mode="json", by_alias=True, exclude_none=True)
