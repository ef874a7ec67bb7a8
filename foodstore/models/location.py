# foodstore/models/location.py
from typing import Literal

from pydantic import BaseModel

from foodstore.models.base import Record


class Address(BaseModel):
    line1: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""


class Location(Record):
    name: str
    type: Literal["freezer", "fridge", "pantry"]
    address: Address
    isActive: bool = True
