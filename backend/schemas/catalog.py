from datetime import datetime
from typing import Optional, List
from pydantic import Field

from schemas.base import ORMBase


class CategoryIn(ORMBase):
    name: str = Field(min_length=1)


class CategoryOut(ORMBase):
    id: int
    name: str
    created_at: Optional[datetime] = None


class DepotIn(ORMBase):
    name: str = Field(min_length=1)
    address: Optional[str] = None


class DepotUpdate(ORMBase):
    name: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = None


class DepotOut(ORMBase):
    id: int
    name: str
    address: Optional[str] = None
    created_at: Optional[datetime] = None
