from datetime import datetime
from typing import Optional, List
from pydantic import Field

from schemas.base import ORMBase


class ClientCreate(ORMBase):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    phone: Optional[str] = None
    city: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None


class ClientUpdate(ORMBase):
    first_name: Optional[str] = Field(None, min_length=1)
    last_name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    city: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None


class ClientOut(ClientCreate):
    id: int
    created_at: Optional[datetime] = None


class ClientPage(ORMBase):
    items: List[ClientOut]
    total: int
    page: int
    page_size: int


class SupplierCreate(ORMBase):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    business_name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None


class SupplierUpdate(ORMBase):
    first_name: Optional[str] = Field(None, min_length=1)
    last_name: Optional[str] = Field(None, min_length=1)
    business_name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None


class SupplierOut(SupplierCreate):
    id: int
    created_at: Optional[datetime] = None


class SupplierPage(ORMBase):
    items: List[SupplierOut]
    total: int
    page: int
    page_size: int
