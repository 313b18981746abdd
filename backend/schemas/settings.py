from typing import Optional, List, Literal
from pydantic import Field

from schemas.base import ORMBase


# Schema for displaying shop settings
class SettingsOut(ORMBase):
    id: int
    business_name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    logo_url: Optional[str] = None
    theme: str
    accent_color: str
    material_price_per_gram: float
    labor_price_per_gram: float


# Schema for updating shop identity and display preferences
class SettingsUpdate(ORMBase):
    business_name: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = None
    phone: Optional[str] = None
    logo_url: Optional[str] = None
    theme: Optional[Literal["light", "dark"]] = None
    accent_color: Optional[Literal["blue", "green", "purple", "orange", "red"]] = None


class RatesUpdate(ORMBase):
    material_price_per_gram: float = Field(ge=0)
    labor_price_per_gram: float = Field(ge=0)


class RepriceFailure(ORMBase):
    product_id: int
    reference: Optional[str] = None
    error: str


# Outcome of a rate change: which products were repriced and which were not
class RatesUpdateResult(ORMBase):
    material_price_per_gram: float
    labor_price_per_gram: float
    updated: int
    skipped: int
    failed: List[RepriceFailure]
