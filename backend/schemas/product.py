# backend/schemas/product.py
from datetime import datetime, date
from typing import Optional, List

from pydantic import Field, field_validator

from models.promotion import PromotionType
from schemas.base import ORMBase


class ComponentIn(ORMBase):
    product_id: int
    quantity: float = Field(gt=0)


class ComponentOut(ORMBase):
    product_id: int
    quantity: float


# Shared base attributes for product entities
class ProductBase(ORMBase):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    reference: Optional[str] = None
    barcode: Optional[str] = None
    weight: float = Field(default=0.0, ge=0)
    margin: float = Field(default=0.0, ge=0)
    quantity: int = Field(default=0, ge=0)
    category_id: Optional[int] = None
    depot_id: Optional[int] = None


# Schema for creating a new product. Prices are only read from the body for
# products without a weight; weighted ones are priced from the shop rates.
class ProductCreate(ProductBase):
    purchase_price: float = Field(default=0.0, ge=0)
    sale_price: float = Field(default=0.0, ge=0)
    minimum_sale_price: float = Field(default=0.0, ge=0)


# Schema for partial product updates
class ProductUpdate(ORMBase):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    reference: Optional[str] = None
    barcode: Optional[str] = None
    weight: Optional[float] = Field(None, ge=0)
    margin: Optional[float] = Field(None, ge=0)
    purchase_price: Optional[float] = Field(None, ge=0)
    sale_price: Optional[float] = Field(None, ge=0)
    minimum_sale_price: Optional[float] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=0)
    category_id: Optional[int] = None
    depot_id: Optional[int] = None


class ComposedProductCreate(ORMBase):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    reference: Optional[str] = None
    category_id: Optional[int] = None
    depot_id: Optional[int] = None
    quantity: int = Field(default=0, ge=0)
    components: List[ComponentIn]
    manual_sale_price: Optional[float] = Field(None, ge=0)

    @field_validator("components")
    @classmethod
    def _not_empty(cls, v):
        if not v:
            raise ValueError("At least one component is required")
        return v


class PromotionSummary(ORMBase):
    id: int
    type: PromotionType
    value: float
    start_date: date
    end_date: date
    description: Optional[str] = None


# Full product representation
class ProductOut(ORMBase):
    id: int
    name: str
    description: Optional[str] = None
    reference: str
    barcode: Optional[str] = None
    weight: float
    material_cost: float
    labor_cost: float
    cost_price: float
    margin: float
    purchase_price: float
    sale_price: float
    minimum_sale_price: float
    quantity: int
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    depot_id: Optional[int] = None
    depot_name: Optional[str] = None
    image_url: Optional[str] = None
    is_composed: bool = False
    components: Optional[List[ComponentOut]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductDetail(ProductOut):
    active_promotion: Optional[PromotionSummary] = None
    effective_price: float


# Paginated response for product listings
class ProductListPage(ORMBase):
    items: List[ProductDetail]
    total: int
    page: int
    page_size: int
