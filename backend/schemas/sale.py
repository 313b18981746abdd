# schemas/sale.py
from datetime import datetime
from typing import List, Optional
from pydantic import Field

from models.sale import PaymentMethod, SaleStatus
from schemas.base import ORMBase

# Input schema for a single line item; unit_price defaults to the product's sale price
class SaleItemCreate(ORMBase):
    product_id: int
    quantity: int = Field(gt=0)
    unit_price: Optional[float] = Field(None, ge=0)

# Input schema for recording a new sale
class SaleCreate(ORMBase):
    client_id: Optional[int] = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    items: List[SaleItemCreate] = Field(min_length=1)

# Output schema for a sale line item
class SaleItemOut(ORMBase):
    product_id: Optional[int] = None
    product_name: str
    quantity: int
    unit_price: float
    total_price: float

# Comprehensive output schema for a single sale
class SaleDetail(ORMBase):
    id: int
    number: int
    full_number: str
    client_id: Optional[int] = None
    client_name: Optional[str] = None
    quote_id: Optional[int] = None
    payment_method: PaymentMethod
    status: SaleStatus
    total_amount: float
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    items: List[SaleItemOut]

# Schema for summary representation in lists
class SaleListItem(ORMBase):
    id: int
    full_number: str
    client_id: Optional[int] = None
    client_name: Optional[str] = None
    payment_method: PaymentMethod
    status: SaleStatus
    total_amount: float
    created_at: Optional[datetime] = None

# Paginated response wrapper for sale lists
class SaleListPage(ORMBase):
    items: List[SaleListItem]
    total: int
    page: int
    page_size: int
