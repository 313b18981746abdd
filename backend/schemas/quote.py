from datetime import date, datetime
from typing import List, Optional
from pydantic import Field

from models.quote import QuoteStatus
from schemas.base import ORMBase
from schemas.sale import SaleItemCreate, SaleItemOut


class QuoteCreate(ORMBase):
    client_id: Optional[int] = None
    valid_until: Optional[date] = None
    items: List[SaleItemCreate] = Field(min_length=1)


class QuoteDetail(ORMBase):
    id: int
    number: int
    full_number: str
    client_id: Optional[int] = None
    client_name: Optional[str] = None
    valid_until: Optional[date] = None
    status: QuoteStatus
    total_amount: float
    created_at: Optional[datetime] = None
    items: List[SaleItemOut]


class QuoteListItem(ORMBase):
    id: int
    full_number: str
    client_name: Optional[str] = None
    valid_until: Optional[date] = None
    status: QuoteStatus
    total_amount: float
    created_at: Optional[datetime] = None


class QuoteListPage(ORMBase):
    items: List[QuoteListItem]
    total: int
    page: int
    page_size: int
