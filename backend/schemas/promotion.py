from datetime import date, datetime
from typing import Optional, List
from pydantic import Field, model_validator

from models.promotion import PromotionType
from schemas.base import ORMBase


class PromotionCreate(ORMBase):
    product_id: int
    type: PromotionType
    value: float = Field(ge=0)
    start_date: date
    end_date: date
    description: Optional[str] = None

    @model_validator(mode="after")
    def _check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class PromotionOut(ORMBase):
    id: int
    product_id: int
    product_name: Optional[str] = None
    type: PromotionType
    value: float
    start_date: date
    end_date: date
    description: Optional[str] = None
    is_active: bool
    sale_price: Optional[float] = None
    effective_price: Optional[float] = None
    created_at: Optional[datetime] = None


class PromotionList(ORMBase):
    items: List[PromotionOut]
    total: int
