from datetime import datetime
from typing import List, Optional
from pydantic import Field

from models.register import RegisterStatus, TransactionType
from schemas.base import ORMBase


class RegisterOpen(ORMBase):
    opening_balance: float = Field(default=0.0, ge=0)


class RegisterSessionOut(ORMBase):
    id: int
    opening_balance: float
    current_balance: float
    status: RegisterStatus
    opened_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    opened_by: Optional[int] = None


class TransactionCreate(ORMBase):
    type: TransactionType
    amount: float = Field(gt=0)
    description: Optional[str] = None
    payment_method: str = "cash"
    sale_id: Optional[int] = None


class TransactionOut(ORMBase):
    id: int
    session_id: int
    type: TransactionType
    amount: float
    description: Optional[str] = None
    payment_method: str
    sale_id: Optional[int] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None


class TransactionPage(ORMBase):
    items: List[TransactionOut]
    total: int
    page: int
    page_size: int
