# schemas/reports.py
from datetime import date
from typing import List, Optional

from schemas.base import ORMBase

# Headline figures for the dashboard
class DashboardStats(ORMBase):
    product_count: int
    stock_value: float
    low_stock_count: int
    client_count: int
    sales_today: int
    revenue_today: float
    open_tasks: int
    register_open: bool
    register_balance: Optional[float] = None

# Schemas for low stock alerting
class LowStockItem(ORMBase):
    product_id: int
    name: str
    reference: Optional[str] = None
    quantity: int
    depot_name: Optional[str] = None

class LowStockPage(ORMBase):
    items: List[LowStockItem]
    total: int
    page: int
    page_size: int
    threshold: int

# Schemas for sales performance summaries
class SalesSummaryItem(ORMBase):
    date: date
    sales: int
    total_amount: float

class SalesSummaryResponse(ORMBase):
    items: List[SalesSummaryItem]
    total_sales: int
    total_amount: float
    date_from: Optional[date] = None
    date_to: Optional[date] = None
