# routes/reports.py
from datetime import date, datetime, time, timedelta
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from utils.tokenJWT import staff_required, manager_required
from models.users import User
from models.client import Client
from models.product import Product
from models.sale import Sale, SaleStatus
from models.team import Task, TaskStatus
from routes.sales import open_register
from schemas.reports import (
    DashboardStats,
    LowStockPage, LowStockItem,
    SalesSummaryResponse, SalesSummaryItem,
)

router = APIRouter(prefix="/reports", tags=["Reports"])


def _day_bounds(d: date):
    start = datetime.combine(d, time.min)
    return start, start + timedelta(days=1)


# -----------------------------
# 1) Dashboard
# -----------------------------
@router.get("/dashboard", response_model=DashboardStats)
def dashboard(db: Session = Depends(get_db), current_user: User = Depends(staff_required)):
    threshold = settings.LOW_STOCK_THRESHOLD
    start, end = _day_bounds(date.today())

    today = (
        db.query(func.count(Sale.id), func.coalesce(func.sum(Sale.total_amount), 0.0))
        .filter(Sale.status == SaleStatus.COMPLETED, Sale.created_at >= start, Sale.created_at < end)
        .one()
    )
    session = open_register(db)

    return DashboardStats(
        product_count=db.query(func.count(Product.id)).scalar() or 0,
        stock_value=float(db.query(func.coalesce(func.sum(Product.sale_price * Product.quantity), 0.0)).scalar()),
        low_stock_count=db.query(func.count(Product.id)).filter(Product.quantity <= threshold).scalar() or 0,
        client_count=db.query(func.count(Client.id)).scalar() or 0,
        sales_today=today[0] or 0,
        revenue_today=float(today[1] or 0.0),
        open_tasks=db.query(func.count(Task.id))
        .filter(Task.status.in_([TaskStatus.PENDING, TaskStatus.IN_PROGRESS])).scalar() or 0,
        register_open=session is not None,
        register_balance=session.current_balance if session is not None else None,
    )


# -----------------------------
# 2) Low stock
# -----------------------------
@router.get("/low-stock", response_model=LowStockPage)
def report_low_stock(
    threshold: Optional[int] = Query(None, ge=0, description="Stock threshold (<=)"),
    q: Optional[str] = Query(None, description="Search by name or reference"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    if threshold is None:
        threshold = settings.LOW_STOCK_THRESHOLD

    query = db.query(Product).filter(Product.quantity <= threshold)
    if q:
        like = f"%{q}%"
        query = query.filter((Product.name.ilike(like)) | (Product.reference.ilike(like)))

    total = query.count()
    rows = (query
            .order_by(Product.quantity.asc(), Product.name.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all())

    items: List[LowStockItem] = [
        LowStockItem(
            product_id=p.id,
            name=p.name,
            reference=p.reference,
            quantity=p.quantity or 0,
            depot_name=p.depot_name,
        )
        for p in rows
    ]
    return {"items": items, "total": total, "page": page, "page_size": page_size, "threshold": threshold}


# -----------------------------
# 3) Sales summary
# -----------------------------
@router.get("/sales-summary", response_model=SalesSummaryResponse)
def report_sales_summary(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    if date_from and date_to and date_to < date_from:
        raise HTTPException(status_code=400, detail="date_to is before date_from")

    day = func.date(Sale.created_at)
    q = db.query(
        day.label("d"),
        func.count(Sale.id).label("sales"),
        func.coalesce(func.sum(Sale.total_amount), 0.0).label("total_amount"),
    ).filter(Sale.status == SaleStatus.COMPLETED)

    if date_from:
        q = q.filter(Sale.created_at >= _day_bounds(date_from)[0])
    if date_to:
        q = q.filter(Sale.created_at < _day_bounds(date_to)[1])

    rows = q.group_by(day).order_by(day.asc()).all()

    items: List[SalesSummaryItem] = [
        SalesSummaryItem(date=r.d, sales=r.sales, total_amount=float(r.total_amount))
        for r in rows
    ]
    return SalesSummaryResponse(
        items=items,
        total_sales=sum(i.sales for i in items),
        total_amount=round(sum(i.total_amount for i in items), 2),
        date_from=date_from,
        date_to=date_to,
    )
