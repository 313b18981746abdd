# backend/routes/sales.py
import logging
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Literal, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import FileResponse
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from database import get_db
from models.client import Client
from models.product import Product
from models.register import RegisterSession, RegisterTransaction, RegisterStatus, TransactionType
from models.sale import Sale, SaleItem, SaleStatus, PaymentMethod
from models.users import User
from utils.tokenJWT import staff_required, manager_required
from utils.audit import write_log, client_ip
from utils.account import get_account_settings, shop_identity
from utils.pdf import generate_sale_receipt_pdf, get_receipt_path
from schemas.sale import SaleCreate, SaleDetail, SaleListPage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sales", tags=["Sales"])

# (product_id, quantity, unit_price or None for the current sale price)
Line = Tuple[Optional[int], int, Optional[float]]


def open_register(db: Session) -> Optional[RegisterSession]:
    return (
        db.query(RegisterSession)
        .filter(RegisterSession.status == RegisterStatus.OPEN)
        .order_by(RegisterSession.id.desc())
        .first()
    )


def resolve_lines(db: Session, lines: Iterable[Line], check_stock: bool) -> List[Tuple[Product, int, float]]:
    """Load the products behind the lines and, for sales, verify the stock covers them."""
    resolved = []
    wanted = {}
    for product_id, qty, unit_price in lines:
        product = None
        if product_id is not None:
            product = db.query(Product).filter(Product.id == product_id).with_for_update().first()
        if product is None:
            raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
        price = product.sale_price if unit_price is None else unit_price
        resolved.append((product, qty, price))
        wanted[product.id] = wanted.get(product.id, 0) + qty

    if check_stock:
        for product, _, _ in resolved:
            if product.quantity < wanted[product.id]:
                raise HTTPException(
                    status_code=400,
                    detail=f"Insufficient stock for '{product.name}': {product.quantity} left, {wanted[product.id]} requested",
                )
    return resolved


def record_sale(
    db: Session,
    lines: Iterable[Line],
    payment_method: PaymentMethod,
    user: User,
    client_id: Optional[int] = None,
    quote_id: Optional[int] = None,
) -> Sale:
    """Create the sale and its items, decrement stock and feed the open cash register.

    Nothing is committed here; the caller commits once everything is in place.
    """
    if client_id is not None and not db.get(Client, client_id):
        raise HTTPException(status_code=404, detail="Client not found")

    resolved = resolve_lines(db, lines, check_stock=True)

    last_number = db.query(func.max(Sale.number)).scalar()
    sale = Sale(
        number=(last_number or 0) + 1,
        client_id=client_id,
        quote_id=quote_id,
        payment_method=payment_method,
        status=SaleStatus.COMPLETED,
        total_amount=0.0,
        created_by=user.id,
    )
    total = 0.0
    for product, qty, price in resolved:
        line_total = price * qty
        total += line_total
        sale.items.append(SaleItem(
            product_id=product.id,
            product_name=product.name,
            quantity=qty,
            unit_price=price,
            total_price=line_total,
        ))
        product.quantity -= qty
    sale.total_amount = total
    db.add(sale)
    db.flush()

    # Cash sales go into the drawer when a register session is open
    session = open_register(db)
    if session is not None and payment_method == PaymentMethod.CASH:
        db.add(RegisterTransaction(
            session_id=session.id,
            type=TransactionType.IN,
            amount=total,
            description=f"Vente {sale.full_number}",
            payment_method=PaymentMethod.CASH.value,
            sale_id=sale.id,
            created_by=user.id,
        ))
        session.current_balance = (session.current_balance or 0.0) + total
    return sale


def _get_sale_or_404(db: Session, sale_id: int) -> Sale:
    sale = db.query(Sale).filter(Sale.id == sale_id).first()
    if not sale:
        raise HTTPException(status_code=404, detail="Sale not found")
    return sale


# =========================
# CREATE
# =========================
@router.post("", response_model=SaleDetail, status_code=201)
def create_sale(
    payload: SaleCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    try:
        sale = record_sale(
            db,
            [(it.product_id, it.quantity, it.unit_price) for it in payload.items],
            payload.payment_method,
            current_user,
            client_id=payload.client_id,
        )
        db.commit()
    except HTTPException as e:
        db.rollback()
        write_log(db, user_id=current_user.id, action="SALE_CREATE", resource="sales",
                  status="FAIL", ip=client_ip(request), meta={"reason": e.detail})
        raise
    db.refresh(sale)

    write_log(
        db, user_id=current_user.id, action="SALE_CREATE", resource="sales",
        status="SUCCESS", ip=client_ip(request),
        meta={"id": sale.id, "number": sale.full_number, "total": sale.total_amount,
              "payment_method": sale.payment_method.value},
    )
    return sale


# =========================
# LIST
# =========================
@router.get("", response_model=SaleListPage)
def list_sales(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    client: Optional[str] = Query(None, description="Search by client name"),
    min_amount: Optional[float] = Query(None, ge=0),
    max_amount: Optional[float] = Query(None, ge=0),
    payment_method: Optional[PaymentMethod] = Query(None),
    status: Optional[SaleStatus] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    sort_by: Literal["created_at", "total_amount", "number"] = "created_at",
    order: Literal["asc", "desc"] = "desc",
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    query = db.query(Sale)

    if date_from:
        query = query.filter(Sale.created_at >= datetime.combine(date_from, time.min))
    if date_to:
        # The whole end day is included
        query = query.filter(Sale.created_at < datetime.combine(date_to + timedelta(days=1), time.min))
    if client:
        like = f"%{client}%"
        query = query.join(Client, Sale.client_id == Client.id).filter(
            or_(Client.first_name.ilike(like), Client.last_name.ilike(like))
        )
    if min_amount is not None:
        query = query.filter(Sale.total_amount >= min_amount)
    if max_amount is not None:
        query = query.filter(Sale.total_amount <= max_amount)
    if payment_method is not None:
        query = query.filter(Sale.payment_method == payment_method)
    if status is not None:
        query = query.filter(Sale.status == status)

    sort_map = {
        "created_at": Sale.created_at,
        "total_amount": Sale.total_amount,
        "number": Sale.number,
    }
    col = sort_map.get(sort_by, Sale.created_at)
    query = query.order_by(col.asc() if order == "asc" else col.desc(), Sale.id.desc())

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}


# =========================
# DETAIL
# =========================
@router.get("/{sale_id}", response_model=SaleDetail)
def get_sale(sale_id: int, db: Session = Depends(get_db), current_user: User = Depends(staff_required)):
    return _get_sale_or_404(db, sale_id)


# =========================
# CANCEL
# =========================
@router.post("/{sale_id}/cancel", response_model=SaleDetail)
def cancel_sale(
    sale_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    sale = _get_sale_or_404(db, sale_id)
    if sale.status == SaleStatus.CANCELLED:
        raise HTTPException(status_code=409, detail="Sale already cancelled")

    for item in sale.items:
        if item.product is not None:
            item.product.quantity += item.quantity

    # Give the cash back if it went into the drawer that is still open
    session = open_register(db)
    if session is not None:
        paid_in = (
            db.query(RegisterTransaction)
            .filter(RegisterTransaction.session_id == session.id,
                    RegisterTransaction.sale_id == sale.id,
                    RegisterTransaction.type == TransactionType.IN)
            .first()
        )
        if paid_in is not None:
            db.add(RegisterTransaction(
                session_id=session.id,
                type=TransactionType.OUT,
                amount=paid_in.amount,
                description=f"Annulation {sale.full_number}",
                payment_method=paid_in.payment_method,
                sale_id=sale.id,
                created_by=current_user.id,
            ))
            session.current_balance = (session.current_balance or 0.0) - paid_in.amount

    sale.status = SaleStatus.CANCELLED
    db.commit()
    db.refresh(sale)

    write_log(db, user_id=current_user.id, action="SALE_CANCEL", resource="sales",
              status="SUCCESS", ip=client_ip(request), meta={"id": sale.id, "number": sale.full_number})
    return sale


# =========================
# RECEIPT PDF
# =========================
@router.get("/{sale_id}/receipt")
def download_receipt(
    sale_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    sale = _get_sale_or_404(db, sale_id)
    pdf_path = get_receipt_path(sale.full_number)
    try:
        generate_sale_receipt_pdf(sale, pdf_path, shop=shop_identity(get_account_settings(db)))
    except OSError as e:
        logger.exception("Receipt generation failed for sale %s", sale.id)
        raise HTTPException(status_code=500, detail=f"Could not generate PDF: {e}")

    write_log(
        db, user_id=current_user.id, action="SALE_RECEIPT", resource="sales", status="SUCCESS",
        ip=client_ip(request), meta={"sale_id": sale.id},
    )
    return FileResponse(path=str(pdf_path), media_type="application/pdf", filename=f"{sale.full_number}.pdf")
