# backend/routes/quotes.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.client import Client
from models.quote import Quote, QuoteItem, QuoteStatus
from models.sale import PaymentMethod
from models.users import User
from utils.tokenJWT import staff_required
from utils.audit import write_log, client_ip
from routes.sales import resolve_lines, record_sale
from schemas.quote import QuoteCreate, QuoteDetail, QuoteListPage
from schemas.sale import SaleDetail

router = APIRouter(prefix="/quotes", tags=["Quotes"])


def _get_quote_or_404(db: Session, quote_id: int) -> Quote:
    quote = db.query(Quote).filter(Quote.id == quote_id).first()
    if not quote:
        raise HTTPException(status_code=404, detail="Quote not found")
    return quote


def _require_pending(quote: Quote):
    if quote.status != QuoteStatus.PENDING:
        raise HTTPException(status_code=409, detail=f"Quote {quote.full_number} is {quote.status.value}")


# Create a quote; stock is not touched until conversion
@router.post("", response_model=QuoteDetail, status_code=201)
def create_quote(
    payload: QuoteCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    if payload.client_id is not None and not db.get(Client, payload.client_id):
        raise HTTPException(status_code=404, detail="Client not found")

    resolved = resolve_lines(
        db, [(it.product_id, it.quantity, it.unit_price) for it in payload.items], check_stock=False
    )
    last_number = db.query(func.max(Quote.number)).scalar()
    quote = Quote(
        number=(last_number or 0) + 1,
        client_id=payload.client_id,
        valid_until=payload.valid_until,
        status=QuoteStatus.PENDING,
        total_amount=sum(price * qty for _, qty, price in resolved),
        created_by=current_user.id,
    )
    for product, qty, price in resolved:
        quote.items.append(QuoteItem(
            product_id=product.id,
            product_name=product.name,
            quantity=qty,
            unit_price=price,
            total_price=price * qty,
        ))
    db.add(quote)
    db.commit()
    db.refresh(quote)

    write_log(db, user_id=current_user.id, action="QUOTE_CREATE", resource="quotes", status="SUCCESS",
              ip=client_ip(request), meta={"id": quote.id, "number": quote.full_number, "total": quote.total_amount})
    return quote


@router.get("", response_model=QuoteListPage)
def list_quotes(
    status: Optional[QuoteStatus] = Query(None),
    client_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    query = db.query(Quote)
    if status is not None:
        query = query.filter(Quote.status == status)
    if client_id is not None:
        query = query.filter(Quote.client_id == client_id)
    query = query.order_by(Quote.created_at.desc(), Quote.id.desc())

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.get("/{quote_id}", response_model=QuoteDetail)
def get_quote(quote_id: int, db: Session = Depends(get_db), current_user: User = Depends(staff_required)):
    return _get_quote_or_404(db, quote_id)


# Turn a pending quote into a sale awaiting payment
@router.post("/{quote_id}/convert", response_model=SaleDetail, status_code=201)
def convert_quote(
    quote_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    quote = _get_quote_or_404(db, quote_id)
    _require_pending(quote)

    try:
        sale = record_sale(
            db,
            [(it.product_id, it.quantity, it.unit_price) for it in quote.items],
            PaymentMethod.PENDING,
            current_user,
            client_id=quote.client_id,
            quote_id=quote.id,
        )
        quote.status = QuoteStatus.CONVERTED
        db.commit()
    except HTTPException as e:
        db.rollback()
        write_log(db, user_id=current_user.id, action="QUOTE_CONVERT", resource="quotes", status="FAIL",
                  ip=client_ip(request), meta={"id": quote_id, "reason": e.detail})
        raise
    db.refresh(sale)

    write_log(db, user_id=current_user.id, action="QUOTE_CONVERT", resource="quotes", status="SUCCESS",
              ip=client_ip(request), meta={"id": quote.id, "sale_id": sale.id, "sale_number": sale.full_number})
    return sale


@router.post("/{quote_id}/cancel", response_model=QuoteDetail)
def cancel_quote(
    quote_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    quote = _get_quote_or_404(db, quote_id)
    _require_pending(quote)
    quote.status = QuoteStatus.CANCELLED
    db.commit()
    db.refresh(quote)
    write_log(db, user_id=current_user.id, action="QUOTE_CANCEL", resource="quotes", status="SUCCESS",
              ip=client_ip(request), meta={"id": quote.id})
    return quote
