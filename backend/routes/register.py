# backend/routes/register.py
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from database import get_db
from models.register import RegisterSession, RegisterTransaction, RegisterStatus, TransactionType
from models.sale import Sale
from models.users import User
from utils.tokenJWT import staff_required
from utils.audit import write_log, client_ip
from routes.sales import open_register
from schemas.register import RegisterOpen, RegisterSessionOut, TransactionCreate, TransactionOut, TransactionPage

router = APIRouter(prefix="/register", tags=["Cash register"])


def _current_or_404(db: Session) -> RegisterSession:
    session = open_register(db)
    if session is None:
        raise HTTPException(status_code=404, detail="No open register session")
    return session


@router.post("/open", response_model=RegisterSessionOut, status_code=201)
def open_session(
    payload: RegisterOpen,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    if open_register(db) is not None:
        raise HTTPException(status_code=409, detail="A register session is already open")

    session = RegisterSession(
        opening_balance=payload.opening_balance,
        current_balance=payload.opening_balance,
        status=RegisterStatus.OPEN,
        opened_by=current_user.id,
    )
    db.add(session)
    db.commit()
    db.refresh(session)

    write_log(db, user_id=current_user.id, action="REGISTER_OPEN", resource="register", status="SUCCESS",
              ip=client_ip(request), meta={"id": session.id, "opening_balance": session.opening_balance})
    return session


@router.get("/current", response_model=RegisterSessionOut)
def current_session(db: Session = Depends(get_db), current_user: User = Depends(staff_required)):
    return _current_or_404(db)


@router.post("/close", response_model=RegisterSessionOut)
def close_session(request: Request, db: Session = Depends(get_db), current_user: User = Depends(staff_required)):
    session = _current_or_404(db)
    session.status = RegisterStatus.CLOSED
    session.closed_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(session)

    write_log(db, user_id=current_user.id, action="REGISTER_CLOSE", resource="register", status="SUCCESS",
              ip=client_ip(request), meta={"id": session.id, "closing_balance": session.current_balance})
    return session


@router.post("/transactions", response_model=TransactionOut, status_code=201)
def add_transaction(
    payload: TransactionCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    session = open_register(db)
    if session is None:
        raise HTTPException(status_code=400, detail="Open the register before recording transactions")
    if payload.sale_id is not None and not db.get(Sale, payload.sale_id):
        raise HTTPException(status_code=404, detail="Sale not found")

    tx = RegisterTransaction(
        session_id=session.id,
        type=payload.type,
        amount=payload.amount,
        description=payload.description,
        payment_method=payload.payment_method,
        sale_id=payload.sale_id,
        created_by=current_user.id,
    )
    delta = payload.amount if payload.type == TransactionType.IN else -payload.amount
    session.current_balance = (session.current_balance or 0.0) + delta
    db.add(tx)
    db.commit()
    db.refresh(tx)

    write_log(db, user_id=current_user.id, action="REGISTER_TRANSACTION", resource="register", status="SUCCESS",
              ip=client_ip(request), meta={"id": tx.id, "type": tx.type.value, "amount": tx.amount})
    return tx


@router.get("/transactions", response_model=TransactionPage)
def list_transactions(
    session_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    query = db.query(RegisterTransaction)
    if session_id is not None:
        query = query.filter(RegisterTransaction.session_id == session_id)
    query = query.order_by(RegisterTransaction.created_at.desc(), RegisterTransaction.id.desc())

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}
