# backend/routes/promotions.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from database import get_db
from models.product import Product
from models.promotion import Promotion
from models.users import User
from utils.tokenJWT import staff_required, manager_required
from utils.audit import write_log, client_ip
from utils.pricing import is_promotion_active, effective_price
from schemas.promotion import PromotionCreate, PromotionOut, PromotionList

router = APIRouter(prefix="/promotions", tags=["Promotions"])


def _out(promo: Promotion, today: Optional[date] = None) -> PromotionOut:
    product = promo.product
    sale_price = product.sale_price if product else None
    return PromotionOut(
        id=promo.id,
        product_id=promo.product_id,
        product_name=product.name if product else None,
        type=promo.type,
        value=promo.value,
        start_date=promo.start_date,
        end_date=promo.end_date,
        description=promo.description,
        is_active=is_promotion_active(promo.start_date, promo.end_date, today),
        sale_price=sale_price,
        effective_price=effective_price(sale_price, promo.type, promo.value) if sale_price is not None else None,
        created_at=promo.created_at,
    )


@router.post("", response_model=PromotionOut, status_code=201)
def create_promotion(
    payload: PromotionCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    product = db.get(Product, payload.product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    promo = Promotion(
        product_id=product.id,
        type=payload.type,
        value=payload.value,
        start_date=payload.start_date,
        end_date=payload.end_date,
        description=payload.description,
    )
    db.add(promo)
    db.commit()
    db.refresh(promo)

    write_log(
        db, user_id=current_user.id, action="PROMOTION_CREATE", resource="promotions",
        status="SUCCESS", ip=client_ip(request),
        meta={"id": promo.id, "product_id": product.id, "type": promo.type.value, "value": promo.value},
    )
    return _out(promo)


@router.get("", response_model=PromotionList)
def list_promotions(
    active: Optional[bool] = Query(None, description="Only promotions running today"),
    product_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    query = db.query(Promotion)
    if product_id is not None:
        query = query.filter(Promotion.product_id == product_id)
    if active:
        today = date.today()
        query = query.filter(Promotion.start_date <= today, Promotion.end_date >= today)
    promos = query.order_by(Promotion.start_date.desc(), Promotion.id.desc()).all()

    items = [_out(p) for p in promos]
    return {"items": items, "total": len(items)}


@router.get("/{promotion_id}", response_model=PromotionOut)
def get_promotion(
    promotion_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    promo = db.get(Promotion, promotion_id)
    if not promo:
        raise HTTPException(status_code=404, detail="Promotion not found")
    return _out(promo)


@router.delete("/{promotion_id}")
def delete_promotion(
    promotion_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    promo = db.get(Promotion, promotion_id)
    if not promo:
        raise HTTPException(status_code=404, detail="Promotion not found")
    db.delete(promo)
    db.commit()
    write_log(db, user_id=current_user.id, action="PROMOTION_DELETE", resource="promotions",
              status="SUCCESS", ip=client_ip(request), meta={"id": promotion_id})
    return {"detail": "Promotion deleted"}
