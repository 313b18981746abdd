# backend/routes/settings.py
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from database import get_db
from models.product import Product
from models.users import User
from utils.tokenJWT import staff_required, manager_required
from utils.audit import write_log, client_ip
from utils.account import get_account_settings
from schemas.settings import SettingsOut, SettingsUpdate, RatesUpdate, RatesUpdateResult
from routes.products import reprice_product

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["Settings"])


# Retrieve shop settings
@router.get("", response_model=SettingsOut)
def get_settings(db: Session = Depends(get_db), current_user: User = Depends(staff_required)):
    return get_account_settings(db)


# Update shop identity and display preferences (managers)
@router.patch("", response_model=SettingsOut)
def update_settings(
    payload: SettingsUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    s = get_account_settings(db)
    data = payload.model_dump(exclude_unset=True)
    for key, value in data.items():
        if value is not None:
            setattr(s, key, value)
    if s.owner_id is None:
        s.owner_id = current_user.id

    db.commit()
    db.refresh(s)

    write_log(
        db, user_id=current_user.id, action="SETTINGS_UPDATE", resource="settings",
        status="SUCCESS", ip=client_ip(request), meta={"fields": sorted(data)},
    )
    return s


# Change the per-gram rates and re-price every weighted product
@router.put("/rates", response_model=RatesUpdateResult)
def update_rates(
    payload: RatesUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    s = get_account_settings(db)
    s.material_price_per_gram = payload.material_price_per_gram
    s.labor_price_per_gram = payload.labor_price_per_gram
    db.flush()

    updated, skipped, failed = 0, 0, []
    products = db.query(Product).order_by(Product.id.asc()).all()
    for p in products:
        if p.is_composed or not p.weight:
            skipped += 1
            continue
        pid, reference = p.id, p.reference
        # Each product gets its own savepoint; a failure only undoes that row
        try:
            with db.begin_nested():
                reprice_product(p, payload.material_price_per_gram, payload.labor_price_per_gram)
                db.flush()
            updated += 1
        except Exception as e:
            logger.exception("Repricing product %s (%s) failed", pid, reference)
            failed.append({"product_id": pid, "reference": reference, "error": str(e)})

    db.commit()

    write_log(
        db, user_id=current_user.id, action="SETTINGS_RATES", resource="settings",
        status="SUCCESS" if not failed else "PARTIAL", ip=client_ip(request),
        meta={
            "material_price_per_gram": payload.material_price_per_gram,
            "labor_price_per_gram": payload.labor_price_per_gram,
            "updated": updated,
            "skipped": skipped,
            "failed": [f["product_id"] for f in failed],
        },
    )

    return {
        "material_price_per_gram": payload.material_price_per_gram,
        "labor_price_per_gram": payload.labor_price_per_gram,
        "updated": updated,
        "skipped": skipped,
        "failed": failed,
    }
