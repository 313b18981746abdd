# backend/routes/products.py
import logging
import uuid
from collections import OrderedDict
from datetime import date
from typing import Optional, List, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request, UploadFile, File
from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import staff_required, manager_required
from utils.audit import write_log, client_ip
from utils.account import get_account_settings
from utils.barcode import generate_unique_barcode
from utils.pricing import (
    compute_price_breakdown, preserve_minimum_price, composed_purchase_cost,
    suggested_composed_price, is_promotion_active, effective_price,
)
from utils.storage import upload_product_image, remove_stored_file
from config import settings
from models.users import User
from models.product import Product
from models.category import Category, Depot
import schemas.product as product_schemas

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Products"])


# ---- HELPERS ----
def _norm_reference(reference: Optional[str]) -> Optional[str]:
    if reference is None:
        return None
    r = reference.strip().upper()
    return r if r else None

def _new_reference() -> str:
    return f"REF-{uuid.uuid4().hex[:8].upper()}"

def _barcode_taken(db: Session):
    return lambda code: db.query(Product.id).filter(Product.barcode == code).first() is not None

def _get_product_or_404(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product

def _check_reference_free(db: Session, reference: str, exclude_id: Optional[int] = None):
    q = db.query(Product.id).filter(Product.reference == reference)
    if exclude_id is not None:
        q = q.filter(Product.id != exclude_id)
    if q.first():
        raise HTTPException(status_code=409, detail="Product reference already exists")

def _check_links(db: Session, category_id: Optional[int], depot_id: Optional[int]):
    if category_id is not None and not db.get(Category, category_id):
        raise HTTPException(status_code=404, detail="Category not found")
    if depot_id is not None and not db.get(Depot, depot_id):
        raise HTTPException(status_code=404, detail="Depot not found")

def apply_breakdown(product: Product, material_rate: float, labor_rate: float) -> None:
    """Price a weighted product from the per-gram rates and its margin."""
    b = compute_price_breakdown(product.weight or 0.0, material_rate, labor_rate, product.margin or 0.0)
    product.material_cost = b.material_cost
    product.labor_cost = b.labor_cost
    product.purchase_price = b.material_cost
    product.sale_price = b.sale_price

def reprice_product(product: Product, material_rate: float, labor_rate: float) -> None:
    """Re-derive the breakdown and keep the gap between sale and minimum price."""
    previous_sale, previous_min = product.sale_price or 0.0, product.minimum_sale_price
    apply_breakdown(product, material_rate, labor_rate)
    product.minimum_sale_price = preserve_minimum_price(previous_sale, previous_min, product.sale_price)

def active_promotion(product: Product, today: Optional[date] = None):
    # Several promotions may overlap; the most recently created one applies
    active = [p for p in product.promotions if is_promotion_active(p.start_date, p.end_date, today)]
    if not active:
        return None
    return max(active, key=lambda p: p.id)

def _detail(product: Product) -> product_schemas.ProductDetail:
    promo = active_promotion(product)
    price = product.sale_price
    if promo is not None:
        price = effective_price(product.sale_price, promo.type, promo.value)
    data = product_schemas.ProductOut.model_validate(product).model_dump()
    return product_schemas.ProductDetail(
        **data,
        active_promotion=product_schemas.PromotionSummary.model_validate(promo) if promo else None,
        effective_price=price,
    )


# =========================
# PRODUCT LIST
# =========================
@router.get("/products", response_model=product_schemas.ProductListPage)
def list_products(
    q: Optional[str] = Query(None, description="Search by name, reference or barcode"),
    category_id: Optional[int] = Query(None),
    depot_id: Optional[int] = Query(None),
    composed: Optional[bool] = Query(None),
    low_stock: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=500),
    sort_by: Literal["id", "name", "sale_price", "quantity", "created_at"] = "name",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    query = db.query(Product)

    if q:
        like = f"%{q}%"
        query = query.filter(or_(
            Product.name.ilike(like),
            Product.reference.ilike(like),
            Product.barcode.ilike(like),
        ))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if depot_id is not None:
        query = query.filter(Product.depot_id == depot_id)
    if composed is not None:
        query = query.filter(Product.is_composed == composed)
    if low_stock:
        query = query.filter(Product.quantity <= settings.LOW_STOCK_THRESHOLD)

    sort_map = {
        "id": Product.id,
        "name": Product.name,
        "sale_price": Product.sale_price,
        "quantity": Product.quantity,
        "created_at": Product.created_at,
    }
    col = sort_map.get(sort_by, Product.name)
    query = query.order_by(col.asc() if order == "asc" else col.desc(), Product.id.asc())

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()

    return {"items": [_detail(p) for p in items], "total": total, "page": page, "page_size": page_size}


# =========================
# BARCODE LOOKUP
# =========================
@router.get("/products/barcode/{barcode}", response_model=product_schemas.ProductDetail)
def get_product_by_barcode(
    barcode: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    product = db.query(Product).filter(Product.barcode == barcode.strip()).order_by(Product.id.asc()).first()
    if not product:
        raise HTTPException(status_code=404, detail="No product with this barcode")
    return _detail(product)


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/products/{product_id}", response_model=product_schemas.ProductDetail)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    return _detail(_get_product_or_404(db, product_id))


# =========================
# CREATE PRODUCT
# =========================
@router.post("/products", response_model=product_schemas.ProductOut, status_code=201)
def add_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    reference = _norm_reference(payload.reference) or _new_reference()
    _check_reference_free(db, reference)
    _check_links(db, payload.category_id, payload.depot_id)

    product = Product(
        name=payload.name.strip(),
        description=payload.description,
        reference=reference,
        barcode=(payload.barcode or "").strip() or generate_unique_barcode(_barcode_taken(db)),
        weight=payload.weight,
        margin=payload.margin,
        quantity=payload.quantity,
        category_id=payload.category_id,
        depot_id=payload.depot_id,
        minimum_sale_price=payload.minimum_sale_price,
    )

    if payload.weight > 0:
        rates = get_account_settings(db)
        apply_breakdown(product, rates.material_price_per_gram, rates.labor_price_per_gram)
    else:
        product.material_cost = 0.0
        product.labor_cost = 0.0
        product.purchase_price = payload.purchase_price
        product.sale_price = payload.sale_price

    db.add(product)
    db.commit()
    db.refresh(product)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
        status="SUCCESS", ip=client_ip(request),
        meta={"id": product.id, "reference": product.reference, "sale_price": product.sale_price},
    )
    return product


# =========================
# COMPOSED PRODUCT
# =========================
@router.post("/products/composed", response_model=product_schemas.ProductOut, status_code=201)
def add_composed_product(
    payload: product_schemas.ComposedProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    # Same component listed twice counts once with the summed quantity
    merged = OrderedDict()
    for c in payload.components:
        merged[c.product_id] = merged.get(c.product_id, 0) + c.quantity

    components = db.query(Product).filter(Product.id.in_(list(merged))).all()
    found = {p.id: p for p in components}
    missing = [pid for pid in merged if pid not in found]
    if missing:
        raise HTTPException(status_code=404, detail=f"Component products not found: {missing}")

    reference = _norm_reference(payload.reference) or _new_reference()
    _check_reference_free(db, reference)
    _check_links(db, payload.category_id, payload.depot_id)

    cost = composed_purchase_cost((found[pid].purchase_price or 0.0, qty) for pid, qty in merged.items())
    sale_price = payload.manual_sale_price
    if sale_price is None:
        sale_price = suggested_composed_price(cost)

    product = Product(
        name=payload.name.strip(),
        description=payload.description,
        reference=reference,
        barcode=generate_unique_barcode(_barcode_taken(db)),
        weight=0.0,
        material_cost=0.0,
        labor_cost=0.0,
        margin=0.0,
        purchase_price=cost,
        sale_price=sale_price,
        minimum_sale_price=0.0,
        quantity=payload.quantity,
        category_id=payload.category_id,
        depot_id=payload.depot_id,
        is_composed=True,
        components=[{"product_id": pid, "quantity": qty} for pid, qty in merged.items()],
    )
    db.add(product)
    db.commit()
    db.refresh(product)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_COMPOSE", resource="products",
        status="SUCCESS", ip=client_ip(request),
        meta={"id": product.id, "components": len(merged), "purchase_cost": cost, "sale_price": sale_price},
    )
    return product


# =========================
# PARTIAL UPDATE
# =========================
@router.patch("/products/{product_id}", response_model=product_schemas.ProductOut)
def edit_product(
    product_id: int,
    payload: product_schemas.ProductUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    p = _get_product_or_404(db, product_id)
    data = payload.model_dump(exclude_unset=True)

    if "reference" in data:
        ref = _norm_reference(data["reference"])
        if ref is None:
            raise HTTPException(status_code=400, detail="Reference cannot be empty")
        if ref != p.reference:
            _check_reference_free(db, ref, exclude_id=p.id)
        data["reference"] = ref
    _check_links(db, data.get("category_id"), data.get("depot_id"))

    was_weighted = not p.is_composed and (p.weight or 0) > 0
    for key, value in data.items():
        setattr(p, key, value)

    # Weighted products are always priced from the current rates, body prices are ignored
    if not p.is_composed and (p.weight or 0) > 0:
        if {"weight", "margin", "sale_price", "purchase_price"} & data.keys():
            rates = get_account_settings(db)
            apply_breakdown(p, rates.material_price_per_gram, rates.labor_price_per_gram)
    elif was_weighted:
        # Dropping the weight turns the product into a manually priced one
        p.material_cost = 0.0
        p.labor_cost = 0.0
        if "sale_price" not in data:
            p.sale_price = p.margin or 0.0
        if "purchase_price" not in data:
            p.purchase_price = 0.0

    db.commit()
    db.refresh(p)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_EDIT", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"product_id": p.id, "fields": sorted(data)},
    )
    return p


# =========================
# REPRICE ONE PRODUCT
# =========================
@router.post("/products/{product_id}/reprice", response_model=product_schemas.ProductOut)
def reprice_one(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    p = _get_product_or_404(db, product_id)
    if p.is_composed:
        raise HTTPException(status_code=400, detail="Composed products are not priced by weight")
    if not p.weight:
        raise HTTPException(status_code=400, detail="Product has no weight")

    before = p.sale_price
    rates = get_account_settings(db)
    reprice_product(p, rates.material_price_per_gram, rates.labor_price_per_gram)
    db.commit()
    db.refresh(p)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_REPRICE", resource="products",
        status="SUCCESS", ip=client_ip(request),
        meta={"product_id": p.id, "before": before, "after": p.sale_price},
    )
    return p


# =========================
# IMAGE UPLOAD
# =========================
@router.post("/products/{product_id}/image", response_model=product_schemas.ProductOut)
def upload_image(
    product_id: int,
    request: Request,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    p = _get_product_or_404(db, product_id)
    try:
        url = upload_product_image(p.id, file, replaces=p.image_url)
    except HTTPException as e:
        write_log(
            db, user_id=current_user.id, action="PRODUCT_IMAGE", resource="products",
            status="FAIL", ip=client_ip(request), meta={"product_id": p.id, "reason": e.detail},
        )
        raise

    p.image_url = url
    db.commit()
    db.refresh(p)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_IMAGE", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"product_id": p.id, "url": url},
    )
    return p


# =========================
# DELETE
# =========================
@router.delete("/products/{product_id}")
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    product = _get_product_or_404(db, product_id)

    # A product used inside a composed product cannot go away
    for parent in db.query(Product).filter(Product.is_composed.is_(True)).all():
        if any(c.get("product_id") == product.id for c in (parent.components or [])):
            raise HTTPException(
                status_code=409,
                detail=f"Product is a component of '{parent.name}'",
            )

    pid, pname, image = product.id, product.name, product.image_url
    db.delete(product)
    db.commit()
    if image:
        try:
            remove_stored_file(image)
        except OSError:
            logger.warning("Could not remove image %s of deleted product %s", image, pid)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": pid},
    )
    return {"detail": f"Product '{pname}' deleted"}
