# backend/routes/catalog.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.category import Category, Depot
from models.product import Product
from models.users import User
from utils.tokenJWT import staff_required, manager_required
from utils.audit import write_log, client_ip
from schemas.catalog import CategoryIn, CategoryOut, DepotIn, DepotUpdate, DepotOut

router = APIRouter(tags=["Catalog"])


def _name_taken(db: Session, model, name: str, exclude_id=None) -> bool:
    q = db.query(model.id).filter(func.lower(model.name) == name.strip().lower())
    if exclude_id is not None:
        q = q.filter(model.id != exclude_id)
    return q.first() is not None


# =========================
# CATEGORIES
# =========================
@router.get("/categories", response_model=List[CategoryOut])
def list_categories(db: Session = Depends(get_db), current_user: User = Depends(staff_required)):
    return db.query(Category).order_by(Category.name.asc()).all()


@router.post("/categories", response_model=CategoryOut, status_code=201)
def create_category(
    payload: CategoryIn,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    if _name_taken(db, Category, payload.name):
        raise HTTPException(status_code=409, detail="Category already exists")
    c = Category(name=payload.name.strip())
    db.add(c)
    db.commit()
    db.refresh(c)
    write_log(db, user_id=current_user.id, action="CATEGORY_CREATE", resource="categories",
              status="SUCCESS", ip=client_ip(request), meta={"id": c.id, "name": c.name})
    return c


@router.put("/categories/{category_id}", response_model=CategoryOut)
def rename_category(
    category_id: int,
    payload: CategoryIn,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    c = db.get(Category, category_id)
    if not c:
        raise HTTPException(status_code=404, detail="Category not found")
    if _name_taken(db, Category, payload.name, exclude_id=c.id):
        raise HTTPException(status_code=409, detail="Category already exists")
    c.name = payload.name.strip()
    db.commit()
    db.refresh(c)
    write_log(db, user_id=current_user.id, action="CATEGORY_UPDATE", resource="categories",
              status="SUCCESS", ip=client_ip(request), meta={"id": c.id, "name": c.name})
    return c


@router.delete("/categories/{category_id}")
def delete_category(
    category_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    c = db.get(Category, category_id)
    if not c:
        raise HTTPException(status_code=404, detail="Category not found")
    in_use = db.query(func.count(Product.id)).filter(Product.category_id == c.id).scalar()
    if in_use:
        raise HTTPException(status_code=409, detail=f"Category is used by {in_use} product(s)")
    db.delete(c)
    db.commit()
    write_log(db, user_id=current_user.id, action="CATEGORY_DELETE", resource="categories",
              status="SUCCESS", ip=client_ip(request), meta={"id": category_id})
    return {"detail": "Category deleted"}


# =========================
# DEPOTS
# =========================
@router.get("/depots", response_model=List[DepotOut])
def list_depots(db: Session = Depends(get_db), current_user: User = Depends(staff_required)):
    return db.query(Depot).order_by(Depot.name.asc()).all()


@router.post("/depots", response_model=DepotOut, status_code=201)
def create_depot(
    payload: DepotIn,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    if _name_taken(db, Depot, payload.name):
        raise HTTPException(status_code=409, detail="Depot already exists")
    d = Depot(name=payload.name.strip(), address=payload.address)
    db.add(d)
    db.commit()
    db.refresh(d)
    write_log(db, user_id=current_user.id, action="DEPOT_CREATE", resource="depots",
              status="SUCCESS", ip=client_ip(request), meta={"id": d.id, "name": d.name})
    return d


@router.patch("/depots/{depot_id}", response_model=DepotOut)
def update_depot(
    depot_id: int,
    payload: DepotUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    d = db.get(Depot, depot_id)
    if not d:
        raise HTTPException(status_code=404, detail="Depot not found")
    if payload.name is not None:
        if _name_taken(db, Depot, payload.name, exclude_id=d.id):
            raise HTTPException(status_code=409, detail="Depot already exists")
        d.name = payload.name.strip()
    if payload.address is not None:
        d.address = payload.address
    db.commit()
    db.refresh(d)
    write_log(db, user_id=current_user.id, action="DEPOT_UPDATE", resource="depots",
              status="SUCCESS", ip=client_ip(request), meta={"id": d.id})
    return d


@router.delete("/depots/{depot_id}")
def delete_depot(
    depot_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    d = db.get(Depot, depot_id)
    if not d:
        raise HTTPException(status_code=404, detail="Depot not found")
    in_use = db.query(func.count(Product.id)).filter(Product.depot_id == d.id).scalar()
    if in_use:
        raise HTTPException(status_code=409, detail=f"Depot holds {in_use} product(s)")
    db.delete(d)
    db.commit()
    write_log(db, user_id=current_user.id, action="DEPOT_DELETE", resource="depots",
              status="SUCCESS", ip=client_ip(request), meta={"id": depot_id})
    return {"detail": "Depot deleted"}
