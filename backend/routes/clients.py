# backend/routes/clients.py
from typing import List, Optional, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import get_db
from models.client import Client, Supplier
from models.sale import Sale
from models.users import User
from utils.tokenJWT import staff_required, manager_required
from utils.audit import write_log, client_ip
from schemas.client import (
    ClientCreate, ClientUpdate, ClientOut, ClientPage,
    SupplierCreate, SupplierUpdate, SupplierOut, SupplierPage,
)
from schemas.sale import SaleListItem

router = APIRouter(tags=["Clients"])


def _paginate(query, page: int, page_size: int) -> dict:
    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}


# =========================
# CLIENTS
# =========================
@router.get("/clients", response_model=ClientPage)
def list_clients(
    q: Optional[str] = Query(None, description="Search by name or phone"),
    city: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    sort_by: Literal["id", "last_name", "first_name", "city", "created_at"] = "last_name",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    query = db.query(Client)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(
            Client.first_name.ilike(like),
            Client.last_name.ilike(like),
            Client.phone.ilike(like),
        ))
    if city:
        query = query.filter(Client.city.ilike(f"%{city}%"))

    sort_map = {
        "id": Client.id,
        "last_name": Client.last_name,
        "first_name": Client.first_name,
        "city": Client.city,
        "created_at": Client.created_at,
    }
    col = sort_map.get(sort_by, Client.last_name)
    query = query.order_by(col.asc() if order == "asc" else col.desc(), Client.id.asc())
    return _paginate(query, page, page_size)


@router.post("/clients", response_model=ClientOut, status_code=201)
def create_client(
    payload: ClientCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    c = Client(**payload.model_dump())
    db.add(c)
    db.commit()
    db.refresh(c)
    write_log(db, user_id=current_user.id, action="CLIENT_CREATE", resource="clients",
              status="SUCCESS", ip=client_ip(request), meta={"id": c.id})
    return c


@router.get("/clients/{client_id}", response_model=ClientOut)
def get_client(client_id: int, db: Session = Depends(get_db), current_user: User = Depends(staff_required)):
    c = db.get(Client, client_id)
    if not c:
        raise HTTPException(status_code=404, detail="Client not found")
    return c


@router.patch("/clients/{client_id}", response_model=ClientOut)
def update_client(
    client_id: int,
    payload: ClientUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    c = db.get(Client, client_id)
    if not c:
        raise HTTPException(status_code=404, detail="Client not found")
    data = payload.model_dump(exclude_unset=True)
    for key, value in data.items():
        setattr(c, key, value)
    db.commit()
    db.refresh(c)
    write_log(db, user_id=current_user.id, action="CLIENT_UPDATE", resource="clients",
              status="SUCCESS", ip=client_ip(request), meta={"id": c.id, "fields": sorted(data)})
    return c


@router.delete("/clients/{client_id}")
def delete_client(
    client_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    c = db.get(Client, client_id)
    if not c:
        raise HTTPException(status_code=404, detail="Client not found")
    # Past sales keep their totals; they just lose the client link
    db.query(Sale).filter(Sale.client_id == c.id).update({Sale.client_id: None}, synchronize_session=False)
    db.delete(c)
    db.commit()
    write_log(db, user_id=current_user.id, action="CLIENT_DELETE", resource="clients",
              status="SUCCESS", ip=client_ip(request), meta={"id": client_id})
    return {"detail": "Client deleted"}


# Purchase history of one client, newest first
@router.get("/clients/{client_id}/sales", response_model=List[SaleListItem])
def client_sales(client_id: int, db: Session = Depends(get_db), current_user: User = Depends(staff_required)):
    if not db.get(Client, client_id):
        raise HTTPException(status_code=404, detail="Client not found")
    return (
        db.query(Sale)
        .filter(Sale.client_id == client_id)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .all()
    )


# =========================
# SUPPLIERS
# =========================
@router.get("/suppliers", response_model=SupplierPage)
def list_suppliers(
    q: Optional[str] = Query(None, description="Search by name, business or phone"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_required),
):
    query = db.query(Supplier)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(
            Supplier.first_name.ilike(like),
            Supplier.last_name.ilike(like),
            Supplier.business_name.ilike(like),
            Supplier.phone.ilike(like),
        ))
    query = query.order_by(Supplier.last_name.asc(), Supplier.id.asc())
    return _paginate(query, page, page_size)


@router.post("/suppliers", response_model=SupplierOut, status_code=201)
def create_supplier(
    payload: SupplierCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    s = Supplier(**payload.model_dump())
    db.add(s)
    db.commit()
    db.refresh(s)
    write_log(db, user_id=current_user.id, action="SUPPLIER_CREATE", resource="suppliers",
              status="SUCCESS", ip=client_ip(request), meta={"id": s.id})
    return s


@router.get("/suppliers/{supplier_id}", response_model=SupplierOut)
def get_supplier(supplier_id: int, db: Session = Depends(get_db), current_user: User = Depends(staff_required)):
    s = db.get(Supplier, supplier_id)
    if not s:
        raise HTTPException(status_code=404, detail="Supplier not found")
    return s


@router.patch("/suppliers/{supplier_id}", response_model=SupplierOut)
def update_supplier(
    supplier_id: int,
    payload: SupplierUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    s = db.get(Supplier, supplier_id)
    if not s:
        raise HTTPException(status_code=404, detail="Supplier not found")
    data = payload.model_dump(exclude_unset=True)
    for key, value in data.items():
        setattr(s, key, value)
    db.commit()
    db.refresh(s)
    write_log(db, user_id=current_user.id, action="SUPPLIER_UPDATE", resource="suppliers",
              status="SUCCESS", ip=client_ip(request), meta={"id": s.id})
    return s


@router.delete("/suppliers/{supplier_id}")
def delete_supplier(
    supplier_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    s = db.get(Supplier, supplier_id)
    if not s:
        raise HTTPException(status_code=404, detail="Supplier not found")
    db.delete(s)
    db.commit()
    write_log(db, user_id=current_user.id, action="SUPPLIER_DELETE", resource="suppliers",
              status="SUCCESS", ip=client_ip(request), meta={"id": supplier_id})
    return {"detail": "Supplier deleted"}
