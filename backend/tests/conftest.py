"""
Pytest configuration and shared fixtures for the POS API tests.
"""
import os
import tempfile

# Settings are read at import time, so point them at throwaway locations first
_BOOT_DIR = tempfile.mkdtemp(prefix="atelier-pos-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_BOOT_DIR, 'boot.db')}")
os.environ.setdefault("UPLOAD_DIR", os.path.join(_BOOT_DIR, "uploads"))
os.environ.setdefault("RECEIPT_DIR", os.path.join(_BOOT_DIR, "receipts"))
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from config import settings
from database import Base, get_db
from main import app
from models.users import User
from models.product import Product
from models.settings import AccountSettings
from utils.hashing import get_password_hash
from utils.tokenJWT import create_access_token

TEST_PASSWORD = "secret123"


@pytest.fixture(scope="function")
def session_factory(tmp_path):
    """Fresh SQLite database file for every test."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    """A session for arranging and inspecting data directly."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory, tmp_path, monkeypatch):
    """A test client for the app, bound to the per-test database."""
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setattr(settings, "RECEIPT_DIR", str(tmp_path / "receipts"))

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create_user(db, email, role, first_name="Test", last_name="User"):
    user = User(
        email=email,
        password_hash=get_password_hash(TEST_PASSWORD),
        role=role,
        first_name=first_name,
        last_name=last_name,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers_for(user):
    token = create_access_token(data={"sub": user.email, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def super_user(db):
    return _create_user(db, "super@example.com", "super", "Super", "User")


@pytest.fixture
def admin_user(db):
    return _create_user(db, "admin@example.com", "admin", "Shop", "Owner")


@pytest.fixture
def team_user(db):
    return _create_user(db, "team@example.com", "team", "Staff", "Member")


@pytest.fixture
def super_headers(super_user):
    return auth_headers_for(super_user)


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers_for(admin_user)


@pytest.fixture
def team_headers(team_user):
    return auth_headers_for(team_user)


@pytest.fixture
def rates(db):
    """Shop settings with material 100/g and labor 20/g."""
    row = AccountSettings(material_price_per_gram=100.0, labor_price_per_gram=20.0)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture
def make_product(db):
    """Insert a product row directly, bypassing the pricing rules."""
    counter = {"n": 0}

    def _make(**kwargs):
        counter["n"] += 1
        values = {
            "name": f"Product {counter['n']}",
            "reference": f"REF-T{counter['n']:04d}",
            "weight": 0.0,
            "material_cost": 0.0,
            "labor_cost": 0.0,
            "margin": 0.0,
            "purchase_price": 0.0,
            "sale_price": 0.0,
            "minimum_sale_price": 0.0,
            "quantity": 10,
        }
        values.update(kwargs)
        product = Product(**values)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make
