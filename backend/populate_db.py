import os
import random
import sys

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from database import SessionLocal, init_db
from models.users import User, ROLE_SUPER, ROLE_ADMIN
from models.category import Category, Depot
from models.product import Product
from utils.account import get_account_settings
from utils.barcode import generate_unique_barcode
from utils.hashing import get_password_hash
from utils.pricing import compute_price_breakdown

# Configuration
SUPER_EMAIL = os.getenv("SEED_SUPER_EMAIL", "super@atelier.ma")
ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@atelier.ma")
SEED_PASSWORD = os.getenv("SEED_PASSWORD", "changeme")

MATERIAL_RATE = 650.0  # per gram
LABOR_RATE = 80.0      # per gram

CATEGORIES = ["Bagues", "Colliers", "Bracelets", "Boucles d'oreilles", "Montres"]

DEPOTS = [
    ("Dépôt Central", "123 Rue Principale, 75001 Paris"),
    ("Entrepôt Nord", "45 Avenue du Commerce, 59000 Lille"),
    ("Entrepôt Sud", "78 Boulevard Maritime, 13001 Marseille"),
]

# name, category, weight (g), margin
PRODUCTS = [
    ("Bague solitaire or 18k", "Bagues", 3.2, 900.0),
    ("Alliance or jaune", "Bagues", 4.5, 600.0),
    ("Collier maille forçat", "Colliers", 7.8, 1200.0),
    ("Pendentif main de Fatma", "Colliers", 2.1, 450.0),
    ("Bracelet jonc ciselé", "Bracelets", 12.0, 1500.0),
    ("Gourmette enfant", "Bracelets", 3.0, 350.0),
    ("Créoles or blanc", "Boucles d'oreilles", 2.6, 500.0),
]
# End Configuration


def _ensure_user(session, email, role, first_name, last_name):
    user = session.query(User).filter(User.email == email).first()
    if user:
        return user
    user = User(
        email=email,
        password_hash=get_password_hash(SEED_PASSWORD),
        role=role,
        first_name=first_name,
        last_name=last_name,
    )
    session.add(user)
    session.flush()
    print(f"Utilisateur créé : {email} ({role})")
    return user


def populate():
    init_db()
    session = SessionLocal()
    try:
        _ensure_user(session, SUPER_EMAIL, ROLE_SUPER, "Super", "Admin")
        admin = _ensure_user(session, ADMIN_EMAIL, ROLE_ADMIN, "Gérant", "Boutique")
        session.commit()

        settings_row = get_account_settings(session)
        settings_row.owner_id = admin.id
        settings_row.material_price_per_gram = MATERIAL_RATE
        settings_row.labor_price_per_gram = LABOR_RATE

        categories = {}
        for name in CATEGORIES:
            c = session.query(Category).filter(Category.name == name).first() or Category(name=name)
            session.add(c)
            categories[name] = c

        depots = []
        for name, address in DEPOTS:
            d = session.query(Depot).filter(Depot.name == name).first() or Depot(name=name, address=address)
            session.add(d)
            depots.append(d)
        session.flush()

        def barcode_taken(code):
            return session.query(Product.id).filter(Product.barcode == code).first() is not None

        created = 0
        for idx, (name, category, weight, margin) in enumerate(PRODUCTS, start=1):
            reference = f"REF-SEED{idx:04d}"
            if session.query(Product.id).filter(Product.reference == reference).first():
                continue
            b = compute_price_breakdown(weight, MATERIAL_RATE, LABOR_RATE, margin)
            session.add(Product(
                name=name,
                reference=reference,
                barcode=generate_unique_barcode(barcode_taken),
                weight=weight,
                material_cost=b.material_cost,
                labor_cost=b.labor_cost,
                margin=margin,
                purchase_price=b.material_cost,
                sale_price=b.sale_price,
                minimum_sale_price=max(0.0, b.sale_price - margin / 2),
                quantity=random.randint(1, 15),
                category_id=categories[category].id,
                depot_id=random.choice(depots).id,
            ))
            session.flush()
            created += 1

        session.commit()
        print(f"Produits insérés : {created}")
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    populate()
