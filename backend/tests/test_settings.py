import pytest

import routes.settings as settings_routes
from models.log import Log
from models.product import Product


def test_settings_are_created_with_defaults(client, team_headers):
    res = client.get("/settings", headers=team_headers)
    assert res.status_code == 200
    body = res.json()
    assert body["businessName"] == "Temps d'Or"
    assert body["theme"] == "light"
    assert body["accentColor"] == "blue"
    assert body["materialPricePerGram"] == 0


def test_update_identity(client, admin_headers, team_headers):
    res = client.patch("/settings", json={"businessName": "Bijouterie Atlas", "theme": "dark"},
                       headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["businessName"] == "Bijouterie Atlas"
    assert res.json()["theme"] == "dark"

    assert client.patch("/settings", json={"theme": "neon"}, headers=admin_headers).status_code == 422
    assert client.patch("/settings", json={"theme": "dark"}, headers=team_headers).status_code == 403


def test_rate_change_reprices_weighted_products(client, db, rates, admin_headers, make_product):
    weighted = make_product(weight=2.0, margin=10.0, material_cost=200.0, labor_cost=40.0,
                            sale_price=250.0, minimum_sale_price=230.0)
    flat = make_product(weight=0.0, sale_price=45.0)
    composed = make_product(is_composed=True, components=[{"product_id": flat.id, "quantity": 1}],
                            sale_price=99.0)

    res = client.put("/settings/rates", json={"materialPricePerGram": 150, "laborPricePerGram": 25},
                     headers=admin_headers)
    assert res.status_code == 200
    body = res.json()
    assert body["updated"] == 1
    assert body["skipped"] == 2
    assert body["failed"] == []
    assert body["materialPricePerGram"] == 150

    db.expire_all()
    w = db.get(Product, weighted.id)
    assert w.material_cost == pytest.approx(300.0)
    assert w.labor_cost == pytest.approx(50.0)
    assert w.purchase_price == pytest.approx(300.0)
    assert w.sale_price == pytest.approx(360.0)
    assert w.minimum_sale_price == pytest.approx(340.0)
    assert db.get(Product, flat.id).sale_price == 45.0
    assert db.get(Product, composed.id).sale_price == 99.0

    assert client.get("/settings", headers=admin_headers).json()["laborPricePerGram"] == 25


def test_failed_rows_are_reported_and_rolled_back_individually(
    client, db, rates, admin_headers, make_product, monkeypatch
):
    good = make_product(weight=1.0, margin=0.0, sale_price=120.0, minimum_sale_price=100.0)
    bad = make_product(weight=1.0, margin=0.0, sale_price=120.0, minimum_sale_price=100.0)

    bad_id = bad.id
    real_reprice = settings_routes.reprice_product

    def flaky(product, material_rate, labor_rate):
        if product.id == bad_id:
            raise ValueError("boom")
        return real_reprice(product, material_rate, labor_rate)

    monkeypatch.setattr(settings_routes, "reprice_product", flaky)

    res = client.put("/settings/rates", json={"materialPricePerGram": 200, "laborPricePerGram": 0},
                     headers=admin_headers)
    assert res.status_code == 200
    body = res.json()
    assert body["updated"] == 1
    assert body["failed"] == [{"productId": bad.id, "reference": bad.reference, "error": "boom"}]

    db.expire_all()
    assert db.get(Product, good.id).sale_price == pytest.approx(200.0)
    assert db.get(Product, bad.id).sale_price == pytest.approx(120.0)

    entry = db.query(Log).filter(Log.action == "SETTINGS_RATES").one()
    assert entry.status == "PARTIAL"
    assert entry.meta["failed"] == [bad.id]


def test_negative_rates_are_rejected(client, admin_headers):
    res = client.put("/settings/rates", json={"materialPricePerGram": -1, "laborPricePerGram": 0},
                     headers=admin_headers)
    assert res.status_code == 422
