import pytest

from models.product import Product
from models.register import RegisterTransaction


def _sell(client, headers, items, **body):
    payload = {"items": items}
    payload.update(body)
    return client.post("/sales", json=payload, headers=headers)


def _client(client, headers, **body):
    payload = {"firstName": "Amina", "lastName": "Benali", "phone": "0600000000"}
    payload.update(body)
    return client.post("/clients", json=payload, headers=headers).json()


def test_sale_decrements_stock_and_numbers_sequentially(client, db, team_headers, make_product):
    p = make_product(name="Bague", sale_price=300.0, quantity=5)
    res = _sell(client, team_headers, [{"productId": p.id, "quantity": 2}], paymentMethod="card")
    assert res.status_code == 201
    sale = res.json()
    assert sale["fullNumber"] == "V-000001"
    assert sale["totalAmount"] == pytest.approx(600.0)
    assert sale["items"][0]["productName"] == "Bague"
    assert sale["items"][0]["unitPrice"] == 300.0

    second = _sell(client, team_headers, [{"productId": p.id, "quantity": 1, "unitPrice": 250}]).json()
    assert second["fullNumber"] == "V-000002"
    assert second["totalAmount"] == 250

    db.expire_all()
    assert db.get(Product, p.id).quantity == 2


def test_insufficient_stock_leaves_everything_untouched(client, db, team_headers, make_product):
    a = make_product(quantity=5)
    b = make_product(quantity=1)
    res = _sell(client, team_headers, [{"productId": a.id, "quantity": 2}, {"productId": b.id, "quantity": 2}])
    assert res.status_code == 400

    db.expire_all()
    assert db.get(Product, a.id).quantity == 5
    assert client.get("/sales", headers=team_headers).json()["total"] == 0


def test_same_product_twice_counts_against_stock(client, team_headers, make_product):
    p = make_product(quantity=3)
    res = _sell(client, team_headers, [{"productId": p.id, "quantity": 2}, {"productId": p.id, "quantity": 2}])
    assert res.status_code == 400


def test_empty_sale_is_rejected(client, team_headers):
    assert _sell(client, team_headers, []).status_code == 422


def test_cash_sale_feeds_open_register(client, db, team_headers, make_product):
    p = make_product(sale_price=100.0, quantity=10)
    client.post("/register/open", json={"openingBalance": 50}, headers=team_headers)

    cash = _sell(client, team_headers, [{"productId": p.id, "quantity": 2}], paymentMethod="cash").json()
    _sell(client, team_headers, [{"productId": p.id, "quantity": 1}], paymentMethod="card")

    current = client.get("/register/current", headers=team_headers).json()
    assert current["currentBalance"] == pytest.approx(250.0)

    tx = db.query(RegisterTransaction).one()
    assert tx.sale_id == cash["id"]
    assert tx.amount == pytest.approx(200.0)


def test_cash_sale_without_register_still_succeeds(client, db, team_headers, make_product):
    p = make_product(sale_price=100.0)
    assert _sell(client, team_headers, [{"productId": p.id, "quantity": 1}]).status_code == 201
    assert db.query(RegisterTransaction).count() == 0


def test_cancel_restores_stock_and_refunds_drawer(client, db, team_headers, admin_headers, make_product):
    p = make_product(sale_price=100.0, quantity=4)
    client.post("/register/open", json={"openingBalance": 0}, headers=team_headers)
    sale = _sell(client, team_headers, [{"productId": p.id, "quantity": 3}]).json()

    assert client.post(f"/sales/{sale['id']}/cancel", headers=team_headers).status_code == 403
    res = client.post(f"/sales/{sale['id']}/cancel", headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["status"] == "cancelled"
    assert client.post(f"/sales/{sale['id']}/cancel", headers=admin_headers).status_code == 409

    db.expire_all()
    assert db.get(Product, p.id).quantity == 4
    assert client.get("/register/current", headers=team_headers).json()["currentBalance"] == pytest.approx(0.0)


def test_list_filters(client, team_headers, make_product):
    p = make_product(sale_price=100.0, quantity=50)
    amina = _client(client, team_headers)
    _sell(client, team_headers, [{"productId": p.id, "quantity": 1}], clientId=amina["id"])
    _sell(client, team_headers, [{"productId": p.id, "quantity": 5}], paymentMethod="card")

    res = client.get("/sales", params={"client": "benali"}, headers=team_headers).json()
    assert res["total"] == 1
    assert res["items"][0]["clientName"] == "Amina Benali"

    res = client.get("/sales", params={"min_amount": 200}, headers=team_headers).json()
    assert [s["totalAmount"] for s in res["items"]] == [500.0]

    res = client.get("/sales", params={"payment_method": "card"}, headers=team_headers).json()
    assert res["total"] == 1

    res = client.get("/sales", params={"sort_by": "number", "order": "asc"}, headers=team_headers).json()
    assert [s["fullNumber"] for s in res["items"]] == ["V-000001", "V-000002"]

    history = client.get(f"/clients/{amina['id']}/sales", headers=team_headers).json()
    assert len(history) == 1


def test_sale_for_unknown_client(client, team_headers, make_product):
    p = make_product(sale_price=10.0)
    res = _sell(client, team_headers, [{"productId": p.id, "quantity": 1}], clientId=42)
    assert res.status_code == 404


def test_receipt_pdf(client, admin_headers, team_headers, make_product, tmp_path):
    client.patch("/settings", json={"businessName": "Bijouterie Atlas", "phone": "0522"}, headers=admin_headers)
    p = make_product(name="Collier", sale_price=450.0)
    sale = _sell(client, team_headers, [{"productId": p.id, "quantity": 1}]).json()

    res = client.get(f"/sales/{sale['id']}/receipt", headers=team_headers)
    assert res.status_code == 200
    assert res.headers["content-type"] == "application/pdf"
    assert res.content.startswith(b"%PDF")
    assert f"{sale['fullNumber']}.pdf" in res.headers["content-disposition"]
    assert (tmp_path / "receipts" / f"{sale['fullNumber']}.pdf").exists()
    assert client.get("/sales/999/receipt", headers=team_headers).status_code == 404
