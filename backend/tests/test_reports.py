import pytest


def test_dashboard(client, admin_headers, team_headers, make_product):
    p = make_product(sale_price=100.0, quantity=10)
    make_product(sale_price=50.0, quantity=2)
    client.post("/clients", json={"firstName": "Nadia", "lastName": "Idrissi"}, headers=team_headers)
    client.post("/tasks", json={"title": "Vitrine"}, headers=admin_headers)
    client.post("/sales", json={"items": [{"productId": p.id, "quantity": 1}]}, headers=team_headers)

    res = client.get("/reports/dashboard", headers=team_headers)
    assert res.status_code == 200
    d = res.json()
    assert d["productCount"] == 2
    assert d["stockValue"] == pytest.approx(100.0 * 9 + 50.0 * 2)
    assert d["lowStockCount"] == 1
    assert d["clientCount"] == 1
    assert d["openTasks"] == 1
    assert d["registerOpen"] is False
    assert d["registerBalance"] is None


def test_low_stock(client, team_headers, make_product):
    make_product(name="A", quantity=0)
    make_product(name="B", quantity=3)
    make_product(name="C", quantity=30)

    res = client.get("/reports/low-stock", headers=team_headers).json()
    assert res["threshold"] == 5
    assert [i["name"] for i in res["items"]] == ["A", "B"]

    res = client.get("/reports/low-stock", params={"threshold": 0}, headers=team_headers).json()
    assert res["total"] == 1


def test_sales_summary_ignores_cancelled(client, admin_headers, team_headers, make_product):
    p = make_product(sale_price=100.0, quantity=10)
    kept = client.post("/sales", json={"items": [{"productId": p.id, "quantity": 2}]}, headers=team_headers).json()
    dropped = client.post("/sales", json={"items": [{"productId": p.id, "quantity": 1}]}, headers=team_headers).json()
    client.post(f"/sales/{dropped['id']}/cancel", headers=admin_headers)

    res = client.get("/reports/sales-summary", headers=admin_headers)
    assert res.status_code == 200
    body = res.json()
    assert body["totalSales"] == 1
    assert body["totalAmount"] == pytest.approx(kept["totalAmount"])
    assert len(body["items"]) == 1

    assert client.get("/reports/sales-summary", headers=team_headers).status_code == 403
    bad = client.get("/reports/sales-summary", params={"date_from": "2024-02-01", "date_to": "2024-01-01"},
                     headers=admin_headers)
    assert bad.status_code == 400
