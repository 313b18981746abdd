from datetime import date, timedelta

import pytest


def _promo(client, headers, product_id, **body):
    payload = {
        "productId": product_id,
        "type": "percentage",
        "value": 10,
        "startDate": str(date.today()),
        "endDate": str(date.today()),
    }
    payload.update(body)
    return client.post("/promotions", json=payload, headers=headers)


def test_create_promotion_reports_effective_price(client, admin_headers, make_product):
    p = make_product(sale_price=200.0)
    res = _promo(client, admin_headers, p.id, value=20, description="Fête des mères")
    assert res.status_code == 201
    body = res.json()
    assert body["isActive"] is True
    assert body["productName"] == p.name
    assert body["effectivePrice"] == pytest.approx(160.0)


def test_fixed_discount_can_go_negative(client, admin_headers, make_product):
    p = make_product(sale_price=50.0)
    body = _promo(client, admin_headers, p.id, type="fixed_amount", value=70).json()
    assert body["effectivePrice"] == pytest.approx(-20.0)


def test_end_before_start_is_rejected(client, admin_headers, make_product):
    p = make_product()
    res = _promo(client, admin_headers, p.id, startDate="2024-05-10", endDate="2024-05-01")
    assert res.status_code == 422


def test_unknown_product_and_type(client, admin_headers, make_product):
    assert _promo(client, admin_headers, 999).status_code == 404
    p = make_product()
    assert _promo(client, admin_headers, p.id, type="lottery").status_code == 422


def test_team_cannot_create_promotions(client, team_headers, make_product):
    p = make_product()
    assert _promo(client, team_headers, p.id).status_code == 403


def test_active_filter(client, admin_headers, make_product):
    p = make_product(sale_price=100.0)
    yesterday = date.today() - timedelta(days=1)
    _promo(client, admin_headers, p.id)
    _promo(client, admin_headers, p.id, startDate="2020-01-01", endDate=str(yesterday))

    everything = client.get("/promotions", headers=admin_headers).json()
    assert everything["total"] == 2

    active = client.get("/promotions", params={"active": True, "product_id": p.id}, headers=admin_headers).json()
    assert active["total"] == 1
    assert active["items"][0]["isActive"] is True


def test_inactive_promotion_does_not_change_product_price(client, admin_headers, make_product):
    p = make_product(sale_price=100.0)
    _promo(client, admin_headers, p.id, startDate="2020-01-01", endDate="2020-01-31", value=50)
    body = client.get(f"/products/{p.id}", headers=admin_headers).json()
    assert body["activePromotion"] is None
    assert body["effectivePrice"] == 100.0


def test_delete_promotion(client, admin_headers, make_product):
    p = make_product()
    promo_id = _promo(client, admin_headers, p.id).json()["id"]
    assert client.delete(f"/promotions/{promo_id}", headers=admin_headers).status_code == 200
    assert client.get(f"/promotions/{promo_id}", headers=admin_headers).status_code == 404
