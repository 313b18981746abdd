import io

import pytest

from models.product import Product
from utils.barcode import is_valid_ean13


def _create(client, headers, **body):
    payload = {"name": "Bague", "weight": 0}
    payload.update(body)
    return client.post("/products", json=payload, headers=headers)


def test_weighted_product_is_priced_from_rates(client, rates, team_headers):
    res = _create(client, team_headers, name="Bague or", weight=2.5, margin=50, salePrice=1,
                  minimumSalePrice=300)
    assert res.status_code == 201
    p = res.json()
    assert p["materialCost"] == pytest.approx(250.0)
    assert p["laborCost"] == pytest.approx(50.0)
    assert p["costPrice"] == pytest.approx(300.0)
    assert p["salePrice"] == pytest.approx(350.0)
    assert p["purchasePrice"] == pytest.approx(250.0)
    assert p["minimumSalePrice"] == 300
    assert p["reference"].startswith("REF-")
    assert is_valid_ean13(p["barcode"])


def test_weightless_product_takes_prices_from_body(client, rates, team_headers):
    res = _create(client, team_headers, name="Écrin", purchasePrice=20, salePrice=45)
    assert res.status_code == 201
    p = res.json()
    assert p["salePrice"] == 45
    assert p["purchasePrice"] == 20
    assert p["materialCost"] == 0


def test_snake_case_input_is_accepted(client, team_headers):
    res = client.post("/products", json={"name": "Chaîne", "sale_price": 99, "purchase_price": 40},
                      headers=team_headers)
    assert res.status_code == 201
    assert res.json()["salePrice"] == 99


def test_duplicate_reference_conflicts(client, team_headers):
    assert _create(client, team_headers, reference="ref-1").status_code == 201
    res = _create(client, team_headers, reference="REF-1")
    assert res.status_code == 409


def test_negative_weight_is_rejected(client, team_headers):
    assert _create(client, team_headers, weight=-1).status_code == 422


def test_unknown_category_is_rejected(client, team_headers):
    assert _create(client, team_headers, categoryId=999).status_code == 404


def test_list_filters_and_sorting(client, team_headers, make_product):
    make_product(name="Collier perle", sale_price=300, quantity=2)
    make_product(name="Bague argent", sale_price=120, quantity=8, barcode="6110000000017")
    make_product(name="Bracelet", sale_price=500, quantity=20)

    res = client.get("/products", params={"q": "bague"}, headers=team_headers).json()
    assert [p["name"] for p in res["items"]] == ["Bague argent"]

    res = client.get("/products", params={"q": "6110000000017"}, headers=team_headers).json()
    assert res["total"] == 1

    res = client.get("/products", params={"low_stock": True}, headers=team_headers).json()
    assert [p["name"] for p in res["items"]] == ["Collier perle"]

    res = client.get("/products", params={"sort_by": "sale_price", "order": "desc"}, headers=team_headers).json()
    assert [p["salePrice"] for p in res["items"]] == [500, 300, 120]
    assert res["total"] == 3 and res["page"] == 1


def test_barcode_lookup(client, team_headers, make_product):
    p = make_product(name="Montre", barcode="6110000000017", sale_price=900)
    res = client.get("/products/barcode/6110000000017", headers=team_headers)
    assert res.status_code == 200
    assert res.json()["id"] == p.id
    assert res.json()["effectivePrice"] == 900
    assert client.get("/products/barcode/0000000000000", headers=team_headers).status_code == 404


def test_patch_weight_reprices(client, rates, team_headers):
    p = _create(client, team_headers, weight=1, margin=10).json()
    assert p["salePrice"] == pytest.approx(130.0)

    res = client.patch(f"/products/{p['id']}", json={"weight": 2}, headers=team_headers)
    assert res.status_code == 200
    assert res.json()["salePrice"] == pytest.approx(250.0)

    res = client.patch(f"/products/{p['id']}", json={"minimumSalePrice": 200}, headers=team_headers)
    assert res.json()["minimumSalePrice"] == 200
    assert res.json()["salePrice"] == pytest.approx(250.0)


def test_patch_prices_of_weighted_product_are_rederived(client, rates, team_headers):
    p = _create(client, team_headers, weight=2, margin=10).json()

    res = client.patch(f"/products/{p['id']}", json={"salePrice": 999, "purchasePrice": 1},
                       headers=team_headers)
    assert res.status_code == 200
    body = res.json()
    assert body["salePrice"] == pytest.approx(body["materialCost"] + body["laborCost"] + body["margin"])
    assert body["salePrice"] == pytest.approx(250.0)
    assert body["purchasePrice"] == pytest.approx(200.0)


def test_patch_weight_to_zero_switches_to_manual_pricing(client, rates, team_headers):
    p = _create(client, team_headers, weight=2, margin=10).json()

    body = client.patch(f"/products/{p['id']}", json={"weight": 0}, headers=team_headers).json()
    assert body["materialCost"] == 0 and body["laborCost"] == 0
    assert body["salePrice"] == pytest.approx(10.0)
    assert body["purchasePrice"] == 0

    other = _create(client, team_headers, weight=1, margin=5).json()
    body = client.patch(f"/products/{other['id']}", json={"weight": 0, "salePrice": 80, "purchasePrice": 30},
                        headers=team_headers).json()
    assert body["salePrice"] == 80
    assert body["purchasePrice"] == 30

    # Manual prices of a weightless product stay editable
    body = client.patch(f"/products/{other['id']}", json={"salePrice": 95}, headers=team_headers).json()
    assert body["salePrice"] == 95


def test_list_shows_promotional_price(client, admin_headers, make_product):
    p = make_product(name="Bague", sale_price=200.0)
    make_product(name="Collier", sale_price=300.0)
    client.post(
        "/promotions",
        json={"productId": p.id, "type": "percentage", "value": 20,
              "startDate": "2000-01-01", "endDate": "2999-12-31"},
        headers=admin_headers,
    )

    items = {i["name"]: i for i in client.get("/products", headers=admin_headers).json()["items"]}
    assert items["Bague"]["effectivePrice"] == pytest.approx(160.0)
    assert items["Bague"]["activePromotion"]["value"] == 20
    assert items["Collier"]["effectivePrice"] == pytest.approx(300.0)
    assert items["Collier"]["activePromotion"] is None


def test_reprice_keeps_minimum_price_gap(client, db, rates, team_headers, make_product):
    p = make_product(weight=1.0, margin=30.0, sale_price=100.0, minimum_sale_price=80.0)
    res = client.post(f"/products/{p.id}/reprice", headers=team_headers)
    assert res.status_code == 200
    body = res.json()
    # 1g * (100 + 20) + 30
    assert body["salePrice"] == pytest.approx(150.0)
    assert body["minimumSalePrice"] == pytest.approx(130.0)
    assert body["purchasePrice"] == pytest.approx(100.0)


def test_reprice_rejects_composed_and_weightless(client, team_headers, make_product):
    composed = make_product(is_composed=True, components=[])
    flat = make_product(weight=0)
    assert client.post(f"/products/{composed.id}/reprice", headers=team_headers).status_code == 400
    assert client.post(f"/products/{flat.id}/reprice", headers=team_headers).status_code == 400


def test_composed_product_uses_markup(client, team_headers, make_product):
    a = make_product(purchase_price=100.0)
    b = make_product(purchase_price=50.0)
    res = client.post(
        "/products/composed",
        json={
            "name": "Parure",
            "components": [
                {"productId": a.id, "quantity": 1},
                {"productId": b.id, "quantity": 1},
                {"productId": a.id, "quantity": 1},
            ],
        },
        headers=team_headers,
    )
    assert res.status_code == 201
    body = res.json()
    assert body["isComposed"] is True
    assert body["purchasePrice"] == pytest.approx(250.0)
    assert body["salePrice"] == pytest.approx(325.0)
    assert sorted((c["productId"], c["quantity"]) for c in body["components"]) == [(a.id, 2), (b.id, 1)]


def test_composed_product_manual_price(client, team_headers, make_product):
    a = make_product(purchase_price=100.0)
    res = client.post(
        "/products/composed",
        json={"name": "Coffret", "components": [{"productId": a.id, "quantity": 2}], "manualSalePrice": 199.5},
        headers=team_headers,
    )
    assert res.json()["salePrice"] == 199.5
    assert res.json()["purchasePrice"] == 200.0


def test_composed_product_validation(client, team_headers, make_product):
    a = make_product()
    res = client.post("/products/composed", json={"name": "Vide", "components": []}, headers=team_headers)
    assert res.status_code == 422
    res = client.post(
        "/products/composed",
        json={"name": "Fantôme", "components": [{"productId": a.id, "quantity": 1}, {"productId": 404, "quantity": 1}]},
        headers=team_headers,
    )
    assert res.status_code == 404
    res = client.post(
        "/products/composed",
        json={"name": "Zéro", "components": [{"productId": a.id, "quantity": 0}]},
        headers=team_headers,
    )
    assert res.status_code == 422


def test_component_cannot_be_deleted(client, admin_headers, make_product):
    a = make_product()
    make_product(is_composed=True, components=[{"product_id": a.id, "quantity": 1}])
    assert client.delete(f"/products/{a.id}", headers=admin_headers).status_code == 409


def test_delete_requires_manager(client, db, team_headers, admin_headers, make_product):
    p = make_product()
    assert client.delete(f"/products/{p.id}", headers=team_headers).status_code == 403
    assert client.delete(f"/products/{p.id}", headers=admin_headers).status_code == 200
    assert db.query(Product).filter(Product.id == p.id).first() is None


def test_detail_shows_latest_active_promotion(client, admin_headers, make_product):
    p = make_product(sale_price=200.0)
    for value in (10, 25):
        client.post(
            "/promotions",
            json={"productId": p.id, "type": "percentage", "value": value,
                  "startDate": "2000-01-01", "endDate": "2999-12-31"},
            headers=admin_headers,
        )
    body = client.get(f"/products/{p.id}", headers=admin_headers).json()
    assert body["activePromotion"]["value"] == 25
    assert body["effectivePrice"] == pytest.approx(150.0)


def test_image_upload(client, team_headers, make_product):
    p = make_product()
    res = client.post(
        f"/products/{p.id}/image",
        files={"file": ("ring.png", io.BytesIO(b"\x89PNG fake"), "image/png")},
        headers=team_headers,
    )
    assert res.status_code == 200
    url = res.json()["imageUrl"]
    assert url.startswith(f"/uploads/products/{p.id}-") and url.endswith(".png")


def test_image_upload_replaces_previous_file(client, team_headers, make_product, tmp_path):
    p = make_product()
    first = client.post(
        f"/products/{p.id}/image",
        files={"file": ("a.jpg", io.BytesIO(b"one"), "image/jpeg")},
        headers=team_headers,
    ).json()["imageUrl"]
    second = client.post(
        f"/products/{p.id}/image",
        files={"file": ("b.webp", io.BytesIO(b"two"), "image/webp")},
        headers=team_headers,
    ).json()["imageUrl"]
    assert first != second
    assert not (tmp_path / "uploads" / first[len("/uploads/"):]).exists()
    assert (tmp_path / "uploads" / second[len("/uploads/"):]).exists()


def test_image_upload_rejects_bad_type_and_size(client, team_headers, make_product, monkeypatch):
    from config import settings

    p = make_product()
    res = client.post(
        f"/products/{p.id}/image",
        files={"file": ("notes.txt", io.BytesIO(b"hello"), "text/plain")},
        headers=team_headers,
    )
    assert res.status_code == 415

    monkeypatch.setattr(settings, "MAX_IMAGE_BYTES", 4)
    res = client.post(
        f"/products/{p.id}/image",
        files={"file": ("big.png", io.BytesIO(b"123456789"), "image/png")},
        headers=team_headers,
    )
    assert res.status_code == 413
