def test_category_crud(client, admin_headers, team_headers):
    res = client.post("/categories", json={"name": "Bagues"}, headers=admin_headers)
    assert res.status_code == 201
    cat_id = res.json()["id"]

    assert client.post("/categories", json={"name": "bagues"}, headers=admin_headers).status_code == 409
    assert client.post("/categories", json={"name": "Colliers"}, headers=team_headers).status_code == 403
    client.post("/categories", json={"name": "Colliers"}, headers=admin_headers)

    names = [c["name"] for c in client.get("/categories", headers=team_headers).json()]
    assert names == ["Bagues", "Colliers"]

    res = client.put(f"/categories/{cat_id}", json={"name": "Alliances"}, headers=admin_headers)
    assert res.json()["name"] == "Alliances"
    assert client.delete(f"/categories/{cat_id}", headers=admin_headers).status_code == 200


def test_category_in_use_cannot_be_deleted(client, admin_headers, make_product):
    cat_id = client.post("/categories", json={"name": "Montres"}, headers=admin_headers).json()["id"]
    make_product(category_id=cat_id)
    assert client.delete(f"/categories/{cat_id}", headers=admin_headers).status_code == 409


def test_depot_crud(client, admin_headers, make_product):
    res = client.post("/depots", json={"name": "Dépôt Central", "address": "Casablanca"}, headers=admin_headers)
    assert res.status_code == 201
    depot = res.json()
    assert depot["address"] == "Casablanca"

    res = client.patch(f"/depots/{depot['id']}", json={"address": "Rabat"}, headers=admin_headers)
    assert res.json()["address"] == "Rabat"
    assert res.json()["name"] == "Dépôt Central"

    make_product(depot_id=depot["id"])
    assert client.delete(f"/depots/{depot['id']}", headers=admin_headers).status_code == 409
    assert client.delete("/depots/999", headers=admin_headers).status_code == 404


def test_product_reports_category_and_depot_names(client, admin_headers):
    cat_id = client.post("/categories", json={"name": "Bracelets"}, headers=admin_headers).json()["id"]
    depot_id = client.post("/depots", json={"name": "Vitrine"}, headers=admin_headers).json()["id"]
    res = client.post(
        "/products",
        json={"name": "Jonc", "categoryId": cat_id, "depotId": depot_id, "salePrice": 10},
        headers=admin_headers,
    )
    assert res.json()["categoryName"] == "Bracelets"
    assert res.json()["depotName"] == "Vitrine"
