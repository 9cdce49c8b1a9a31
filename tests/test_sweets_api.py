import pytest

from models.sweet import Sweet


CHOCOLATE_BAR = {"name": "Chocolate Bar", "category": "Chocolate", "price": 5.99, "quantity": 100}


@pytest.fixture
def catalogue(make_sweet):
    return [
        make_sweet("Chocolate Bar", "Chocolate", 5.99, 100),
        make_sweet("Gummy Bears", "Candy", 3.99, 50),
        make_sweet("Dark Chocolate", "Chocolate", 7.99, 30),
    ]


def names(response):
    return sorted(s["name"] for s in response.json()["sweets"])


# -------------------------------
# Create
# -------------------------------

def test_create_sweet_as_admin(client, admin_headers):
    response = client.post("/api/sweets", json=CHOCOLATE_BAR, headers=admin_headers)

    assert response.status_code == 201
    sweet = response.json()["sweet"]
    assert sweet["name"] == "Chocolate Bar"
    assert sweet["quantity"] == 100
    assert sweet["id"]


def test_create_sweet_quantity_defaults_to_zero(client, admin_headers):
    response = client.post(
        "/api/sweets", json={"name": "Toffee", "category": "Candy", "price": 1.5}, headers=admin_headers
    )

    assert response.status_code == 201
    assert response.json()["sweet"]["quantity"] == 0


def test_create_sweet_as_user_is_forbidden(client, user_headers):
    response = client.post("/api/sweets", json=CHOCOLATE_BAR, headers=user_headers)

    assert response.status_code == 403
    assert response.json()["detail"] == "Admin access required"


def test_create_sweet_requires_authentication(client):
    response = client.post("/api/sweets", json=CHOCOLATE_BAR)

    assert response.status_code == 401


def test_create_sweet_validation(client, admin_headers):
    response = client.post(
        "/api/sweets",
        json={"name": "  ", "category": "", "price": -1, "quantity": -1},
        headers=admin_headers,
    )

    assert response.status_code == 400
    fields = {e["field"] for e in response.json()["errors"]}
    assert fields == {"name", "category", "price", "quantity"}


def test_create_sweet_rejects_infinite_price(client, admin_headers, user_headers):
    response = client.post(
        "/api/sweets",
        content='{"name": "Inf", "category": "Candy", "price": 1e400, "quantity": 1}',
        headers={**admin_headers, "Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "price"
    listing = client.get("/api/sweets", headers=user_headers)
    assert listing.status_code == 200
    assert listing.json() == {"sweets": []}


@pytest.mark.parametrize("field", ["price", "quantity"])
def test_create_sweet_rejects_booleans(client, admin_headers, field):
    payload = dict(CHOCOLATE_BAR)
    payload[field] = True

    response = client.post("/api/sweets", json=payload, headers=admin_headers)

    assert response.status_code == 400
    assert [e["field"] for e in response.json()["errors"]] == [field]


def test_create_sweet_duplicate_name(client, admin_headers, make_sweet):
    make_sweet("Chocolate Bar")

    response = client.post("/api/sweets", json=CHOCOLATE_BAR, headers=admin_headers)

    assert response.status_code == 400
    assert "already exists" in response.json()["detail"]


# -------------------------------
# List & Search
# -------------------------------

def test_list_sweets_newest_first(client, user_headers, make_sweet):
    make_sweet("Sweet 1", "Candy", 2.99, 50)
    make_sweet("Sweet 2", "Chocolate", 4.99, 30)

    response = client.get("/api/sweets", headers=user_headers)

    assert response.status_code == 200
    assert [s["name"] for s in response.json()["sweets"]] == ["Sweet 2", "Sweet 1"]


def test_list_sweets_requires_authentication(client):
    response = client.get("/api/sweets")

    assert response.status_code == 401


def test_list_sweets_rejects_invalid_token(client):
    response = client.get("/api/sweets", headers={"Authorization": "Bearer invalid-token"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid or expired token"


def test_search_by_name_is_case_insensitive(client, user_headers, catalogue):
    response = client.get("/api/sweets/search", params={"name": "chocolate"}, headers=user_headers)

    assert response.status_code == 200
    assert names(response) == ["Chocolate Bar", "Dark Chocolate"]


def test_search_by_category(client, user_headers, catalogue):
    response = client.get("/api/sweets/search", params={"category": "Candy"}, headers=user_headers)

    assert names(response) == ["Gummy Bears"]


def test_search_by_price_range(client, user_headers, catalogue):
    response = client.get("/api/sweets/search", params={"minPrice": 4, "maxPrice": 6}, headers=user_headers)

    assert names(response) == ["Chocolate Bar"]


def test_search_price_bounds_are_inclusive(client, user_headers, catalogue):
    response = client.get("/api/sweets/search", params={"minPrice": 3.99, "maxPrice": 5.99}, headers=user_headers)

    assert names(response) == ["Chocolate Bar", "Gummy Bears"]


def test_search_combined_filters(client, user_headers, catalogue):
    response = client.get(
        "/api/sweets/search", params={"category": "chocolate", "minPrice": 7}, headers=user_headers
    )

    assert names(response) == ["Dark Chocolate"]


def test_search_without_filters_returns_everything(client, user_headers, catalogue):
    response = client.get("/api/sweets/search", headers=user_headers)

    assert len(response.json()["sweets"]) == 3


def test_search_treats_wildcards_literally(client, user_headers, catalogue):
    response = client.get("/api/sweets/search", params={"name": "%"}, headers=user_headers)

    assert response.json()["sweets"] == []


def test_search_rejects_negative_price(client, user_headers):
    response = client.get("/api/sweets/search", params={"minPrice": -1}, headers=user_headers)

    assert response.status_code == 400


# -------------------------------
# Update & Delete
# -------------------------------

def test_update_sweet_as_admin(client, admin_headers, make_sweet):
    sweet = make_sweet("Old Sweet")

    response = client.put(
        f"/api/sweets/{sweet.id}",
        json={"name": "Updated Sweet", "category": "Candy", "price": 2.5, "quantity": 5},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["sweet"]["name"] == "Updated Sweet"
    assert response.json()["sweet"]["quantity"] == 5


def test_update_sweet_keeping_its_name(client, admin_headers, make_sweet):
    sweet = make_sweet("Lollipop", price=1.0)

    response = client.put(
        f"/api/sweets/{sweet.id}",
        json={"name": "Lollipop", "category": "Candy", "price": 1.25, "quantity": 10},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["sweet"]["price"] == 1.25


def test_update_sweet_to_taken_name(client, admin_headers, make_sweet):
    make_sweet("Taken")
    sweet = make_sweet("Mine")

    response = client.put(
        f"/api/sweets/{sweet.id}",
        json={"name": "Taken", "category": "Candy", "price": 1.0, "quantity": 1},
        headers=admin_headers,
    )

    assert response.status_code == 400


def test_update_sweet_as_user_is_forbidden(client, user_headers, make_sweet):
    sweet = make_sweet("Old Sweet")

    response = client.put(
        f"/api/sweets/{sweet.id}",
        json={"name": "Updated Sweet", "category": "Candy", "price": 2.5, "quantity": 5},
        headers=user_headers,
    )

    assert response.status_code == 403


def test_update_missing_sweet(client, admin_headers):
    response = client.put(
        "/api/sweets/9999",
        json={"name": "Updated Sweet", "category": "Candy", "price": 2.5, "quantity": 5},
        headers=admin_headers,
    )

    assert response.status_code == 404


def test_delete_sweet_as_admin(client, admin_headers, make_sweet, db):
    sweet = make_sweet("Doomed")
    sweet_id = sweet.id

    response = client.delete(f"/api/sweets/{sweet_id}", headers=admin_headers)

    assert response.status_code == 200
    db.expire_all()
    assert db.get(Sweet, sweet_id) is None


def test_delete_sweet_as_user_is_forbidden(client, user_headers, make_sweet):
    sweet = make_sweet("Safe")

    response = client.delete(f"/api/sweets/{sweet.id}", headers=user_headers)

    assert response.status_code == 403


def test_delete_missing_sweet(client, admin_headers):
    response = client.delete("/api/sweets/9999", headers=admin_headers)

    assert response.status_code == 404


# -------------------------------
# Purchase & Restock
# -------------------------------

def test_purchase_decreases_quantity(client, user_headers, make_sweet):
    sweet = make_sweet("Fudge", quantity=10)

    response = client.post(f"/api/sweets/{sweet.id}/purchase", headers=user_headers)

    assert response.status_code == 200
    assert response.json()["sweet"]["quantity"] == 9
    assert response.json()["sweet"]["in_stock"] is True


def test_purchase_last_item_then_out_of_stock(client, user_headers, make_sweet):
    sweet = make_sweet("Rare Truffle", quantity=1)

    first = client.post(f"/api/sweets/{sweet.id}/purchase", headers=user_headers)
    second = client.post(f"/api/sweets/{sweet.id}/purchase", headers=user_headers)

    assert first.json()["sweet"]["quantity"] == 0
    assert first.json()["sweet"]["in_stock"] is False
    assert second.status_code == 400
    assert "out of stock" in second.json()["detail"]


def test_purchase_out_of_stock(client, user_headers, make_sweet, db):
    sweet = make_sweet("Empty", quantity=0)

    response = client.post(f"/api/sweets/{sweet.id}/purchase", headers=user_headers)

    assert response.status_code == 400
    db.expire_all()
    assert db.get(Sweet, sweet.id).quantity == 0


def test_purchase_missing_sweet(client, user_headers):
    response = client.post("/api/sweets/9999/purchase", headers=user_headers)

    assert response.status_code == 404


def test_purchase_requires_authentication(client, make_sweet):
    sweet = make_sweet("Fudge")

    response = client.post(f"/api/sweets/{sweet.id}/purchase")

    assert response.status_code == 401


def test_restock_as_admin(client, admin_headers, make_sweet):
    sweet = make_sweet("Mints", quantity=10)

    response = client.post(f"/api/sweets/{sweet.id}/restock", json={"quantity": 20}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["sweet"]["quantity"] == 30


def test_restock_as_user_is_forbidden(client, user_headers, make_sweet):
    sweet = make_sweet("Mints", quantity=10)

    response = client.post(f"/api/sweets/{sweet.id}/restock", json={"quantity": 20}, headers=user_headers)

    assert response.status_code == 403


@pytest.mark.parametrize("quantity", [0, -5, True, 2.5])
def test_restock_rejects_non_positive_quantity(client, admin_headers, make_sweet, quantity):
    sweet = make_sweet("Mints", quantity=10)

    response = client.post(
        f"/api/sweets/{sweet.id}/restock", json={"quantity": quantity}, headers=admin_headers
    )

    assert response.status_code == 400


def test_restock_missing_sweet(client, admin_headers):
    response = client.post("/api/sweets/9999/restock", json={"quantity": 5}, headers=admin_headers)

    assert response.status_code == 404
