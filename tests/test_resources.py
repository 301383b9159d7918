from contextlib import contextmanager
from datetime import timedelta

import pymongo
import pytest
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

from database import Database
from main import create_app


# Menus
def test_menu_crud(client):
    created = client.post("/menus", json={"name": "Lunch", "category": "Mains"})

    assert created.status_code == 201
    menu = created.json()
    assert menu["menu_id"] == menu["_id"]
    assert "created_at" in menu and "updated_at" in menu

    patched = client.patch(f"/menus/{menu['menu_id']}", json={"category": "Specials"})
    assert patched.json()["category"] == "Specials"
    assert patched.json()["name"] == "Lunch"
    assert [m["menu_id"] for m in client.get("/menus").json()] == [menu["menu_id"]]


def test_menu_window_must_be_ordered(client):
    resp = client.post("/menus", json={
        "name": "Brunch",
        "category": "Weekend",
        "start_date": "2026-05-02T10:00:00Z",
        "end_date": "2026-05-01T10:00:00Z",
    })
    assert resp.status_code == 400

    menu_id = client.post("/menus", json={
        "name": "Brunch",
        "category": "Weekend",
        "start_date": "2026-05-01T10:00:00Z",
        "end_date": "2026-06-01T10:00:00Z",
    }).json()["menu_id"]
    patched = client.patch(f"/menus/{menu_id}", json={"end_date": "2026-04-01T10:00:00Z"})
    assert patched.status_code == 400


def test_patch_missing_menu(client):
    resp = client.patch("/menus/unknown", json={"name": "X"})
    assert resp.status_code == 404
    assert resp.json() == {"error": "Menu not found"}


# Foods
def test_food_requires_existing_menu(client, db):
    resp = client.post("/foods", json={"name": "Soup", "price": 4, "food_image": "s.png", "menu_id": "nope"})

    assert resp.status_code == 404
    assert resp.json() == {"error": "menu was not found"}
    assert db.foods.count_documents({}) == 0


def test_food_price_is_normalized(client, seeded):
    created = client.post("/foods", json={"name": "Curry", "price": 19.995, "food_image": "c.png", "menu_id": "M1"})

    assert created.status_code == 201
    food = created.json()
    assert food["price"] == 20.0

    patched = client.patch(f"/foods/{food['food_id']}", json={"price": 10.001})
    assert patched.json()["price"] == 10.0
    assert client.patch(f"/foods/{food['food_id']}", json={"menu_id": "M9"}).status_code == 404


def test_food_name_length_validated(client, seeded):
    resp = client.post("/foods", json={"name": "X", "price": 1, "food_image": "x.png", "menu_id": "M1"})
    assert resp.status_code == 400
    assert "name" in resp.json()["error"]


def test_food_pagination(client, seeded):
    first = client.get("/foods", params={"page": 1, "limit": 1}).json()
    second = client.get("/foods", params={"page": 2, "limit": 1}).json()

    assert len(first) == len(second) == 1
    assert first[0]["food_id"] != second[0]["food_id"]
    assert client.get("/foods", params={"limit": 101}).status_code == 400


# Tables
def test_table_crud(client):
    table = client.post("/tables", json={"table_number": 7, "number_of_guests": 4}).json()

    patched = client.patch(f"/tables/{table['table_id']}", json={"number_of_guests": 6})

    assert patched.json()["number_of_guests"] == 6
    assert patched.json()["table_number"] == 7
    assert client.get(f"/tables/{table['table_id']}").status_code == 200
    assert client.get("/tables/unknown").status_code == 404


def test_table_requires_guest_count(client):
    assert client.post("/tables", json={"table_number": 7}).status_code == 400


# Invoices
def make_order(client):
    return client.post("/orderItems", json={
        "table_id": "T1",
        "order_items": [
            {"food_id": "F1", "quantity": 1, "unit_price": 12.5},
            {"food_id": "F2", "quantity": 2, "unit_price": 7.25},
        ],
    }).json()["order_id"]


def test_invoice_defaults(client, seeded):
    order_id = make_order(client)

    resp = client.post("/invoices", json={"order_id": order_id})

    assert resp.status_code == 201
    invoice = resp.json()
    assert invoice["payment_status"] == "PENDING"
    assert invoice["payment_method"] is None
    stored = seeded.invoices.find_one({"invoice_id": invoice["invoice_id"]})
    delta = stored["payment_due_date"] - stored["created_at"]
    assert abs(delta - timedelta(days=1)) < timedelta(seconds=5)


def test_invoice_explicit_null_status_defaults(client, seeded):
    order_id = make_order(client)
    resp = client.post("/invoices", json={"order_id": order_id, "payment_status": None})
    assert resp.json()["payment_status"] == "PENDING"


def test_invoice_for_unknown_order(client, seeded):
    resp = client.post("/invoices", json={"order_id": "nope"})
    assert resp.status_code == 404
    assert resp.json() == {"error": "Order not found"}


def test_invoice_view(client, seeded):
    order_id = make_order(client)
    invoice_id = client.post("/invoices", json={"order_id": order_id}).json()["invoice_id"]

    view = client.get(f"/invoices/{invoice_id}").json()

    assert view["order_id"] == order_id
    assert view["payment_method"] == "null"
    assert view["payment_status"] == "PENDING"
    assert view["payment_due"] == pytest.approx(12.5 + 7.25)
    assert view["table_number"] == 4
    assert len(view["order_details"]) == 2


def test_invoice_view_without_items_is_not_found(client, seeded):
    order_id = client.post("/orders", json={"table_id": "T1"}).json()["order_id"]
    invoice_id = client.post("/invoices", json={"order_id": order_id}).json()["invoice_id"]

    resp = client.get(f"/invoices/{invoice_id}")

    assert resp.status_code == 404
    assert resp.json() == {"error": "No order items found for this invoice"}


def test_invoice_patch(client, seeded):
    order_id = make_order(client)
    invoice_id = client.post("/invoices", json={"order_id": order_id}).json()["invoice_id"]

    patched = client.patch(f"/invoices/{invoice_id}", json={"payment_method": "CARD", "payment_status": "PAID"})

    assert patched.json()["payment_method"] == "CARD"
    assert patched.json()["payment_status"] == "PAID"
    assert client.patch(f"/invoices/{invoice_id}", json={"payment_method": "BITCOIN"}).status_code == 400


# Users
def bearer(token):
    return {"Authorization": f"Bearer {token}"}


USER = {
    "first_name": "Grace",
    "last_name": "Hopper",
    "email": "grace@example.com",
    "phone": "5551234",
    "password": "cobol-1959",
}


def test_user_listing_hides_secrets(client):
    client.post("/users/signup", json=USER)

    body = client.get("/users").json()

    assert body["total_count"] == 1
    assert body["page"] == 1
    assert body["per_page"] == 10
    user = body["users"][0]
    assert "password" not in user
    assert "refresh_token" not in user
    assert user["email"] == USER["email"]


def test_get_user(client):
    user_id = client.post("/users/signup", json=USER).json()["user_id"]

    user = client.get(f"/users/{user_id}").json()

    assert user["first_name"] == "Grace"
    assert "password" not in user
    assert client.get("/users/unknown").status_code == 404


def test_update_user_rehashes_password(client):
    user = client.post("/users/signup", json=USER).json()

    resp = client.put(
        f"/users/update/{user['user_id']}",
        json={"password": "new-password", "last_name": "Murray"},
        headers=bearer(user["token"]),
    )

    assert resp.json() == {"message": "User updated successfully"}
    assert client.post("/users/login", json={"email": USER["email"], "password": USER["password"]}).status_code == 401
    login = client.post("/users/login", json={"email": USER["email"], "password": "new-password"})
    assert login.status_code == 200
    assert login.json()["last_name"] == "Murray"


def test_update_user_phone_must_stay_unique(client):
    client.post("/users/signup", json=USER)
    other = client.post("/users/signup", json=dict(USER, email="g2@example.com", phone="5559999")).json()

    resp = client.put(
        f"/users/update/{other['user_id']}",
        json={"phone": USER["phone"]},
        headers=bearer(other["token"]),
    )

    assert resp.status_code == 409


def test_update_user_requires_own_token(client, db):
    grace = client.post("/users/signup", json=USER).json()
    other = client.post("/users/signup", json=dict(USER, email="g2@example.com", phone="5559999")).json()
    stored_hash = db.users.find_one({"user_id": grace["user_id"]})["password"]

    anonymous = client.put(f"/users/update/{grace['user_id']}", json={"password": "taken-over"})
    foreign = client.put(
        f"/users/update/{grace['user_id']}",
        json={"password": "taken-over"},
        headers=bearer(other["token"]),
    )

    assert anonymous.status_code == 401
    assert foreign.status_code == 403
    assert foreign.json() == {"error": "cannot update another user"}
    assert db.users.find_one({"user_id": grace["user_id"]})["password"] == stored_hash


# Store failures and health
def test_store_failure_is_an_internal_error(client, monkeypatch):
    def broken(*args, **kwargs):
        raise ServerSelectionTimeoutError("no servers")

    monkeypatch.setattr(Database, "get_documents", broken)

    resp = client.get("/tables")

    assert resp.status_code == 500
    assert resp.json() == {"error": "database error"}


def test_root(client):
    assert client.get("/").json() == {"message": "Restaurant Management Backend Running"}


def test_database_status(client):
    status = client.get("/test").json()
    assert status["database"] == "Connected & Working"
    assert status["database_name"] == "restaurant_test"


# Updates never invent records
def test_patch_unknown_invoice_then_read(client, db):
    patched = client.patch("/invoices/ghost", json={"payment_status": "PAID"})
    read = client.get("/invoices/ghost")

    assert patched.status_code == 404
    assert patched.json() == {"error": "Invoice not found"}
    assert read.status_code == 404
    assert read.json() == {"error": "Invoice not found"}
    assert db.invoices.count_documents({}) == 0


def test_invoice_without_order_reference_is_not_found(client, db):
    db.invoices.insert_one({"invoice_id": "legacy", "payment_status": "PAID"})

    resp = client.get("/invoices/legacy")

    assert resp.status_code == 404
    assert resp.json() == {"error": "No order items found for this invoice"}


@pytest.mark.parametrize("path,collection", [
    ("/foods/ghost", "foods"),
    ("/tables/ghost", "tables"),
    ("/orders/ghost", "orders"),
    ("/orderItems/ghost", "order_items"),
])
def test_patch_unknown_record_is_not_found(client, seeded, path, collection):
    before = getattr(seeded, collection).count_documents({})
    body = {
        "foods": {"price": 5},
        "tables": {"number_of_guests": 2},
        "orders": {"table_id": "T1"},
        "order_items": {"quantity": 2},
    }[collection]

    resp = client.patch(path, json=body)

    assert resp.status_code == 404
    assert getattr(seeded, collection).count_documents({}) == before


def test_update_document_upsert_stamps_created_at(db):
    db.update_document(db.tables, {"table_id": "T7"}, {"table_number": 7}, upsert=True)
    inserted = db.tables.find_one({"table_id": "T7"})
    assert inserted["created_at"] == inserted["updated_at"]

    db.update_document(db.tables, {"table_id": "T7"}, {"table_number": 8}, upsert=True)
    updated = db.tables.find_one({"table_id": "T7"})
    assert updated["created_at"] == inserted["created_at"]
    assert updated["table_number"] == 8


# Request deadline
def test_requests_run_under_the_store_deadline(settings, db, monkeypatch):
    active = []

    @contextmanager
    def recording_timeout(seconds):
        active.append(seconds)
        try:
            yield
        finally:
            active.remove(seconds)

    monkeypatch.setattr(pymongo, "timeout", recording_timeout)
    app = create_app(settings.model_copy(update={"request_timeout_seconds": 2.5}), db)

    @app.get("/deadline-check")
    def deadline_check():
        return {"active": list(active)}

    with TestClient(app) as c:
        resp = c.get("/deadline-check")

    assert resp.json() == {"active": [2.5]}
    assert active == []
