import mongomock
import pytest
from fastapi.testclient import TestClient

from config import Settings
from database import Database
from main import create_app


@pytest.fixture
def settings():
    return Settings(
        secret_key="restaurant-api-test-secret-key-0123456789",
        bcrypt_rounds=4,
        database_name="restaurant_test",
    )


@pytest.fixture
def db():
    return Database(mongomock.MongoClient(), "restaurant_test")


@pytest.fixture
def client(settings, db):
    with TestClient(create_app(settings, db)) as c:
        yield c


@pytest.fixture
def seeded(db):
    """One table (T1), one menu and two dishes (F1, F2)."""
    db.tables.insert_one({"table_id": "T1", "table_number": 4, "number_of_guests": 2})
    db.menus.insert_one({"menu_id": "M1", "name": "Dinner", "category": "Mains"})
    db.foods.insert_many([
        {"food_id": "F1", "name": "Ramen", "price": 12.5, "food_image": "ramen.png", "menu_id": "M1"},
        {"food_id": "F2", "name": "Gyoza", "price": 7.25, "food_image": "gyoza.png", "menu_id": "M1"},
    ])
    return db
