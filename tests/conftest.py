import mongomock
import pytest
from fastapi.testclient import TestClient

import database
import main
from cart import CartRegistry


@pytest.fixture
def store(monkeypatch):
    client = mongomock.MongoClient()
    monkeypatch.setattr(database, "db", client["storefront_test"])
    return database.db


@pytest.fixture
def no_store(monkeypatch):
    monkeypatch.setattr(database, "db", None)


@pytest.fixture
def client(store, monkeypatch):
    monkeypatch.setattr(main, "carts", CartRegistry())
    with TestClient(main.app) as c:
        yield c


@pytest.fixture
def user_token(client):
    res = client.post("/auth/signup", json={
        "name": "Rajesh Kumar",
        "email": "rajesh@example.com",
        "password": "secret123",
        "phone": "9876543210",
    })
    assert res.status_code == 200, res.text
    return res.json()["token"]


@pytest.fixture
def admin_token(client):
    assert client.post("/seed").status_code == 200
    res = client.post("/auth/admin/login", json={"email": "admin@mkathiban.com", "password": "admin123"})
    assert res.status_code == 200, res.text
    return res.json()["token"]
