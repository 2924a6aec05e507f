import base64
import json

import mongomock
import pytest
from fastapi.testclient import TestClient

import database


@pytest.fixture(autouse=True)
def mongo_db(monkeypatch):
    db = mongomock.MongoClient()["em_luxury_cars_test"]
    monkeypatch.setattr(database, "db", db)
    return db


@pytest.fixture()
def client():
    from main import app

    return TestClient(app)


def make_google_token(sub: str, name: str = "Jane Driver", email: str = "jane@example.com", **claims) -> str:
    def seg(data: dict) -> str:
        return base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()

    payload = {"sub": sub, "name": name, "email": email, "picture": "https://example.com/p.png", **claims}
    return f"{seg({'alg': 'RS256', 'typ': 'JWT'})}.{seg(payload)}.signature"


@pytest.fixture()
def identity():
    return {"google_id": "g-100", "name": "Jane Driver", "email": "jane@example.com", "picture": None}


@pytest.fixture()
def admin_headers(client):
    resp = client.post("/auth/admin", json={"email": "admin", "password": "admin"})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture()
def user_login(client):
    resp = client.post("/auth/google", json={"credential": make_google_token("g-100")})
    assert resp.status_code == 200
    body = resp.json()
    return {"headers": {"Authorization": f"Bearer {body['token']}"}, "google_id": body["google_id"]}
