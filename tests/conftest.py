import pytest
from fastapi.testclient import TestClient

import auth
import places
from config import settings
from database import get_db, init_db
from store import new_id


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "db_name", str(tmp_path / "test.sqlite3"))
    monkeypatch.setattr(settings, "upload_folder", str(tmp_path / "uploads"))
    monkeypatch.setattr(settings, "bcrypt_rounds", 4)
    monkeypatch.setattr(settings, "admin_emails", ["admin@example.com"])
    monkeypatch.setattr(settings, "opentripmap_api_key", "test-key")
    monkeypatch.setattr(auth, "_pwd_context", None)
    places.cache.clear()
    init_db()
    yield
    places.cache.clear()


@pytest.fixture
def client():
    from main import app
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register(client):
    """Register an account and return ``(user_id, auth headers)``"""
    def _register(username, role="traveler", email=None):
        response = client.post("/auth/register", json={
            "email": email or f"{username}@example.com",
            "password": "password123",
            "username": username,
            "role": role,
        })
        assert response.status_code == 201, response.text
        body = response.json()
        return body["user_id"], {"Authorization": f"Bearer {body['access_token']}"}
    return _register


@pytest.fixture
def city(client, register):
    _, headers = register("citymaker")
    response = client.post("/cities/", json={"name": "Lisbon", "country": "Portugal"}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["id"]


def make_profile(username, role="traveler"):
    """Insert an account and profile directly, bypassing HTTP"""
    profile_id = new_id()
    with get_db() as conn:
        conn.execute(
            "INSERT INTO users (id, email, password_hash) VALUES (?, ?, ?)",
            (profile_id, f"{username}@example.com", "x")
        )
        conn.execute(
            "INSERT INTO profiles (id, username, role) VALUES (?, ?, ?)",
            (profile_id, username, role)
        )
        conn.commit()
    return profile_id


def make_city(name="Porto", country="Portugal"):
    city_id = new_id()
    with get_db() as conn:
        conn.execute("INSERT INTO cities (id, name, country) VALUES (?, ?, ?)", (city_id, name, country))
        conn.commit()
    return city_id
