from datetime import timedelta

from auth import create_access_token, decode_access_token, hash_password, verify_password


def test_password_hashing():
    hashed = hash_password("password123")
    assert hashed != "password123"
    assert verify_password("password123", hashed)
    assert not verify_password("password124", hashed)


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "someone"}, expires_delta=timedelta(seconds=-1))
    assert decode_access_token(token) is None
    assert decode_access_token(create_access_token({"sub": "someone"}))["sub"] == "someone"


def test_register_login_and_me(client, register):
    user_id, headers = register("traveller_one", role="resident")
    me = client.get("/auth/me", headers=headers).json()
    assert me["user_id"] == user_id
    assert me["profile"]["role"] == "resident"
    assert me["is_admin"] is False

    login = client.post("/auth/login", json={"email": "TRAVELLER_ONE@example.com", "password": "password123"})
    assert login.status_code == 200
    assert login.json()["user_id"] == user_id
    bad = client.post("/auth/login", json={"email": "traveller_one@example.com", "password": "wrong-pass"})
    assert bad.status_code == 401


def test_duplicate_email_or_username(client, register):
    register("taken")
    payload = {"email": "taken@example.com", "password": "password123", "username": "fresh"}
    assert client.post("/auth/register", json=payload).status_code == 409
    payload = {"email": "fresh@example.com", "password": "password123", "username": "taken"}
    assert client.post("/auth/register", json=payload).status_code == 409


def test_register_validation(client):
    payload = {"email": "a@example.com", "password": "short", "username": "shorty"}
    assert client.post("/auth/register", json=payload).status_code == 422
    payload = {"email": "a@example.com", "password": "password123", "username": "no spaces"}
    assert client.post("/auth/register", json=payload).status_code == 422
    payload = {"email": "a@example.com", "password": "password123", "username": "okname", "role": "mayor"}
    assert client.post("/auth/register", json=payload).status_code == 422


def test_admin_emails_grant_admin(client, register):
    _, headers = register("boss", email="admin@example.com")
    assert client.get("/auth/me", headers=headers).json()["is_admin"] is True


def test_invalid_token(client):
    assert client.get("/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_profile_update(client, register, city):
    user_id, headers = register("nomad")
    register("claimed")
    url = f"/profiles/{user_id}"
    updated = client.put(url, json={
        "bio": "Slow travel",
        "role": "resident",
        "city_id": city,
        "interests": ["food", "hiking", "food"],
    }, headers=headers).json()
    assert updated["interests"] == ["food", "hiking"]
    assert updated["city_id"] == city
    assert updated["role"] == "resident"

    assert client.put(url, json={"username": "claimed"}, headers=headers).status_code == 409
    assert client.put(url, json={"city_id": "nowhere"}, headers=headers).status_code == 404

    other_id, _ = register("other")
    assert client.put(f"/profiles/{other_id}", json={"bio": "hacked"}, headers=headers).status_code == 403
