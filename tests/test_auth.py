import pytest

import auth
import config


@pytest.fixture(autouse=True)
def admin_env(monkeypatch):
    monkeypatch.setattr(config, "ADMIN_USERNAME", "owner")
    monkeypatch.setattr(config, "ADMIN_PASSWORD", "s3cret")
    monkeypatch.setattr(config, "JWT_SECRET", "test-secret")


def test_hash_password_records_salt():
    hashed, salt = auth.hash_password("pw")
    assert salt in hashed
    assert auth.verify_password("pw", hashed)
    assert not auth.verify_password("other", hashed)
    assert auth.hash_password("pw")[1] != salt


def test_login_seeds_admin_and_sets_cookies(client, db):
    resp = client.post("/api/auth", json={"username": "owner", "password": "s3cret"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["user"]["username"] == "owner"
    assert body["user"]["lastLogin"]
    assert "auth_token" in resp.cookies

    admin = db["admins"].find_one({"username": "owner"})
    assert admin["hashedPassword"] != "s3cret"
    assert admin["salt"]
    assert admin["lastLogin"] is not None

    session = client.get("/api/auth/session")
    assert session.status_code == 200
    assert session.json() == {"username": "owner"}


def test_bad_credentials(client):
    resp = client.post("/api/auth", json={"username": "owner", "password": "nope"})
    assert resp.status_code == 401
    assert resp.json()["error"] == "Invalid username or password"


def test_login_fails_closed_without_configured_password(client, monkeypatch):
    monkeypatch.setattr(config, "ADMIN_PASSWORD", None)
    resp = client.post("/api/auth", json={"username": "owner", "password": "admin123"})
    assert resp.status_code == 500
    assert resp.json()["details"] == "Admin account is not configured"


def test_change_password(client):
    client.post("/api/auth", json={"username": "owner", "password": "s3cret"})

    resp = client.put("/api/auth", json={"username": "owner", "currentPassword": "wrong", "newPassword": "n"})
    assert resp.status_code == 401

    resp = client.put("/api/auth", json={"username": "owner", "currentPassword": "s3cret", "newPassword": ""})
    assert resp.status_code == 400

    resp = client.put("/api/auth", json={"username": "owner", "currentPassword": "s3cret", "newPassword": "fresh"})
    assert resp.status_code == 200
    assert client.post("/api/auth", json={"username": "owner", "password": "fresh"}).status_code == 200
    assert client.post("/api/auth", json={"username": "owner", "password": "s3cret"}).status_code == 401


def test_signout_clears_session(client):
    client.post("/api/auth", json={"username": "owner", "password": "s3cret"})
    resp = client.post("/api/auth/signout")
    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert client.get("/api/auth/session").status_code == 401


def test_session_rejects_forged_token(client):
    client.cookies.set("auth_token", "not-a-jwt")
    assert client.get("/api/auth/session").status_code == 401
