from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import jwt

from crm import config


def test_login_returns_token(client):
    resp = client.post(
        "/api/auth/login",
        json={"username": config.ADMIN_USERNAME, "password": config.ADMIN_PASSWORD},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["user"] == {"id": "admin", "username": config.ADMIN_USERNAME, "isAdmin": True}

    claims = jwt.decode(body["data"]["token"], config.SECRET_KEY, algorithms=[config.ALGORITHM])
    assert claims["userId"] == "admin"


def test_login_rejects_wrong_password(client):
    resp = client.post(
        "/api/auth/login",
        json={"username": config.ADMIN_USERNAME, "password": "wrong"},
    )

    assert resp.status_code == 401
    assert resp.json() == {"success": False, "error": "Invalid credentials"}


def test_login_requires_both_fields(client):
    resp = client.post("/api/auth/login", json={"username": config.ADMIN_USERNAME})

    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_verify_accepts_issued_token(client, auth_headers):
    resp = client.get("/api/auth/verify", headers=auth_headers)

    assert resp.status_code == 200
    assert resp.json()["data"]["user"]["isAdmin"] is True


def test_missing_token_is_unauthorized(client):
    resp = client.get("/api/leads")

    assert resp.status_code == 401
    assert resp.json()["error"] == "Access denied. No token provided."


def test_garbage_token_is_forbidden(client):
    resp = client.get("/api/leads", headers={"Authorization": "Bearer not-a-jwt"})

    assert resp.status_code == 403
    assert resp.json()["error"] == "Invalid token"


def test_expired_token_is_forbidden(client):
    expired = jwt.encode(
        {"sub": "admin", "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        config.SECRET_KEY,
        algorithm=config.ALGORITHM,
    )

    resp = client.get("/api/students", headers={"Authorization": f"Bearer {expired}"})

    assert resp.status_code == 403


def test_token_signed_with_other_secret_is_forbidden(client):
    forged = jwt.encode({"sub": "admin"}, "other-secret", algorithm=config.ALGORITHM)

    resp = client.get("/api/payments", headers={"Authorization": f"Bearer {forged}"})

    assert resp.status_code == 403


def test_logout(client):
    resp = client.post("/api/auth/logout")

    assert resp.status_code == 200
    assert resp.json()["message"] == "Logout successful"
