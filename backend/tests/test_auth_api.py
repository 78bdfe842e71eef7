"""
tests/test_auth_api.py - Login, cookie session and the error envelope
"""

import pytest

from conftest import TEST_PASSWORD, auth_headers


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_returns_token_and_sets_cookie(self, client, plant):
        resp = await client.post("/api/v1/auth/login", json={"email": "Kitter@hullworks.com", "password": TEST_PASSWORD})
        assert resp.status_code == 200
        body = resp.json()
        assert body["data"]["user"]["email"] == "kitter@hullworks.com"
        assert body["data"]["user"]["department_name"] == "Fabrication"
        assert body["data"]["access_token"]
        assert "token" in resp.cookies

    @pytest.mark.asyncio
    async def test_wrong_password_is_401_envelope(self, client, plant):
        resp = await client.post("/api/v1/auth/login", json={"email": "kitter@hullworks.com", "password": "nope-nope"})
        assert resp.status_code == 401
        body = resp.json()
        assert body["data"] is None
        assert body["error"]["code"] == "UNAUTHORIZED"
        assert body["error"]["message"] == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_inactive_user_cannot_log_in(self, client, db, plant):
        plant.kitter.is_active = False
        await db.flush()
        resp = await client.post("/api/v1/auth/login", json={"email": "kitter@hullworks.com", "password": TEST_PASSWORD})
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_body_is_400_with_field_errors(self, client):
        resp = await client.post("/api/v1/auth/login", json={"email": "not-an-email"})
        assert resp.status_code == 400
        error = resp.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        fields = {e["field"] for e in error["field_errors"]}
        assert {"email", "password"} <= fields


class TestSession:

    @pytest.mark.asyncio
    async def test_me_with_bearer_token(self, client, plant):
        resp = await client.get("/api/v1/auth/me", headers=auth_headers(plant.supervisor))
        assert resp.status_code == 200
        assert resp.json()["data"]["role"] == "SUPERVISOR"

    @pytest.mark.asyncio
    async def test_me_with_cookie_from_login(self, client, plant):
        await client.post("/api/v1/auth/login", json={"email": "admin@hullworks.com", "password": TEST_PASSWORD})
        resp = await client.get("/api/v1/auth/me")
        assert resp.status_code == 200
        assert resp.json()["data"]["email"] == "admin@hullworks.com"

    @pytest.mark.asyncio
    async def test_me_without_credentials_is_401(self, client):
        resp = await client.get("/api/v1/auth/me")
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_garbage_token_is_401(self, client):
        resp = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_health_is_public(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
