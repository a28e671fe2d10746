"""
Tests for login, reset and health endpoints.
"""

from pkgregistry.core.config import get_settings
from pkgregistry.core.security import Role, decode_jwt


class TestLogin:
    def test_login_issues_admin_token(self, client):
        s = get_settings()
        r = client.post("/v1/auth/login", json={"username": s.ADMIN_USERNAME, "password": s.ADMIN_PASSWORD})
        assert r.status_code == 200
        assert decode_jwt(r.json()["token"])["role"] == "admin"

    def test_wrong_password(self, client):
        s = get_settings()
        r = client.post("/v1/auth/login", json={"username": s.ADMIN_USERNAME, "password": "nope"})
        assert r.status_code == 401


class TestReset:
    def test_reset_clears_registry(self, client, auth, seed, metadata):
        seed("X", "1.0.0")
        seed("Y", "2.0.0")
        r = client.delete("/reset", headers=auth(Role.admin))
        assert r.status_code == 200
        assert r.json() == {"deleted": 2, "failures": []}
        assert metadata.scan_all() == []

    def test_reset_requires_admin(self, client, auth):
        assert client.delete("/v1/reset", headers=auth(Role.contributor)).status_code == 403


class TestHealth:
    def test_health(self, client):
        r = client.get("/v1/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"


class TestLambdaEntry:
    def test_handler_wraps_app(self):
        from mangum import Mangum

        from pkgregistry import lambda_handler

        assert isinstance(lambda_handler.handler, Mangum)
        assert callable(lambda_handler.lambda_handler)
