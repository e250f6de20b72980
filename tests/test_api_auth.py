"""
Endpoint tests for registration, login, refresh and revoke.
"""

from datetime import timedelta

import pytest
from argon2 import PasswordHasher
from sqlalchemy.exc import OperationalError

from api import create_app
from models import storage
from models.user import User
from utils.errors import ConfigError
from utils.security import password_needs_rehash, verify_password
from utils.sessions import make_refresh_token

EMAIL = "saul@bettercall.com"
PASSWORD = "correct-password"


def _register(client, email=EMAIL, password=PASSWORD):
    return client.post("/api/users", json={"email": email, "password": password})


def _login(client, email=EMAIL, password=PASSWORD):
    return client.post("/api/login", json={"email": email, "password": password})


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def session(client):
    assert _register(client).status_code == 201
    resp = _login(client)
    assert resp.status_code == 200
    return resp.get_json()


def test_healthz(client):
    resp = client.get("/api/healthz")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}


class TestRegister:
    def test_register_returns_user_without_password(self, client):
        resp = _register(client)

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["email"] == EMAIL
        assert body["is_chirpy_red"] is False
        assert "password" not in body and "password_hash" not in body

        stored = storage.get_user_by_email(EMAIL)
        assert stored.password_hash != PASSWORD

    def test_duplicate_email(self, client):
        _register(client)
        resp = _register(client, email=EMAIL.upper())
        assert resp.status_code == 409

    def test_short_password(self, client):
        resp = _register(client, password="short")
        assert resp.status_code == 422
        assert resp.get_json()["error"] == "VALIDATION_ERROR"


class TestLogin:
    def test_login_returns_both_tokens(self, client, app, session):
        assert session["email"] == EMAIL
        assert len(session["refresh_token"]) == 64

        with app.app_context():
            auth = app.extensions["chirpy_auth"]
            assert auth.access_tokens.validate(session["token"]) == session["id"]
            assert auth.refresh_tokens.resolve(session["refresh_token"]) == session["id"]

    def test_wrong_password_and_unknown_email_look_the_same(self, client):
        _register(client)
        wrong = _login(client, password="wrong-password")
        unknown = _login(client, email="nobody@example.com")

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.get_json() == unknown.get_json()
        assert wrong.get_json()["message"] == "Incorrect email or password"

    def test_missing_fields(self, client):
        resp = client.post("/api/login", json={"email": EMAIL})
        assert resp.status_code == 422

    def test_outdated_digest_is_upgraded_on_login(self, client):
        weak = PasswordHasher(time_cost=1, memory_cost=8, parallelism=1).hash(PASSWORD)
        storage.new(User(email=EMAIL, password_hash=weak))
        storage.save()

        assert _login(client).status_code == 200

        storage.close()
        upgraded = storage.get_user_by_email(EMAIL).password_hash
        assert upgraded != weak
        assert upgraded.startswith("$argon2")
        assert verify_password(PASSWORD, upgraded)
        assert not password_needs_rehash(upgraded)
        assert _login(client).status_code == 200


class TestRefreshAndRevoke:
    def test_refresh_issues_new_access_token(self, client, app, session):
        resp = client.post("/api/refresh", headers=_bearer(session["refresh_token"]))

        assert resp.status_code == 200
        token = resp.get_json()["token"]
        with app.app_context():
            assert app.extensions["chirpy_auth"].access_tokens.validate(token) == session["id"]

    def test_refresh_without_header(self, client):
        resp = client.post("/api/refresh")
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "UNAUTHORIZED"

    def test_access_token_is_not_a_refresh_token(self, client, session):
        resp = client.post("/api/refresh", headers=_bearer(session["token"]))
        assert resp.status_code == 401

    def test_revoke_then_refresh_fails(self, client, session):
        headers = _bearer(session["refresh_token"])

        assert client.post("/api/revoke", headers=headers).status_code == 204
        assert client.post("/api/refresh", headers=headers).status_code == 401
        # logout is safe to retry
        assert client.post("/api/revoke", headers=headers).status_code == 204

    def test_revoke_unknown_token(self, client):
        resp = client.post("/api/revoke", headers=_bearer(make_refresh_token()))
        assert resp.status_code == 204

    def test_revoke_requires_header(self, client):
        assert client.post("/api/revoke").status_code == 401

    def test_revoked_and_unknown_sessions_look_the_same(self, client, session):
        headers = _bearer(session["refresh_token"])
        client.post("/api/revoke", headers=headers)

        revoked = client.post("/api/refresh", headers=headers)
        unknown = client.post("/api/refresh", headers=_bearer(make_refresh_token()))
        assert revoked.get_json() == unknown.get_json()


class TestUpdateUser:
    def test_update_with_access_token(self, client, session):
        resp = client.put(
            "/api/users",
            json={"email": "jimmy@bettercall.com", "password": "new-password"},
            headers=_bearer(session["token"]),
        )

        assert resp.status_code == 200
        assert resp.get_json()["email"] == "jimmy@bettercall.com"
        assert _login(client, email="jimmy@bettercall.com", password="new-password").status_code == 200
        assert _login(client).status_code == 401

    def test_update_requires_access_token(self, client, session):
        body = {"email": "jimmy@bettercall.com", "password": "new-password"}

        assert client.put("/api/users", json=body).status_code == 401
        assert client.put("/api/users", json=body, headers=_bearer(session["refresh_token"])).status_code == 401
        assert client.put("/api/users", json=body, headers={"Authorization": f"Basic {session['token']}"}).status_code == 401

    def test_expired_access_token(self, app, client, session):
        with app.app_context():
            stale = app.extensions["chirpy_auth"].access_tokens.issue(session["id"], ttl=timedelta(seconds=-1))

        resp = client.put(
            "/api/users",
            json={"email": "jimmy@bettercall.com", "password": "new-password"},
            headers=_bearer(stale),
        )
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Invalid token"


class TestCorruptedPasswordDigest:
    def test_login_reports_internal_error(self, client):
        storage.new(User(email=EMAIL, password_hash="garbage"))
        storage.save()

        resp = _login(client)
        assert resp.status_code == 500
        assert resp.get_json()["error"] == "INTERNAL_ERROR"


class TestConfiguration:
    def test_missing_secret_is_fatal(self):
        with pytest.raises(ConfigError):
            create_app("testing", JWT_SECRET="")

    def test_missing_api_key_is_fatal(self):
        with pytest.raises(ConfigError):
            create_app("testing", POLKA_KEY=None)


class TestUserStoreFailures:
    @pytest.fixture
    def dead_user_store(self, monkeypatch):
        def boom(email):
            raise OperationalError("SELECT", {}, Exception("connection refused"))

        monkeypatch.setattr(storage, "get_user_by_email", boom)

    def test_login_reports_unavailable(self, client, dead_user_store):
        resp = _login(client)
        assert resp.status_code == 503
        assert resp.get_json()["error"] == "SERVICE_UNAVAILABLE"

    def test_register_reports_unavailable(self, client, dead_user_store):
        resp = _register(client)
        assert resp.status_code == 503
        assert resp.get_json()["error"] == "SERVICE_UNAVAILABLE"
