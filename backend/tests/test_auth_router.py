from datetime import timedelta

from fastapi.testclient import TestClient

from session_auth.auth.security import ACCESS, create_token
from session_auth.main import create_app

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD


def _login(client, email=ADMIN_EMAIL, password=ADMIN_PASSWORD, **extra):
    return client.post("/api/auth/login", json={"email": email, "password": password, **extra})


def _set_cookie_headers(response) -> list[str]:
    return response.headers.get_list("set-cookie")


def test_login_returns_user_tenant_and_cookies(client):
    response = _login(client)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Login successful"
    assert body["user"]["id"] == "admin-001"
    assert body["user"]["email"] == ADMIN_EMAIL
    assert body["user"]["tenantId"] == "default"
    assert "admin" in body["user"]["roles"]
    assert body["user"]["profile"]["firstName"] == "System"
    assert "passwordHash" not in body["user"]
    assert "password_hash" not in body["user"]
    assert body["tenant"]["id"] == "default"
    assert body["tenant"]["settings"]["features"]["multiTenant"] is False
    assert body["tenant"]["settings"]["limits"]["maxUsers"] == 1000

    assert response.cookies.get("accessToken")
    assert response.cookies.get("refreshToken")


def test_login_cookie_attributes(client):
    response = _login(client)
    headers = _set_cookie_headers(response)

    access = next(h for h in headers if h.startswith("accessToken="))
    refresh = next(h for h in headers if h.startswith("refreshToken="))
    for header in (access, refresh):
        assert "HttpOnly" in header
        assert "Path=/" in header
        assert "samesite=strict" in header.lower()
        assert "Secure" not in header
    assert "Max-Age=3600" in access
    assert f"Max-Age={7 * 24 * 60 * 60}" in refresh


def test_login_cookies_are_secure_in_production(settings):
    prod = settings.model_copy(update={"ENV": "production", "COOKIE_DOMAIN": "edpsychconnect.com"})
    with TestClient(create_app(prod)) as client:
        response = _login(client)

    assert response.status_code == 200
    assert "Strict-Transport-Security" in response.headers
    for header in _set_cookie_headers(response):
        assert "Secure" in header
        assert "Domain=edpsychconnect.com" in header


def test_login_requires_email_and_password(client):
    for payload in ({"email": ADMIN_EMAIL}, {"password": ADMIN_PASSWORD}, {}):
        response = client.post("/api/auth/login", json=payload)
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Email and password are required"}


def test_login_rejects_malformed_body(client):
    response = client.post("/api/auth/login", json={"email": ["a@b.example"], "password": "x"})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request body"


def test_login_invalid_credentials(client):
    response = _login(client, password="wrong-password")
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Invalid credentials"}
    assert not _set_cookie_headers(response)


def test_login_tenant_mismatch_is_invalid_credentials(client):
    response = _login(client, tenantId="some-other-tenant")
    assert response.status_code == 401

    assert _login(client, tenantId="default").status_code == 200


def test_login_accepts_special_use_domain_emails(client, app):
    app.state.token_service.create_user(
        user_id="u-local",
        email="educator@school.local",
        password="secret-pass",
        tenant_id="default",
    )

    response = _login(client, email="educator@school.local", password="secret-pass")
    assert response.status_code == 200
    assert response.json()["user"]["email"] == "educator@school.local"


def test_login_overlong_password_is_invalid_credentials(client):
    response = _login(client, password="x" * 80)
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Invalid credentials"}


def test_login_locks_out_after_repeated_failures(client):
    for _ in range(4):
        assert _login(client, password="wrong-password").status_code == 401

    locked = _login(client, password="wrong-password")
    assert locked.status_code == 429
    assert "Too many failed attempts" in locked.json()["error"]

    assert _login(client).status_code == 429


def test_lockout_counts_failures_across_tenant_ids(client):
    for i in range(4):
        extra = {"tenantId": "default"} if i % 2 else {}
        assert _login(client, password="wrong-password", **extra).status_code == 401

    locked = _login(client, password="wrong-password", tenantId="default")
    assert locked.status_code == 429
    assert _login(client, tenantId="some-other-tenant").status_code == 429


def test_me_returns_current_user_with_iso_timestamps(client):
    _login(client)
    response = client.get("/api/auth/me")

    assert response.status_code == 200
    body = response.json()
    user = body["user"]
    assert user["id"] == "admin-001"
    assert user["permissions"] == ["*"]
    assert user["metadata"]["loginCount"] == 1
    assert user["metadata"]["isActive"] is True
    assert "T" in user["metadata"]["createdAt"]
    assert "T" in user["metadata"]["lastLoginAt"]
    assert "passwordHash" not in user
    assert body["tenant"]["name"] == "EdPsych Connect World"


def test_me_accepts_bearer_header(client):
    access_token = _login(client).cookies["accessToken"]
    client.cookies.clear()

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {access_token}"})
    assert response.status_code == 200
    assert response.json()["user"]["id"] == "admin-001"


def test_me_without_cookie_is_401(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Not authenticated"}


def test_me_with_garbage_cookie_is_401(client):
    client.cookies.set("accessToken", "garbage")
    assert client.get("/api/auth/me").status_code == 401


def test_session_lifecycle_login_expire_refresh_reuse(client, app):
    login = _login(client)
    assert login.status_code == 200
    assert "admin" in login.json()["user"]["roles"]
    user_id = login.json()["user"]["id"]
    refresh_token = login.cookies["refreshToken"]

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["user"]["id"] == user_id

    config = app.state.token_service.config
    expired = create_token(
        {"sub": user_id, "tenant_id": "default"},
        secret=config.access_secret,
        token_type=ACCESS,
        lifetime=timedelta(seconds=-5),
    )
    client.cookies.clear()
    client.cookies.set("accessToken", expired)
    assert client.get("/api/auth/me").status_code == 401

    client.cookies.clear()
    refreshed = client.post("/api/auth/refresh", json={"refreshToken": refresh_token})
    assert refreshed.status_code == 200
    assert refreshed.json()["success"] is True
    assert refreshed.json()["message"] == "Token refreshed successfully"
    assert refreshed.cookies.get("accessToken")
    assert refreshed.cookies["refreshToken"] != refresh_token

    assert client.get("/api/auth/me").json()["user"]["id"] == user_id

    client.cookies.clear()
    reused = client.post("/api/auth/refresh", json={"refreshToken": refresh_token})
    assert reused.status_code == 401
    assert reused.json()["error"] == "Invalid refresh token"


def test_refresh_reads_cookie_when_body_missing(client):
    _login(client)
    response = client.post("/api/auth/refresh")
    assert response.status_code == 200
    assert response.json()["user"]["id"] == "admin-001"


def test_refresh_requires_token(client):
    response = client.post("/api/auth/refresh", json={})
    assert response.status_code == 400
    assert response.json()["error"] == "Refresh token is required"


def test_refresh_rejects_access_token(client):
    access_token = _login(client).cookies["accessToken"]
    client.cookies.clear()

    response = client.post("/api/auth/refresh", json={"refreshToken": access_token})
    assert response.status_code == 401


def test_logout_clears_both_cookies(client):
    _login(client)
    response = client.post("/api/auth/logout")

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Logged out successfully"}
    headers = _set_cookie_headers(response)
    assert any(h.startswith("accessToken=") and "Max-Age=0" in h for h in headers)
    assert any(h.startswith("refreshToken=") and "Max-Age=0" in h for h in headers)
    assert client.get("/api/auth/me").status_code == 401


def test_logout_without_session_still_succeeds(client):
    assert client.post("/api/auth/logout").status_code == 200


def test_logout_leaves_refresh_token_usable_by_default(client):
    refresh_token = _login(client).cookies["refreshToken"]
    client.post("/api/auth/logout")

    response = client.post("/api/auth/refresh", json={"refreshToken": refresh_token})
    assert response.status_code == 200


def test_logout_revokes_refresh_token_when_enabled(settings):
    strict = settings.model_copy(update={"AUTH_REVOKE_ON_LOGOUT": True})
    with TestClient(create_app(strict)) as client:
        refresh_token = _login(client).cookies["refreshToken"]
        assert client.post("/api/auth/logout").status_code == 200

        response = client.post("/api/auth/refresh", json={"refreshToken": refresh_token})
        assert response.status_code == 401


def test_unexpected_error_is_500_without_details(app, monkeypatch):
    def boom(*_args, **_kwargs):
        raise RuntimeError("database exploded: secret connection string")

    monkeypatch.setattr(app.state.token_service, "authenticate", boom)
    with TestClient(app, raise_server_exceptions=False) as client:
        response = _login(client)

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Internal server error"}
