import os

os.environ.setdefault("ENV", "test")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("JWT_ACCESS_SECRET", "test-access-secret-do-not-use")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret-do-not-use")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from session_auth.auth.models import Tenant  # noqa: E402
from session_auth.auth.security import configure_password_hashing  # noqa: E402
from session_auth.auth.service import TokenService  # noqa: E402
from session_auth.auth.store import AuthStores  # noqa: E402
from session_auth.core.config import Settings, TokenConfig  # noqa: E402
from session_auth.main import create_app  # noqa: E402

ADMIN_EMAIL = "admin@example.org"
ADMIN_PASSWORD = "admin123"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        ENV="test",
        BCRYPT_ROUNDS=4,
        STORE_BACKEND="memory",
        JWT_ACCESS_SECRET="test-access-secret-do-not-use",
        JWT_REFRESH_SECRET="test-refresh-secret-do-not-use",
        DEFAULT_ADMIN_PASSWORD=ADMIN_PASSWORD,
        _env_file=None,
    )


@pytest.fixture
def token_config(settings) -> TokenConfig:
    return TokenConfig.from_settings(settings)


@pytest.fixture
def service(token_config) -> TokenService:
    configure_password_hashing(4)
    svc = TokenService(token_config, AuthStores.in_memory())
    svc.create_tenant(Tenant(id="acme", name="Acme Academy", domain="acme.example"))
    svc.create_tenant(Tenant(id="globex", name="Globex School", domain="globex.example"))
    svc.create_user(
        user_id="u-educator",
        email="Educator@Acme.example",
        password="correct horse",
        tenant_id="acme",
        roles=["educator"],
        permissions=["courses:read", "courses:write"],
    )
    svc.create_user(
        user_id="u-root",
        email="root@acme.example",
        password="root-password",
        tenant_id="acme",
        roles=["viewer"],
        permissions=["*"],
    )
    svc.create_user(
        user_id="u-admin",
        email="admin@globex.example",
        password="globex-admin",
        tenant_id="globex",
        roles=["admin"],
        permissions=[],
    )
    return svc


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
