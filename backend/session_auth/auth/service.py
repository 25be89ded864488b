import logging
from datetime import datetime, timedelta
from typing import Callable, Iterable

from session_auth.auth.models import (
    RefreshTokenRecord,
    Tenant,
    TokenPair,
    User,
    UserId,
    UserProfile,
    utcnow,
)
from session_auth.auth.security import (
    ACCESS,
    REFRESH,
    JWTError,
    create_token,
    decode_token,
    dummy_verify,
    hash_password,
    verify_password,
)
from session_auth.auth.store import AuthStores
from session_auth.core.config import TokenConfig

logger = logging.getLogger(__name__)

WILDCARD_PERMISSION = "*"
PRIVILEGED_ROLES = ("admin", "superuser")


def normalize_email(email: str) -> str:
    return email.strip().lower()


class TokenService:
    """Issues, verifies and refreshes session tokens for a directory of users and tenants.

    Authentication outcomes are never raised: a failed login, refresh or verification
    returns ``None`` so callers can map it to a single "invalid credentials" answer.
    """

    def __init__(
        self,
        config: TokenConfig,
        stores: AuthStores,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.config = config
        self.stores = stores
        self._clock = clock

    # --- directory ---

    def get_user(self, user_id: str) -> User | None:
        return self.stores.users.get(user_id)

    def find_user_by_email(self, email: str) -> User | None:
        entry = self.stores.user_emails.get(normalize_email(email))
        if entry is None:
            return None
        return self.stores.users.get(entry.id)

    def get_tenant(self, tenant_id: str) -> Tenant | None:
        return self.stores.tenants.get(tenant_id)

    def create_tenant(self, tenant: Tenant) -> Tenant:
        if self.stores.tenants.get(tenant.id) is not None:
            raise ValueError(f"Tenant already exists: {tenant.id}")
        self.stores.tenants.put(tenant.id, tenant)
        return tenant

    def create_user(
        self,
        *,
        user_id: str,
        email: str,
        password: str,
        tenant_id: str,
        roles: Iterable[str] = (),
        permissions: Iterable[str] = (),
        profile: UserProfile | None = None,
    ) -> User:
        if self.stores.tenants.get(tenant_id) is None:
            raise ValueError(f"Unknown tenant: {tenant_id}")
        email = normalize_email(email)
        if self.stores.user_emails.get(email) is not None:
            raise ValueError("User already exists")
        if self.stores.users.get(user_id) is not None:
            raise ValueError(f"User id already taken: {user_id}")

        user = User(
            id=user_id,
            email=email,
            tenant_id=tenant_id,
            password_hash=hash_password(password),
            roles=list(roles),
            permissions=list(permissions),
            profile=profile or UserProfile(),
        )
        self.stores.users.put(user.id, user)
        self.stores.user_emails.put(email, UserId(id=user.id))
        return user

    # --- credentials ---

    def authenticate(
        self, email: str, password: str, tenant_id: str | None = None
    ) -> tuple[User, TokenPair] | None:
        user = self.find_user_by_email(email)
        if user is None:
            dummy_verify()
            return None

        if tenant_id and user.tenant_id != tenant_id:
            dummy_verify()
            return None

        try:
            password_ok = verify_password(password, user.password_hash)
        except ValueError:
            password_ok = False
        if not password_ok or not user.metadata.is_active:
            return None

        now = self._clock()

        def record_login(current: User) -> User:
            current.metadata.last_login_at = now
            current.metadata.login_count += 1
            current.metadata.updated_at = now
            return current

        user = self.stores.users.update(user.id, record_login)
        if user is None:
            return None

        logger.info("Authenticated user_id=%s tenant_id=%s", user.id, user.tenant_id)
        return user, self.issue_tokens(user)

    def issue_tokens(self, user: User) -> TokenPair:
        now = self._clock()
        access_token = create_token(
            {
                "sub": user.id,
                "email": user.email,
                "tenant_id": user.tenant_id,
                "roles": list(user.roles),
                "permissions": list(user.permissions),
            },
            secret=self.config.access_secret,
            token_type=ACCESS,
            lifetime=timedelta(seconds=self.config.access_ttl_seconds),
            algorithm=self.config.algorithm,
            now=now,
        )
        refresh_lifetime = timedelta(seconds=self.config.refresh_ttl_seconds)
        refresh_token = create_token(
            {"sub": user.id, "tenant_id": user.tenant_id},
            secret=self.config.refresh_secret,
            token_type=REFRESH,
            lifetime=refresh_lifetime,
            algorithm=self.config.algorithm,
            now=now,
        )
        self.stores.refresh_tokens.put(
            refresh_token,
            RefreshTokenRecord(
                user_id=user.id,
                tenant_id=user.tenant_id,
                expires_at=now + refresh_lifetime,
            ),
        )
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self.config.access_ttl_seconds,
        )

    def refresh(self, refresh_token: str) -> tuple[User, TokenPair] | None:
        claims = self._decode(refresh_token, self.config.refresh_secret, REFRESH)
        if claims is None:
            return None

        # Consuming the entry first keeps the token single-use under concurrent refreshes.
        record = self.stores.refresh_tokens.delete(refresh_token)
        if record is None:
            logger.warning("Refresh token not recognized or already used user_id=%s", claims.get("sub"))
            return None
        if record.expires_at <= self._clock():
            logger.info("Refresh token expired user_id=%s", record.user_id)
            return None
        if record.user_id != claims.get("sub") or record.tenant_id != claims.get("tenant_id"):
            logger.warning("Refresh token claims do not match stored record user_id=%s", record.user_id)
            return None

        user = self.get_user(record.user_id)
        if user is None or not user.metadata.is_active:
            return None

        return user, self.issue_tokens(user)

    def verify(self, access_token: str) -> User | None:
        claims = self._decode(access_token, self.config.access_secret, ACCESS)
        if claims is None:
            return None

        user_id = claims.get("sub")
        if not user_id:
            return None
        user = self.get_user(user_id)
        if user is None or user.tenant_id != claims.get("tenant_id"):
            return None
        return user

    def revoke_refresh_token(self, refresh_token: str) -> bool:
        return self.stores.refresh_tokens.delete(refresh_token) is not None

    def _decode(self, token: str, secret: str, expected_type: str) -> dict | None:
        try:
            claims = decode_token(token, secret=secret, algorithm=self.config.algorithm)
        except JWTError as exc:
            logger.info("Rejected %s token: %s", expected_type, exc.__class__.__name__)
            return None
        if claims.get("typ") != expected_type:
            logger.info("Rejected token with type=%s, expected %s", claims.get("typ"), expected_type)
            return None
        return claims

    # --- authorization ---

    @staticmethod
    def has_permission(user: User, permission: str) -> bool:
        if WILDCARD_PERMISSION in user.permissions:
            return True
        if any(role in user.roles for role in PRIVILEGED_ROLES):
            return True
        return permission in user.permissions

    @staticmethod
    def has_role(user: User, role: str) -> bool:
        return role in user.roles
