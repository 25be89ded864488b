import secrets
from hashlib import sha256
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import JWTError, jwt
from passlib.context import CryptContext

ACCESS = "access"
REFRESH = "refresh"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def configure_password_hashing(rounds: int) -> None:
    pwd_context.update(bcrypt__rounds=rounds)


def _ensure_bcrypt_limit(password: str) -> None:
    # bcrypt limit is 72 BYTES, not characters
    if len(password.encode("utf-8")) > 72:
        raise ValueError("Password too long (max 72 bytes).")


def hash_password(password: str) -> str:
    _ensure_bcrypt_limit(password)
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    _ensure_bcrypt_limit(password)
    return pwd_context.verify(password, password_hash)


def dummy_verify() -> None:
    pwd_context.dummy_verify()


def create_token(
    claims: Dict[str, Any],
    *,
    secret: str,
    token_type: str,
    lifetime: timedelta,
    algorithm: str = "HS256",
    now: datetime | None = None,
) -> str:
    now = now or datetime.now(timezone.utc)
    to_encode = dict(claims)
    to_encode["typ"] = token_type
    to_encode["iat"] = int(now.timestamp())
    to_encode["exp"] = int((now + lifetime).timestamp())
    to_encode["jti"] = secrets.token_urlsafe(24)
    return jwt.encode(to_encode, secret, algorithm=algorithm)


def decode_token(token: str, *, secret: str, algorithm: str = "HS256") -> Dict[str, Any]:
    return jwt.decode(token, secret, algorithms=[algorithm])


def hash_token(token: str) -> str:
    return sha256(token.encode("utf-8")).hexdigest()


__all__ = [
    "ACCESS",
    "REFRESH",
    "JWTError",
    "configure_password_hashing",
    "create_token",
    "decode_token",
    "dummy_verify",
    "hash_password",
    "hash_token",
    "verify_password",
]
