from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserProfile(BaseModel):
    first_name: str = ""
    last_name: str = ""
    avatar: str | None = None
    preferences: dict[str, Any] = Field(default_factory=dict)


class UserMetadata(BaseModel):
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    last_login_at: datetime | None = None
    login_count: int = 0
    is_active: bool = True
    requires_password_change: bool = False


class User(BaseModel):
    id: str
    email: str                    # unique, lower-cased
    tenant_id: str
    password_hash: str
    roles: list[str] = Field(default_factory=list)
    permissions: list[str] = Field(default_factory=list)   # "*" grants everything
    profile: UserProfile = Field(default_factory=UserProfile)
    metadata: UserMetadata = Field(default_factory=UserMetadata)


class TenantBranding(BaseModel):
    logo: str = ""
    primary_color: str = ""
    secondary_color: str = ""


class TenantLimits(BaseModel):
    max_users: int = 0
    max_storage: int = 0
    max_api_calls: int = 0


class TenantSettings(BaseModel):
    branding: TenantBranding = Field(default_factory=TenantBranding)
    features: dict[str, bool] = Field(default_factory=dict)
    limits: TenantLimits = Field(default_factory=TenantLimits)


class TenantMetadata(BaseModel):
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    subscription_ends_at: datetime | None = None


class Tenant(BaseModel):
    id: str
    name: str
    domain: str
    settings: TenantSettings = Field(default_factory=TenantSettings)
    status: Literal["active", "suspended", "trial", "expired"] = "active"
    metadata: TenantMetadata = Field(default_factory=TenantMetadata)


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    expires_in: int


class RefreshTokenRecord(BaseModel):
    user_id: str
    tenant_id: str
    expires_at: datetime


class UserId(BaseModel):
    """Email index entry pointing at a user id."""

    id: str
