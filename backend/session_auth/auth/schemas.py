from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginRequest(CamelModel):
    # presence is checked by the route so a missing field is a 400, not a 422;
    # everything else about the credentials is for authenticate() to judge
    email: str | None = None
    password: str | None = None
    tenant_id: str | None = None


class RefreshRequest(CamelModel):
    refresh_token: str | None = None


class ProfileOut(CamelModel):
    first_name: str
    last_name: str
    avatar: str | None = None
    preferences: dict[str, Any]


class UserMetadataOut(CamelModel):
    created_at: datetime
    updated_at: datetime
    last_login_at: datetime | None = None
    login_count: int
    is_active: bool
    requires_password_change: bool


class SessionUser(CamelModel):
    id: str
    email: str
    tenant_id: str
    roles: list[str]
    profile: ProfileOut


class CurrentUser(SessionUser):
    permissions: list[str]
    metadata: UserMetadataOut


class BrandingOut(CamelModel):
    logo: str
    primary_color: str
    secondary_color: str


class LimitsOut(CamelModel):
    max_users: int
    max_storage: int
    max_api_calls: int


class TenantSettingsOut(CamelModel):
    branding: BrandingOut
    features: dict[str, bool]
    limits: LimitsOut


class TenantMetadataOut(CamelModel):
    created_at: datetime
    updated_at: datetime
    subscription_ends_at: datetime | None = None


class TenantOut(CamelModel):
    id: str
    name: str
    domain: str
    settings: TenantSettingsOut
    status: str
    metadata: TenantMetadataOut


class LoginResponse(CamelModel):
    success: bool = True
    message: str = "Login successful"
    user: SessionUser
    tenant: TenantOut | None = None


class RefreshResponse(CamelModel):
    success: bool = True
    message: str = "Token refreshed successfully"
    user: SessionUser


class MeResponse(CamelModel):
    success: bool = True
    user: CurrentUser
    tenant: TenantOut | None = None


class LogoutResponse(CamelModel):
    success: bool = True
    message: str = "Logged out successfully"
