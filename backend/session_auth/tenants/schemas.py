from typing import Literal

from pydantic import Field

from session_auth.auth.schemas import CamelModel


class TenantCreate(CamelModel):
    id: str = Field(min_length=3, max_length=64, description="Tenant ID like acme")
    name: str = Field(min_length=2, max_length=255)
    domain: str = Field(min_length=3, max_length=255)
    features: dict[str, bool] = Field(default_factory=dict)
    status: Literal["active", "suspended", "trial", "expired"] = "trial"
