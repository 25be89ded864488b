from fastapi import APIRouter, Depends, HTTPException

from session_auth.auth.deps import get_current_user, get_token_service, require_permission
from session_auth.auth.models import Tenant, TenantSettings, User
from session_auth.auth.schemas import TenantOut
from session_auth.auth.service import TokenService
from session_auth.tenants.schemas import TenantCreate

router = APIRouter()


@router.post("", response_model=TenantOut, status_code=201)
def create_tenant(
    payload: TenantCreate,
    service: TokenService = Depends(get_token_service),
    current_user: User = Depends(require_permission("tenants:write")),
):
    tenant = Tenant(
        id=payload.id,
        name=payload.name,
        domain=payload.domain,
        settings=TenantSettings(features=payload.features),
        status=payload.status,
    )
    try:
        service.create_tenant(tenant)
    except ValueError:
        raise HTTPException(status_code=409, detail="Tenant already exists")
    return TenantOut.model_validate(tenant.model_dump())


@router.get("/{tenant_id}", response_model=TenantOut)
def get_tenant(
    tenant_id: str,
    service: TokenService = Depends(get_token_service),
    current_user: User = Depends(get_current_user),
):
    if current_user.tenant_id != tenant_id and not service.has_permission(current_user, "tenants:read"):
        raise HTTPException(status_code=403, detail="Missing required permission: tenants:read")

    tenant = service.get_tenant(tenant_id)
    if not tenant:
        raise HTTPException(status_code=404, detail="Tenant not found")
    return TenantOut.model_validate(tenant.model_dump())
