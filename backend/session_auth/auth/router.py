import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from session_auth.auth.cookies import REFRESH_COOKIE, clear_auth_cookies, set_auth_cookies
from session_auth.auth.deps import get_current_user, get_login_guard, get_settings, get_token_service
from session_auth.auth.login_guard import LoginGuard
from session_auth.auth.models import Tenant, User
from session_auth.auth.schemas import (
    CurrentUser,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    MeResponse,
    RefreshRequest,
    RefreshResponse,
    SessionUser,
    TenantOut,
)
from session_auth.auth.service import TokenService, normalize_email
from session_auth.core.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter()


def _tenant_out(tenant: Tenant | None) -> TenantOut | None:
    if tenant is None:
        return None
    return TenantOut.model_validate(tenant.model_dump())


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    service: TokenService = Depends(get_token_service),
    guard: LoginGuard = Depends(get_login_guard),
    settings: Settings = Depends(get_settings),
):
    if not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    client_ip = request.client.host if request.client else "unknown"
    login_key = f"{normalize_email(payload.email)}:{client_ip}"
    locked_until = guard.is_locked(login_key)
    if locked_until:
        raise HTTPException(
            status_code=429,
            detail=f"Too many failed attempts. Retry after {locked_until.isoformat()}",
        )

    result = service.authenticate(payload.email, payload.password, payload.tenant_id)
    if result is None:
        new_lock = guard.register_failure(login_key)
        if new_lock:
            raise HTTPException(
                status_code=429,
                detail=f"Too many failed attempts. Retry after {new_lock.isoformat()}",
            )
        raise HTTPException(status_code=401, detail="Invalid credentials")

    guard.clear_failures(login_key)
    user, tokens = result
    set_auth_cookies(response, tokens, settings)

    return LoginResponse(
        user=SessionUser.model_validate(user.model_dump()),
        tenant=_tenant_out(service.get_tenant(user.tenant_id)),
    )


@router.post("/logout", response_model=LogoutResponse)
def logout(
    request: Request,
    response: Response,
    service: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
):
    if settings.AUTH_REVOKE_ON_LOGOUT:
        refresh_token = request.cookies.get(REFRESH_COOKIE)
        if refresh_token:
            service.revoke_refresh_token(refresh_token)

    clear_auth_cookies(response, settings)
    return LogoutResponse()


@router.get("/me", response_model=MeResponse)
def me(
    current_user: User = Depends(get_current_user),
    service: TokenService = Depends(get_token_service),
):
    return MeResponse(
        user=CurrentUser.model_validate(current_user.model_dump()),
        tenant=_tenant_out(service.get_tenant(current_user.tenant_id)),
    )


@router.post("/refresh", response_model=RefreshResponse)
def refresh(
    request: Request,
    response: Response,
    payload: RefreshRequest | None = None,
    service: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
):
    refresh_token = payload.refresh_token if payload else None
    if not refresh_token:
        refresh_token = request.cookies.get(REFRESH_COOKIE)
    if not refresh_token:
        raise HTTPException(status_code=400, detail="Refresh token is required")

    result = service.refresh(refresh_token)
    if result is None:
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    user, tokens = result
    set_auth_cookies(response, tokens, settings)
    return RefreshResponse(user=SessionUser.model_validate(user.model_dump()))
