from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from session_auth.auth.cookies import ACCESS_COOKIE
from session_auth.auth.login_guard import LoginGuard
from session_auth.auth.models import User
from session_auth.auth.service import TokenService
from session_auth.core.config import Settings

bearer = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_login_guard(request: Request) -> LoginGuard:
    return request.app.state.login_guard


def get_current_user(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    service: TokenService = Depends(get_token_service),
) -> User:
    token = request.cookies.get(ACCESS_COOKIE)
    if not token and creds:
        token = creds.credentials
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    user = service.verify(token)
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_permission(permission: str):
    def checker(
        user: User = Depends(get_current_user),
        service: TokenService = Depends(get_token_service),
    ) -> User:
        if not service.has_permission(user, permission):
            raise HTTPException(status_code=403, detail=f"Missing required permission: {permission}")
        return user

    return checker


def require_role(role: str):
    def checker(
        user: User = Depends(get_current_user),
        service: TokenService = Depends(get_token_service),
    ) -> User:
        if not service.has_role(user, role):
            raise HTTPException(status_code=403, detail="Insufficient role")
        return user

    return checker
