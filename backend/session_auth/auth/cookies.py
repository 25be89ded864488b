from fastapi import Response

from session_auth.auth.models import TokenPair
from session_auth.core.config import Settings

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def _cookie_options(settings: Settings) -> dict:
    return {
        "path": "/",
        "domain": settings.COOKIE_DOMAIN,
        "secure": settings.cookie_secure,
        "httponly": True,
        "samesite": "strict",
    }


def set_auth_cookies(response: Response, tokens: TokenPair, settings: Settings) -> None:
    options = _cookie_options(settings)
    response.set_cookie(ACCESS_COOKIE, tokens.access_token, max_age=tokens.expires_in, **options)
    response.set_cookie(
        REFRESH_COOKIE,
        tokens.refresh_token,
        max_age=settings.JWT_REFRESH_EXP_DAYS * 24 * 60 * 60,
        **options,
    )


def clear_auth_cookies(response: Response, settings: Settings) -> None:
    options = _cookie_options(settings)
    response.delete_cookie(ACCESS_COOKIE, **options)
    response.delete_cookie(REFRESH_COOKIE, **options)
