"""Auth session cookies shared by the auth routes and the page middleware."""

from typing import Any

import jwt
from starlette.responses import Response

from .config import settings

REFRESH_COOKIE_MAX_AGE = 60 * 60 * 24 * 30


def set_session_cookies(response: Response, session: Any) -> None:
    secure = settings.ENVIRONMENT != "local"
    response.set_cookie(
        settings.ACCESS_TOKEN_COOKIE,
        session.access_token,
        max_age=session.expires_in or 3600,
        httponly=True,
        secure=secure,
        samesite="lax",
        path="/",
    )
    response.set_cookie(
        settings.REFRESH_TOKEN_COOKIE,
        session.refresh_token,
        max_age=REFRESH_COOKIE_MAX_AGE,
        httponly=True,
        secure=secure,
        samesite="lax",
        path="/",
    )


def clear_session_cookies(response: Response) -> None:
    response.delete_cookie(settings.ACCESS_TOKEN_COOKIE, path="/")
    response.delete_cookie(settings.REFRESH_TOKEN_COOKIE, path="/")


def token_expiry(access_token: str | None) -> int | None:
    """The ``exp`` claim of an access token, read without verifying it.

    The auth provider verifies the token; this only decides when to refresh.
    """
    if not access_token:
        return None
    try:
        claims = jwt.decode(access_token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None
    exp = claims.get("exp")
    return int(exp) if isinstance(exp, int | float) else None
