"""
Rate limiting for authentication endpoints.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .i18n import resolve_request_locale, t
from .observability import get_logger

logger = get_logger(__name__)

auth_limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    locale = resolve_request_locale(request)
    logger.warning(
        "Rate limit exceeded",
        path=request.url.path,
        client_ip=get_remote_address(request),
        limit=str(exc.detail),
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "success": False,
            "error": t("auth.login.error.tooManyRequests", locale),
        },
    )
