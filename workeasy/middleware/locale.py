"""
Locale prefix and session gate for page paths.

Page URLs always carry a locale prefix (``/ko/...``). Paths without one are
redirected to the detected locale. Protected pages require a session held
in the auth cookies; sessions close to expiry are refreshed here and the
new tokens written back as cookies.
"""

import time
from typing import Any
from urllib.parse import urlencode

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response
from supabase import AuthError

from workeasy.api.deps import get_supabase
from workeasy.core.config import settings
from workeasy.core.i18n import (
    detect_page_locale,
    locale_cookie_kwargs,
    split_page_path,
)
from workeasy.core.observability import get_logger
from workeasy.core.session_cookies import set_session_cookies, token_expiry
from workeasy.core.supabase import SupabaseClient

logger = get_logger(__name__)

SKIPPED_PREFIXES = ("/_next", "/static", "/docs", "/redoc", "/openapi.json")
PUBLIC_PATHS = ("/", "/login", "/signup")
PUBLIC_PREFIXES = ("/auth", "/invites/error")


def should_skip(path: str) -> bool:
    return (
        path.startswith(SKIPPED_PREFIXES)
        or path.startswith(settings.API_PREFIX)
        or "." in path
    )


def is_public_path(path: str) -> bool:
    return path in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES)


def login_redirect(locale: str, path: str, session_expired: bool = False) -> RedirectResponse:
    params = {"redirectTo": path}
    if session_expired:
        params["sessionExpired"] = "true"
    return RedirectResponse(f"/{locale}/login?{urlencode(params)}", status_code=307)


class LocaleRedirectMiddleware(BaseHTTPMiddleware):
    def _supabase(self, request: Request) -> SupabaseClient:
        # Same provider the routes resolve, overrides included.
        factory = request.app.dependency_overrides.get(get_supabase, get_supabase)
        return factory()

    async def _refresh(self, supabase: SupabaseClient, refresh_token: str) -> Any | None:
        auth_client = supabase.new_auth_client()
        try:
            result = await run_in_threadpool(
                auth_client.auth.refresh_session, refresh_token
            )
        except Exception as e:
            logger.warning("Page session refresh failed", error=str(e))
            return None
        return result.session if result else None

    async def _has_user(self, supabase: SupabaseClient, access_token: str) -> bool:
        try:
            result = await run_in_threadpool(supabase.client.auth.get_user, access_token)
        except AuthError as e:
            logger.info("Page session rejected", error=str(e))
            return False
        except Exception as e:
            logger.error("Page session check failed", error=str(e))
            return False
        return bool(result and result.user)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if should_skip(path):
            return await call_next(request)

        locale, page_path = split_page_path(path)
        if locale is None:
            detected = detect_page_locale(request)
            target = f"/{detected}{'' if path == '/' else path}"
            if request.url.query:
                target = f"{target}?{request.url.query}"
            response = RedirectResponse(target, status_code=307)
            response.set_cookie(**locale_cookie_kwargs(detected))
            return response

        if is_public_path(page_path):
            return await call_next(request)

        access_token = request.cookies.get(settings.ACCESS_TOKEN_COOKIE)
        refresh_token = request.cookies.get(settings.REFRESH_TOKEN_COOKIE)
        if not access_token and not refresh_token:
            return login_redirect(locale, page_path)

        supabase = self._supabase(request)
        now = time.time()
        expires_at = token_expiry(access_token)
        expired = not access_token or (expires_at is not None and expires_at <= now)

        new_session = None
        if expired:
            if refresh_token:
                new_session = await self._refresh(supabase, refresh_token)
            if new_session is None:
                return login_redirect(locale, page_path, session_expired=True)
        else:
            if not await self._has_user(supabase, access_token or ""):
                return login_redirect(locale, page_path)
            near_expiry = (
                expires_at is not None
                and expires_at - now <= settings.MIDDLEWARE_REFRESH_THRESHOLD_SECONDS
            )
            if near_expiry and refresh_token:
                new_session = await self._refresh(supabase, refresh_token)

        response = await call_next(request)
        if new_session is not None:
            set_session_cookies(response, new_session)
        return response
