"""
API Dependencies

Authentication, locale resolution and Supabase client injection for
FastAPI routes. The caller's identity comes from the auth provider: the
access token is read from the ``Authorization`` header or the
``sb-access-token`` cookie and checked with ``auth.get_user``.
"""

from typing import Annotated, Any

from fastapi import Depends, Query, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import AuthError, Client

from workeasy.core.config import settings
from workeasy.core.exceptions import (
    AuthenticationError,
    BadRequestError,
    PermissionDeniedError,
)
from workeasy.core.i18n import resolve_request_locale
from workeasy.core.observability import get_logger, set_user_id
from workeasy.core.rbac import (
    Permission,
    UserRole,
    check_user_permission,
    coerce_role,
    has_permission,
)
from workeasy.core.supabase import SupabaseClient, get_supabase_client
from workeasy.schemas.auth import UserProfile

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_supabase() -> SupabaseClient:
    return get_supabase_client()


SupabaseDep = Annotated[SupabaseClient, Depends(get_supabase)]


def get_access_token(
    request: Request,
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ] = None,
) -> str | None:
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.ACCESS_TOKEN_COOKIE) or None


AccessToken = Annotated[str | None, Depends(get_access_token)]


def get_request_locale(request: Request) -> str:
    return resolve_request_locale(request)


RequestLocale = Annotated[str, Depends(get_request_locale)]


def profile_from_user(user: Any) -> UserProfile:
    """Build the caller profile from an auth provider user object."""
    metadata = getattr(user, "user_metadata", None) or {}
    email = getattr(user, "email", None)
    name = metadata.get("name") or metadata.get("full_name")
    if not name:
        name = email.split("@")[0] if email else ""

    return UserProfile(
        id=str(user.id),
        email=email,
        name=name,
        role=coerce_role(metadata.get("role")) or UserRole.PART_TIMER,
        email_confirmed=getattr(user, "email_confirmed_at", None) is not None,
        created_at=getattr(user, "created_at", None),
    )


def get_current_user(
    request: Request, supabase: SupabaseDep, token: AccessToken
) -> UserProfile:
    """Resolve the authenticated caller or raise 401."""
    if not token:
        raise AuthenticationError()

    try:
        response = supabase.client.auth.get_user(token)
    except AuthError as e:
        logger.warning("Token validation failed", error=str(e))
        raise AuthenticationError()

    user = response.user if response else None
    if not user:
        raise AuthenticationError()

    profile = profile_from_user(user)

    # Store user info in request state for audit logging and rate limiting
    request.state.current_user_id = profile.id
    set_user_id(profile.id)

    return profile


CurrentUser = Annotated[UserProfile, Depends(get_current_user)]


def get_user_db(
    supabase: SupabaseDep, token: AccessToken, current_user: CurrentUser
) -> Client:
    """Supabase client scoped to the caller, so row-level security applies."""
    return supabase.get_user_client(token or "")


UserDb = Annotated[Client, Depends(get_user_db)]


def get_admin_db(supabase: SupabaseDep) -> Client:
    return supabase.admin


AdminDb = Annotated[Client, Depends(get_admin_db)]


# RBAC Dependencies
def require_role(
    *allowed_roles: UserRole, message_key: str = "errors.insufficientPermissions"
):
    """Dependency that only lets callers holding one of ``allowed_roles`` through."""

    def role_checker(current_user: CurrentUser) -> UserProfile:
        if current_user.role not in allowed_roles:
            logger.warning(
                "Role check failed",
                role=current_user.role.value,
                allowed=[r.value for r in allowed_roles],
            )
            raise PermissionDeniedError(message_key)
        return current_user

    return role_checker


def require_permission(required_permission: Permission):
    """Dependency to check if user has required permission."""

    def permission_checker(current_user: CurrentUser) -> UserProfile:
        check = check_user_permission(current_user, required_permission)
        if not check.allowed:
            raise PermissionDeniedError(
                details={
                    "reason": check.reason,
                    "required_role": check.required_role.value
                    if check.required_role
                    else None,
                },
            )
        return current_user

    return permission_checker


def require_admin(current_user: CurrentUser) -> UserProfile:
    if not has_permission(
        current_user.role, Permission.VIEW_ADMIN_DASHBOARD
    ) or current_user.role not in (UserRole.MASTER, UserRole.SUB_MANAGER):
        raise PermissionDeniedError("errors.adminRequired")
    return current_user


require_master = require_role(UserRole.MASTER, message_key="errors.masterRequired")


AdminUser = Annotated[UserProfile, Depends(require_admin)]
MasterUser = Annotated[UserProfile, Depends(require_master)]


def require_store_id(store_id: str | None = Query(None)) -> str:
    if not store_id:
        raise BadRequestError("errors.storeIdRequired")
    return store_id


StoreIdParam = Annotated[str, Depends(require_store_id)]


def no_store_cache(response: Response) -> None:
    response.headers["Cache-Control"] = "no-store"
