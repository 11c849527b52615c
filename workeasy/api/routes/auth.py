"""
Authentication API Routes

Sign-in, sign-up, logout, session refresh, password and account role
changes, proxied to the hosted auth provider. Successful sign-in sets the
session cookies the page middleware reads.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, Response
from supabase import AuthError

from workeasy.api.deps import (
    AccessToken,
    AdminDb,
    CurrentUser,
    RequestLocale,
    SupabaseDep,
    require_permission,
)
from workeasy.core.config import settings
from workeasy.core.exceptions import (
    AuthenticationError,
    BadRequestError,
    NotFoundError,
    PermissionDeniedError,
    UpstreamError,
)
from workeasy.core.i18n import resolve_request_locale, t
from workeasy.core.observability import get_logger
from workeasy.core.rate_limiter import auth_limiter
from workeasy.core.rbac import Permission, UserRole, can_change_user_role, coerce_role
from workeasy.core.session_cookies import clear_session_cookies, set_session_cookies
from workeasy.core.supabase import get_auth_user, update_auth_metadata
from workeasy.schemas.auth import (
    ChangePasswordRequest,
    RefreshRequest,
    SignInRequest,
    SignUpRequest,
    UpdateRoleRequest,
    UserProfile,
)
from workeasy.schemas.common import envelope

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

RoleManager = Annotated[
    UserProfile, Depends(require_permission(Permission.MANAGE_USER_ROLES))
]

SIGNIN_ERRORS: list[tuple[tuple[str, ...], str]] = [
    (("Invalid login credentials", "invalid_credentials"), "invalidCredentials"),
    (("Email not confirmed",), "emailNotConfirmed"),
    (("Too many requests",), "tooManyRequests"),
    (("User not found",), "userNotFound"),
]


def signin_error_key(upstream_message: str) -> str:
    for needles, key in SIGNIN_ERRORS:
        if any(needle in upstream_message for needle in needles):
            return f"auth.login.error.{key}"
    return "auth.login.error.general"


def signup_error_key(upstream_message: str) -> str:
    lowered = upstream_message.lower()
    if "already registered" in lowered:
        key = "emailExists"
    elif "password" in lowered:
        key = "weakPassword"
    elif "invalid" in lowered and "email" in lowered:
        key = "invalidEmail"
    elif "signup" in lowered and "disabled" in lowered:
        key = "disabled"
    else:
        key = "general"
    return f"auth.signup.error.{key}"


def session_payload(session: Any) -> dict[str, Any]:
    return {
        "accessToken": session.access_token,
        "refreshToken": session.refresh_token,
        "expiresAt": session.expires_at,
    }


@router.post("/signin")
@auth_limiter.limit(settings.SIGNIN_RATE_LIMIT)
def signin(
    request: Request, response: Response, body: SignInRequest, supabase: SupabaseDep
) -> dict[str, Any]:
    locale = resolve_request_locale(request, body.locale)
    auth_client = supabase.new_auth_client()

    try:
        result = auth_client.auth.sign_in_with_password(
            {"email": body.email, "password": body.password}
        )
    except AuthError as e:
        logger.warning("Sign in failed", email=body.email, error=e.message)
        raise AuthenticationError(
            t(signin_error_key(e.message), locale), code=e.message
        )

    user, session = result.user, result.session
    if session:
        set_session_cookies(response, session)

    logger.info("User signed in", user_id=user.id if user else None)
    return envelope(
        {
            "user": {
                "id": user.id if user else None,
                "email": user.email if user else None,
                "emailConfirmed": bool(user and user.email_confirmed_at),
            },
            "session": session_payload(session) if session else None,
        },
        message=t("auth.login.successDescription", locale),
    )


@router.post("/signup")
def signup(request: Request, body: SignUpRequest, supabase: SupabaseDep) -> dict[str, Any]:
    locale = resolve_request_locale(request, body.locale)
    auth_client = supabase.new_auth_client()
    role = UserRole.PART_TIMER

    try:
        result = auth_client.auth.sign_up(
            {
                "email": body.email,
                "password": body.password,
                "options": {
                    "data": {"role": role.value, "name": body.email.split("@")[0]},
                    "email_redirect_to": settings.email_verification_redirect_url,
                },
            }
        )
    except AuthError as e:
        logger.warning("Sign up failed", email=body.email, error=e.message)
        raise BadRequestError(t(signup_error_key(e.message), locale), code=e.message)

    needs_confirmation = result.session is None
    logger.info(
        "User signed up",
        user_id=result.user.id if result.user else None,
        needs_email_confirmation=needs_confirmation,
    )
    return envelope(
        {
            "user": {
                "id": result.user.id if result.user else None,
                "email": result.user.email if result.user else None,
                "role": role.value,
            },
            "needsEmailConfirmation": needs_confirmation,
        },
        message=t(
            "auth.signup.checkEmail" if needs_confirmation else "auth.signup.success",
            locale,
        ),
    )


@router.post("/logout")
def logout(
    request: Request, response: Response, supabase: SupabaseDep, token: AccessToken
) -> dict[str, Any]:
    locale = resolve_request_locale(request)
    if token:
        try:
            supabase.admin.auth.admin.sign_out(token)
        except AuthError as e:
            logger.error("Sign out failed", error=e.message)
            raise UpstreamError("errors.internal", code=e.message)

    clear_session_cookies(response)
    return envelope(message=t("auth.logout.success", locale))


@router.post("/refresh")
def refresh(
    request: Request,
    response: Response,
    supabase: SupabaseDep,
    body: RefreshRequest | None = None,
) -> dict[str, Any]:
    locale = resolve_request_locale(request)
    refresh_token = (body.refresh_token if body else None) or request.cookies.get(
        settings.REFRESH_TOKEN_COOKIE
    )
    if not refresh_token:
        raise AuthenticationError("errors.refreshTokenMissing")

    auth_client = supabase.new_auth_client()
    try:
        result = auth_client.auth.refresh_session(refresh_token)
    except AuthError as e:
        logger.warning("Session refresh failed", error=e.message)
        raise AuthenticationError("errors.refreshFailed", code=e.message)

    if not result.session:
        raise AuthenticationError("errors.refreshFailed")

    set_session_cookies(response, result.session)
    return envelope(
        {"session": session_payload(result.session)},
        message=t("auth.refresh.success", locale),
    )


@router.get("/profile")
def profile(current_user: CurrentUser) -> dict[str, Any]:
    return envelope(current_user.model_dump(mode="json"))


@router.post("/change-password")
def change_password(
    request: Request,
    body: ChangePasswordRequest,
    current_user: CurrentUser,
    supabase: SupabaseDep,
) -> dict[str, Any]:
    locale = resolve_request_locale(request)
    auth_client = supabase.new_auth_client()

    try:
        auth_client.auth.sign_in_with_password(
            {"email": current_user.email or "", "password": body.current_password}
        )
    except AuthError:
        raise BadRequestError("auth.changePassword.error.currentPasswordIncorrect")

    try:
        auth_client.auth.update_user({"password": body.new_password})
    except AuthError as e:
        logger.error("Password update failed", user_id=current_user.id, error=e.message)
        raise UpstreamError("errors.internal", code=e.message)

    logger.info("Password changed", user_id=current_user.id)
    return envelope(message=t("auth.changePassword.success", locale))


@router.post("/update-role")
def update_role(
    body: UpdateRoleRequest,
    current_user: RoleManager,
    admin: AdminDb,
    locale: RequestLocale,
) -> dict[str, Any]:
    """Change another account's role, subject to the role hierarchy."""
    target = get_auth_user(admin, body.user_id)
    metadata = getattr(target, "user_metadata", None) or {}
    previous = coerce_role(metadata.get("role")) or UserRole.PART_TIMER

    if not can_change_user_role(current_user, str(target.id), previous, body.role):
        logger.warning(
            "Role change refused",
            actor_role=current_user.role.value,
            target_id=str(target.id),
            target_role=previous.value,
            new_role=body.role.value,
        )
        raise PermissionDeniedError("errors.cannotChangeRole")

    update_auth_metadata(admin, target, {"role": body.role.value})
    logger.info(
        "User role updated",
        target_id=str(target.id),
        previous_role=previous.value,
        new_role=body.role.value,
    )
    return envelope(
        {
            "userId": str(target.id),
            "newRole": body.role.value,
            "previousRole": previous.value,
        },
        message=t("auth.updateRole.success", locale),
    )


@router.post("/promote-to-master")
def promote_to_master(
    current_user: CurrentUser, admin: AdminDb, locale: RequestLocale
) -> dict[str, Any]:
    """Development shortcut that makes the caller a master account."""
    if settings.ENVIRONMENT == "production":
        raise NotFoundError("errors.notFound")

    if current_user.role == UserRole.MASTER:
        return envelope(
            {"userId": current_user.id, "currentRole": current_user.role.value},
            message=t("auth.promoteToMaster.already", locale),
        )

    target = get_auth_user(admin, current_user.id)
    update_auth_metadata(admin, target, {"role": UserRole.MASTER.value})
    logger.info("User promoted to master", user_id=current_user.id)
    return envelope(
        {
            "userId": current_user.id,
            "email": current_user.email,
            "previousRole": current_user.role.value,
            "newRole": UserRole.MASTER.value,
        },
        message=t("auth.promoteToMaster.success", locale),
    )
