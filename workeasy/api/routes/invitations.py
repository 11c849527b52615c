"""
Invitation API Routes

Managers invite staff by email, or register guest users who have no
account. Email invitations carry a token hash that the invited user
presents when accepting, which signs them up and grants the store role.
"""

from datetime import datetime, timedelta, timezone
from math import ceil
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Query, Request
from postgrest.exceptions import APIError
from pydantic import TypeAdapter
from supabase import AuthError, Client

from workeasy.api.deps import AdminDb, CurrentUser, RequestLocale, SupabaseDep, UserDb
from workeasy.core.config import settings
from workeasy.core.exceptions import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    UpstreamError,
)
from workeasy.core.i18n import resolve_request_locale, t
from workeasy.core.observability import get_logger
from workeasy.core.rbac import is_manager_role
from workeasy.core.supabase import fetch_one
from workeasy.schemas.auth import UserProfile
from workeasy.schemas.common import envelope
from workeasy.schemas.stores import InvitationAccept, InvitationCreate
from workeasy.services.audit import AuditAction, log_store_audit
from workeasy.services.store_access import get_store, get_store_role, is_store_manager

logger = get_logger(__name__)

router = APIRouter(prefix="/invitations", tags=["invitations"])


timestamp_adapter = TypeAdapter(datetime)


def parse_timestamp(value: str) -> datetime:
    """Parse a PostgREST timestamp; naive values are taken as UTC."""
    parsed = timestamp_adapter.validate_python(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_expired(invitation: dict[str, Any], now: datetime | None = None) -> bool:
    expires_at = invitation.get("expires_at")
    if not expires_at:
        return False
    return parse_timestamp(expires_at) < (now or datetime.now(timezone.utc))


def invitation_status(invitation: dict[str, Any], now: datetime | None = None) -> str:
    """Display status: cancelled, then used, then expired, else valid."""
    if invitation.get("status") == "CANCELLED":
        return "cancelled"
    if invitation.get("status") == "ACCEPTED":
        return "used"
    if is_expired(invitation, now):
        return "expired"
    return "valid"


def invite_redirect_url(token_hash: str, locale: str) -> str:
    return (
        f"{settings.APP_URL}/{locale}/invites/verify-email"
        f"?token={token_hash}&type=invite"
    )


def _first_row(data: Any) -> dict[str, Any] | None:
    if isinstance(data, list):
        return data[0] if data else None
    return data or None


def ensure_inviter(db: Client, store_id: str, user_id: str) -> None:
    if not is_manager_role(get_store_role(db, store_id, user_id)):
        raise PermissionDeniedError()


def find_auth_user_by_email(admin: Client, email: str) -> Any | None:
    wanted = email.lower()
    for user in admin.auth.admin.list_users():
        if (user.email or "").lower() == wanted:
            return user
    return None


def send_invite_email(
    admin: Client,
    email: str,
    metadata: dict[str, Any],
    redirect_to: str,
) -> None:
    admin.auth.admin.invite_user_by_email(
        email, options={"data": metadata, "redirect_to": redirect_to}
    )


def create_invitation_row(
    db: Client, store_id: str, body: InvitationCreate, invited_by: str
) -> dict[str, Any]:
    try:
        data = (
            db.rpc(
                "create_invitation",
                {
                    "p_store_id": store_id,
                    "p_invited_email": body.email,
                    "p_role_hint": body.role_hint,
                    "p_expires_in_days": body.expires_in_days,
                    "p_invited_by": invited_by,
                },
            )
            .execute()
            .data
        )
    except APIError as e:
        logger.error("Invitation creation failed", store_id=store_id, error=str(e))
        raise UpstreamError("errors.internal", code=e.code)

    invitation = _first_row(data)
    if not invitation:
        raise UpstreamError("errors.internal")
    return invitation


def create_guest_user(
    db: Client, body: InvitationCreate, current_user: UserProfile, locale: str
) -> dict[str, Any]:
    if not body.name or not body.store_id or not body.role_hint:
        raise BadRequestError("errors.guestFieldsRequired")

    store_id = str(body.store_id)
    get_store(db, store_id)
    ensure_inviter(db, store_id, current_user.id)

    existing = fetch_one(
        db.table("store_users")
        .select("id")
        .eq("store_id", store_id)
        .eq("name", body.name)
        .eq("is_guest", True)
        .eq("is_active", True)
    )
    if existing:
        raise ConflictError("errors.guestExists")

    rows = (
        db.table("store_users")
        .insert(
            {
                "store_id": store_id,
                "user_id": None,
                "name": body.name,
                "role": body.role_hint,
                "is_guest": True,
                "is_active": True,
                "granted_by": current_user.id,
                "granted_at": datetime.now(timezone.utc).isoformat(),
            }
        )
        .execute()
        .data
    )
    if not rows:
        raise UpstreamError("errors.internal")

    guest = rows[0]
    log_store_audit(
        db,
        store_id,
        AuditAction.CREATE_GUEST_USER,
        "store_users",
        new_values={
            "name": body.name,
            "role": body.role_hint,
            "is_guest": True,
            "granted_by": current_user.id,
        },
    )
    logger.info("Guest user created", store_id=store_id, guest_user_id=guest.get("id"))
    return envelope(
        {"guestUserId": guest.get("id"), "guestUser": guest},
        message=t("invitations.guestCreated", locale),
    )


def create_email_invitation(
    db: Client,
    admin: Client,
    body: InvitationCreate,
    current_user: UserProfile,
    locale: str,
) -> dict[str, Any]:
    if not body.email or not body.store_id or not body.role_hint:
        raise BadRequestError("errors.emailFieldsRequired")

    store_id = str(body.store_id)
    store = get_store(db, store_id)
    ensure_inviter(db, store_id, current_user.id)

    existing_user = find_auth_user_by_email(admin, body.email)
    pending = fetch_one(
        db.table("invitations")
        .select("*")
        .eq("invited_email", body.email)
        .eq("store_id", store_id)
        .eq("status", "PENDING")
    )

    if existing_user:
        # Existing accounts join from their store list; no email is sent.
        invitation = pending or create_invitation_row(db, store_id, body, current_user.id)
        logger.info(
            "Existing user invited",
            store_id=store_id,
            invitation_id=invitation.get("id"),
            reused=pending is not None,
        )
        return envelope(
            {
                "invitationId": invitation.get("id"),
                "invitation": {
                    "id": invitation.get("id"),
                    "invited_email": body.email,
                    "role_hint": body.role_hint,
                    "expires_at": invitation.get("expires_at"),
                    "status": "PENDING",
                },
            },
            message=t("invitations.existingUser", locale),
        )

    if pending:
        db.table("invitations").delete().eq("id", pending["id"]).execute()

    invitation = create_invitation_row(db, store_id, body, current_user.id)
    invitation_id = invitation.get("id")
    token_hash = invitation.get("token_hash") or ""

    metadata = {
        "store_id": store_id,
        "store_name": store.get("name"),
        "role_hint": body.role_hint,
        "token_hash": token_hash,
        "type": "store_invitation",
        "invited_by": current_user.name or current_user.email,
        "invited_name": body.name or "",
        "is_invited_user": True,
    }
    try:
        send_invite_email(admin, body.email, metadata, invite_redirect_url(token_hash, locale))
    except Exception as e:
        logger.error(
            "Invitation email failed", invitation_id=invitation_id, error=str(e)
        )
        db.table("invitations").delete().eq("id", invitation_id).execute()
        raise UpstreamError(
            "errors.invitationEmailFailed", code=getattr(e, "code", None)
        ) from e

    log_store_audit(
        db,
        store_id,
        AuditAction.CREATE_INVITATION,
        "invitations",
        new_values={
            "invited_email": body.email,
            "role_hint": body.role_hint,
            "expires_in_days": body.expires_in_days,
            "invited_by": current_user.id,
        },
    )
    logger.info("Invitation created", store_id=store_id, invitation_id=invitation_id)
    return envelope(
        {"invitationId": invitation_id}, message=t("invitations.created", locale)
    )


@router.post("")
def create_invitation(
    body: InvitationCreate,
    current_user: CurrentUser,
    db: UserDb,
    admin: AdminDb,
    locale: RequestLocale,
) -> dict[str, Any]:
    if body.is_guest:
        return create_guest_user(db, body, current_user, locale)
    return create_email_invitation(db, admin, body, current_user, locale)


@router.get("")
def list_invitations(
    current_user: CurrentUser,
    db: UserDb,
    store_id: UUID | None = Query(None, alias="storeId"),
    status: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> dict[str, Any]:
    if not store_id:
        raise BadRequestError("errors.storeIdRequired")
    ensure_inviter(db, str(store_id), current_user.id)

    query = db.table("invitations").select("*").eq("store_id", str(store_id))
    if status:
        query = query.eq("status", status)
    invitations = query.order("created_at", desc=True).execute().data or []

    total = len(invitations)
    offset = (page - 1) * limit
    return envelope(
        {
            "invitations": invitations[offset : offset + limit],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": ceil(total / limit),
            },
        }
    )


@router.post("/accept")
def accept_invitation(
    request: Request, body: InvitationAccept, supabase: SupabaseDep
) -> dict[str, Any]:
    """Sign up the invited user and grant the store role. No session required."""
    locale = resolve_request_locale(request)
    db = supabase.admin

    invitation = fetch_one(
        db.table("invitations")
        .select("*")
        .eq("token_hash", body.token_hash)
        .eq("status", "PENDING")
    )
    if not invitation:
        raise BadRequestError("errors.invitationInvalid")

    if is_expired(invitation):
        db.table("invitations").update({"status": "EXPIRED"}).eq(
            "id", invitation["id"]
        ).execute()
        raise BadRequestError("errors.invitationExpired")

    auth_client = supabase.new_auth_client()
    try:
        result = auth_client.auth.sign_up(
            {
                "email": invitation["invited_email"],
                "password": body.password,
                "options": {
                    "data": {"name": body.name, "role": invitation["role_hint"]},
                    "email_redirect_to": settings.email_verification_redirect_url,
                },
            }
        )
    except AuthError as e:
        logger.warning(
            "Invitation sign up failed", invitation_id=invitation["id"], error=str(e)
        )
        raise BadRequestError("auth.signup.error.general", details=e.message)

    if not result.user:
        raise UpstreamError("errors.internal")
    user_id = result.user.id

    try:
        user_role_id = (
            db.rpc(
                "grant_user_role",
                {
                    "p_user_id": user_id,
                    "p_store_id": invitation["store_id"],
                    "p_role": invitation["role_hint"],
                    "p_granted_by": invitation["invited_by"],
                },
            )
            .execute()
            .data
        )
    except APIError as e:
        logger.error("Invitation role grant failed", user_id=user_id, error=str(e))
        raise UpstreamError("errors.internal", details=e.message, code=e.code)

    try:
        db.table("invitations").update(
            {
                "status": "ACCEPTED",
                "accepted_at": datetime.now(timezone.utc).isoformat(),
                "accepted_by": user_id,
            }
        ).eq("id", invitation["id"]).execute()
    except APIError as e:
        logger.error(
            "Invitation status update failed",
            invitation_id=invitation["id"],
            error=str(e),
        )

    log_store_audit(
        db,
        invitation["store_id"],
        AuditAction.ACCEPT_INVITATION,
        "invitations",
        old_values={"token_hash": body.token_hash, "status": "PENDING"},
        new_values={
            "token_hash": body.token_hash,
            "status": "ACCEPTED",
            "accepted_by": user_id,
        },
    )

    store = fetch_one(db.table("stores").select("name").eq("id", invitation["store_id"]))
    logger.info(
        "Invitation accepted", invitation_id=invitation["id"], user_id=user_id
    )
    return envelope(
        {
            "userId": user_id,
            "userRoleId": user_role_id,
            "storeId": invitation["store_id"],
            "storeName": store.get("name") if store else None,
            "needsEmailConfirmation": result.session is None,
        },
        message=t("invitations.accepted", locale),
    )


def get_managed_invitation(
    db: Client, invitation_id: str, user_id: str
) -> dict[str, Any]:
    invitation = fetch_one(db.table("invitations").select("*").eq("id", invitation_id))
    if not invitation:
        raise NotFoundError("errors.invitationNotFound")
    if not is_store_manager(db, invitation["store_id"], user_id, allow_owner=True):
        raise PermissionDeniedError()
    if invitation.get("status") != "PENDING":
        raise BadRequestError("errors.invitationNotPending")
    return invitation


@router.post("/{invitation_id}/cancel")
def cancel_invitation(
    invitation_id: str, current_user: CurrentUser, db: UserDb, locale: RequestLocale
) -> dict[str, Any]:
    invitation = get_managed_invitation(db, invitation_id, current_user.id)

    db.table("invitations").update(
        {
            "status": "CANCELLED",
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
    ).eq("id", invitation_id).execute()

    log_store_audit(
        db,
        invitation["store_id"],
        AuditAction.CANCEL_INVITATION,
        "invitations",
        old_values={"id": invitation_id, "status": "PENDING"},
        new_values={"id": invitation_id, "status": "CANCELLED"},
    )
    logger.info("Invitation cancelled", invitation_id=invitation_id)
    return envelope(message=t("invitations.cancelled", locale))


@router.post("/{invitation_id}/resend")
def resend_invitation(
    invitation_id: str,
    current_user: CurrentUser,
    db: UserDb,
    admin: AdminDb,
    locale: RequestLocale,
) -> dict[str, Any]:
    invitation = get_managed_invitation(db, invitation_id, current_user.id)

    now = datetime.now(timezone.utc)
    expires_at = (
        now + timedelta(days=settings.INVITATION_RESEND_EXTENSION_DAYS)
    ).isoformat()
    db.table("invitations").update(
        {"expires_at": expires_at, "updated_at": now.isoformat()}
    ).eq("id", invitation_id).execute()

    token_hash = invitation.get("token_hash") or ""
    try:
        send_invite_email(
            admin,
            invitation["invited_email"],
            {
                "store_id": invitation["store_id"],
                "role_hint": invitation.get("role_hint"),
                "token_hash": token_hash,
                "type": "store_invitation",
                "invited_by": current_user.name or current_user.email,
                "is_invited_user": True,
            },
            invite_redirect_url(token_hash, locale),
        )
    except Exception as e:
        logger.warning(
            "Invitation email resend failed", invitation_id=invitation_id, error=str(e)
        )

    log_store_audit(
        db,
        invitation["store_id"],
        AuditAction.RESEND_INVITATION,
        "invitations",
        old_values={"id": invitation_id, "expires_at": invitation.get("expires_at")},
        new_values={"id": invitation_id, "expires_at": expires_at},
    )
    return envelope({"expiresAt": expires_at}, message=t("invitations.resent", locale))


@router.get("/info/{token}")
def invitation_info(token: str, supabase: SupabaseDep, locale: RequestLocale) -> dict[str, Any]:
    data = (
        supabase.client.rpc("get_invitation_by_token", {"p_token": token})
        .execute()
        .data
    )
    invitation = _first_row(data)
    if not invitation:
        raise NotFoundError("errors.invitationNotFound")

    status = invitation_status(invitation)
    return envelope(
        {
            **invitation,
            "status": status,
            "statusMessage": t(f"invitations.status.{status}", locale),
            "isValid": status == "valid",
        }
    )
