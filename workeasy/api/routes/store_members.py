"""
Store Membership API Routes

Role grants, user lifecycle actions, member profiles and temporary work
for a single store. Role and lifecycle mutations go through a database
function so the role tables stay consistent, and are followed by an audit
entry.
"""

from datetime import date
from typing import Any
from uuid import UUID

from fastapi import APIRouter
from postgrest.exceptions import APIError
from supabase import Client

from workeasy.api.deps import AdminDb, CurrentUser, RequestLocale, UserDb
from workeasy.core.exceptions import (
    BadRequestError,
    NotFoundError,
    PermissionDeniedError,
    UpstreamError,
)
from workeasy.core.i18n import t
from workeasy.core.observability import get_logger
from workeasy.core.rbac import UserRole
from workeasy.core.supabase import fetch_one, get_auth_user, update_auth_metadata
from workeasy.schemas.common import envelope
from workeasy.schemas.stores import (
    GrantRoleRequest,
    StoreUserProfileUpdate,
    StoreUserRequest,
    TemporaryAssignment,
)
from workeasy.services.audit import AuditAction, log_store_audit
from workeasy.services.store_access import (
    ensure_store_manager,
    get_owned_store,
    get_store_role,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/stores/{store_id}", tags=["store-members"])

STORE_USER_COLUMNS = "id, user_id, name, email, role, status, is_guest, is_active"


def call_store_rpc(
    db: Client, function: str, params: dict[str, Any], failure: str = "errors.internal"
) -> Any:
    try:
        return db.rpc(function, params).execute().data
    except APIError as e:
        logger.error(
            "Store function failed",
            function=function,
            store_id=params.get("p_store_id"),
            error=str(e),
        )
        raise UpstreamError(failure, code=e.code)


def get_user_role_row(
    db: Client, store_id: str, user_id: UUID, columns: str = "role, status"
) -> dict[str, Any]:
    row = fetch_one(
        db.table("user_store_roles")
        .select(columns)
        .eq("user_id", str(user_id))
        .eq("store_id", store_id)
    )
    if not row:
        raise NotFoundError("errors.roleNotFound")
    return row


@router.post("/roles/grant")
def grant_role(
    store_id: str,
    body: GrantRoleRequest,
    current_user: CurrentUser,
    db: UserDb,
    admin: AdminDb,
    locale: RequestLocale,
) -> dict[str, Any]:
    get_owned_store(db, store_id, current_user.id)

    get_auth_user(admin, str(body.user_id))

    role_id = call_store_rpc(
        db,
        "grant_user_role",
        {
            "p_user_id": str(body.user_id),
            "p_store_id": store_id,
            "p_role": body.role,
            "p_granted_by": current_user.id,
        },
    )

    log_store_audit(
        db,
        store_id,
        AuditAction.GRANT_ROLE,
        "user_store_roles",
        new_values={
            "user_id": str(body.user_id),
            "role": body.role,
            "granted_by": current_user.id,
        },
    )
    logger.info(
        "Role granted", store_id=store_id, user_id=str(body.user_id), role=body.role
    )
    return envelope({"roleId": role_id}, message=t("stores.roleGranted", locale))


@router.post("/roles/revoke")
def revoke_role(
    store_id: str,
    body: StoreUserRequest,
    current_user: CurrentUser,
    db: UserDb,
    locale: RequestLocale,
) -> dict[str, Any]:
    get_owned_store(db, store_id, current_user.id)

    current = get_user_role_row(db, store_id, body.user_id)
    if current.get("status") == "INACTIVE":
        raise BadRequestError("errors.alreadyInactive")

    result = call_store_rpc(
        db,
        "revoke_user_role",
        {
            "p_user_id": str(body.user_id),
            "p_store_id": store_id,
            "p_revoked_by": current_user.id,
        },
    )

    log_store_audit(
        db,
        store_id,
        AuditAction.REVOKE_ROLE,
        "user_store_roles",
        old_values={"user_id": str(body.user_id), "role": current.get("role")},
        new_values={"status": "INACTIVE", "revoked_by": current_user.id},
    )
    return envelope({"result": result}, message=t("stores.roleRevoked", locale))


@router.post("/users/deactivate")
def deactivate_user(
    store_id: str,
    body: StoreUserRequest,
    current_user: CurrentUser,
    db: UserDb,
    locale: RequestLocale,
) -> dict[str, Any]:
    get_owned_store(db, store_id, current_user.id)

    current = get_user_role_row(db, store_id, body.user_id)
    if current.get("status") == "INACTIVE":
        raise BadRequestError("errors.alreadyInactive")

    result = call_store_rpc(
        db,
        "deactivate_user",
        {
            "p_user_id": str(body.user_id),
            "p_store_id": store_id,
            "p_deactivated_by": current_user.id,
        },
    )

    log_store_audit(
        db,
        store_id,
        AuditAction.DEACTIVATE_USER,
        "user_store_roles",
        old_values={"user_id": str(body.user_id), "status": current.get("status")},
        new_values={"status": "INACTIVE", "deactivated_by": current_user.id},
    )
    return envelope({"result": result}, message=t("stores.userDeactivated", locale))


@router.post("/users/reactivate")
def reactivate_user(
    store_id: str,
    body: StoreUserRequest,
    current_user: CurrentUser,
    db: UserDb,
    locale: RequestLocale,
) -> dict[str, Any]:
    get_owned_store(db, store_id, current_user.id)

    current = get_user_role_row(db, store_id, body.user_id)
    if current.get("status") == "ACTIVE":
        raise BadRequestError("errors.alreadyActive")

    result = call_store_rpc(
        db,
        "reactivate_user",
        {
            "p_user_id": str(body.user_id),
            "p_store_id": store_id,
            "p_reactivated_by": current_user.id,
        },
    )

    log_store_audit(
        db,
        store_id,
        AuditAction.REACTIVATE_USER,
        "user_store_roles",
        old_values={"user_id": str(body.user_id), "status": current.get("status")},
        new_values={"status": "ACTIVE", "reactivated_by": current_user.id},
    )
    return envelope({"result": result}, message=t("stores.userReactivated", locale))


@router.post("/users/demote")
def demote_user(
    store_id: str,
    body: StoreUserRequest,
    current_user: CurrentUser,
    db: UserDb,
    locale: RequestLocale,
) -> dict[str, Any]:
    get_owned_store(db, store_id, current_user.id)

    current = get_user_role_row(db, store_id, body.user_id)
    if (
        current.get("role") != UserRole.SUB_MANAGER.value
        or current.get("status") != "ACTIVE"
    ):
        raise BadRequestError("errors.notSubManager")

    result = call_store_rpc(
        db,
        "demote_sub_manager_to_part_timer",
        {
            "p_user_id": str(body.user_id),
            "p_store_id": store_id,
            "p_demoted_by": current_user.id,
        },
    )

    log_store_audit(
        db,
        store_id,
        AuditAction.DEMOTE_SUB_MANAGER,
        "user_store_roles",
        old_values={"user_id": str(body.user_id), "role": UserRole.SUB_MANAGER.value},
        new_values={"role": UserRole.PART_TIMER.value, "demoted_by": current_user.id},
    )
    return envelope({"result": result}, message=t("stores.userDemoted", locale))


@router.post("/users/delete")
def delete_user(
    store_id: str,
    body: StoreUserRequest,
    current_user: CurrentUser,
    db: UserDb,
    locale: RequestLocale,
) -> dict[str, Any]:
    get_owned_store(db, store_id, current_user.id)

    if str(body.user_id) == current_user.id:
        raise BadRequestError("errors.cannotDeleteSelf")

    current = get_user_role_row(
        db, store_id, body.user_id, columns="role, status, deleted_at"
    )
    if current.get("role") == UserRole.MASTER.value:
        raise BadRequestError("errors.cannotDeleteMaster")
    if current.get("deleted_at"):
        raise BadRequestError("errors.alreadyDeleted")

    result = call_store_rpc(
        db,
        "soft_delete_user",
        {
            "p_user_id": str(body.user_id),
            "p_store_id": store_id,
            "p_deleted_by": current_user.id,
        },
    )

    log_store_audit(
        db,
        store_id,
        AuditAction.DELETE_USER,
        "user_store_roles",
        old_values={
            "user_id": str(body.user_id),
            "role": current.get("role"),
            "status": current.get("status"),
        },
        new_values={"deleted_by": current_user.id},
    )
    logger.info("Store user deleted", store_id=store_id, user_id=str(body.user_id))
    return envelope({"result": result}, message=t("stores.userDeleted", locale))


@router.get("/users/me")
def my_store_user(store_id: str, current_user: CurrentUser, db: UserDb) -> dict[str, Any]:
    row = fetch_one(
        db.table("store_users")
        .select(STORE_USER_COLUMNS)
        .eq("store_id", store_id)
        .eq("user_id", current_user.id)
        .eq("is_active", True)
        .is_("deleted_at", "null")
    )
    if not row:
        raise NotFoundError("errors.storeUserNotFound")

    return envelope(
        {
            "id": row["id"],
            "user_id": row.get("user_id"),
            "name": row.get("name"),
            "email": row.get("email"),
            "role": row.get("role"),
            "status": row.get("status"),
        }
    )


@router.get("/users")
def list_store_users(
    store_id: str,
    current_user: CurrentUser,
    db: UserDb,
    include_inactive: bool = False,
) -> dict[str, Any]:
    ensure_store_manager(db, store_id, current_user.id)

    query = (
        db.table("store_users")
        .select(STORE_USER_COLUMNS)
        .eq("store_id", store_id)
        .is_("deleted_at", "null")
    )
    if not include_inactive:
        query = query.eq("is_active", True)

    rows = query.order("name").execute().data
    return envelope(rows or [])


@router.get("/users/{user_id}")
def get_store_user_detail(
    store_id: str,
    user_id: UUID,
    current_user: CurrentUser,
    db: UserDb,
    admin: AdminDb,
) -> dict[str, Any]:
    if get_store_role(db, store_id, current_user.id) is None:
        raise PermissionDeniedError("errors.storeAccessDenied")

    user = get_auth_user(admin, str(user_id))
    role_row = get_user_role_row(
        db, store_id, user_id, columns="role, status, granted_at, is_default_store"
    )

    try:
        job_roles = (
            db.table("user_store_job_roles")
            .select("*, store_job_roles (id, name, code, description, active)")
            .eq("store_id", store_id)
            .eq("user_id", str(user_id))
            .execute()
            .data
        )
    except APIError as e:
        logger.error("Member job role lookup failed", store_id=store_id, error=e.message)
        job_roles = []

    metadata = getattr(user, "user_metadata", None) or {}
    email = getattr(user, "email", None)
    return envelope(
        {
            "id": str(user.id),
            "email": email,
            "name": metadata.get("name") or (email.split("@")[0] if email else None),
            "role": role_row.get("role"),
            "status": role_row.get("status"),
            "joinedAt": role_row.get("granted_at"),
            "isDefaultStore": role_row.get("is_default_store"),
            "jobRoles": job_roles or [],
            "resignationDate": metadata.get("resignation_date"),
            "desiredWeeklyHours": metadata.get("desired_weekly_hours"),
            "avatarUrl": metadata.get("avatar_url"),
        }
    )


@router.patch("/users/{user_id}")
def update_store_user_profile(
    store_id: str,
    user_id: UUID,
    body: StoreUserProfileUpdate,
    current_user: CurrentUser,
    db: UserDb,
    admin: AdminDb,
    locale: RequestLocale,
) -> dict[str, Any]:
    ensure_store_manager(db, store_id, current_user.id, allow_owner=False)
    user = get_auth_user(admin, str(user_id))
    changes = body.model_dump(mode="json", exclude_unset=True)

    job_role_ids = changes.pop("job_role_ids", None)
    if job_role_ids is not None:
        try:
            db.table("user_store_job_roles").delete().eq("store_id", store_id).eq(
                "user_id", str(user_id)
            ).execute()
            if job_role_ids:
                db.table("user_store_job_roles").insert(
                    [
                        {"store_id": store_id, "user_id": str(user_id), "job_role_id": role_id}
                        for role_id in job_role_ids
                    ]
                ).execute()
        except APIError as e:
            logger.error(
                "Member job role update failed",
                store_id=store_id,
                user_id=str(user_id),
                error=e.message,
            )
            raise UpstreamError("errors.profileUpdateFailed", code=e.code)

    if changes:
        update_auth_metadata(admin, user, changes, failure="errors.profileUpdateFailed")

    logger.info(
        "Member profile updated",
        store_id=store_id,
        user_id=str(user_id),
        fields=sorted(body.model_fields_set),
    )
    return envelope(message=t("stores.userProfileUpdated", locale))


@router.post("/members/temporary-assign")
def assign_temporary_work(
    store_id: str,
    body: TemporaryAssignment,
    current_user: CurrentUser,
    db: UserDb,
    admin: AdminDb,
    locale: RequestLocale,
) -> dict[str, Any]:
    """Lend a user to this store for a date range."""
    get_owned_store(db, store_id, current_user.id)
    get_auth_user(admin, str(body.user_id))

    if date.fromisoformat(body.start_date) < date.today():
        raise BadRequestError("errors.startDateInPast")

    assignment_id = call_store_rpc(
        db,
        "assign_temporary_work",
        {
            "p_user_id": str(body.user_id),
            "p_store_id": store_id,
            "p_start_date": body.start_date,
            "p_end_date": body.end_date,
            "p_reason": body.reason,
            "p_assigned_by": current_user.id,
        },
        failure="errors.temporaryAssignFailed",
    )

    log_store_audit(
        db,
        store_id,
        AuditAction.ASSIGN_TEMPORARY_WORK,
        "temporary_assignments",
        new_values={
            "user_id": str(body.user_id),
            "start_date": body.start_date,
            "end_date": body.end_date,
            "reason": body.reason,
            "assigned_by": current_user.id,
        },
    )
    return envelope(
        {"assignmentId": assignment_id}, message=t("stores.temporaryAssigned", locale)
    )
