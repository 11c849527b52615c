"""
Job Role API Routes

Store job roles (cashier, kitchen, ...) and the two link tables built on
them: which roles a staff member holds, and how many holders of each role
a work item needs. Writes require an active MASTER or SUB_MANAGER role in
the store.
"""

from typing import Any

from fastapi import APIRouter, Depends, status

from workeasy.api.deps import CurrentUser, StoreIdParam, UserDb, no_store_cache
from workeasy.core.exceptions import BadRequestError, ConflictError
from workeasy.core.observability import get_logger
from workeasy.core.supabase import delete_row, fetch_one, get_row, insert_row, update_row
from workeasy.schemas.common import envelope
from workeasy.schemas.schedule import (
    StoreJobRoleCreate,
    StoreJobRoleUpdate,
    UserStoreJobRoles,
    WorkItemRequiredRoles,
)
from workeasy.services.store_access import ensure_store_manager

logger = get_logger(__name__)

JOB_ROLE_EMBED = "store_job_roles (id, name, code, description, active)"

store_job_roles_router = APIRouter(prefix="/store-job-roles", tags=["job-roles"])
user_job_roles_router = APIRouter(prefix="/user-store-job-roles", tags=["job-roles"])
required_roles_router = APIRouter(
    prefix="/work-item-required-roles", tags=["job-roles"]
)


def default_role_code(name: str) -> str:
    """Lowercased name with whitespace runs replaced by ``_``, at most 20 chars."""
    return "_".join(name.lower().split())[:20]


@store_job_roles_router.get("", dependencies=[Depends(no_store_cache)])
def list_store_job_roles(
    store_id: StoreIdParam, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    rows = (
        db.table("store_job_roles")
        .select("*")
        .eq("store_id", store_id)
        .order("name")
        .execute()
        .data
    )
    return envelope(rows or [])


@store_job_roles_router.post("", status_code=status.HTTP_201_CREATED)
def create_store_job_role(
    body: StoreJobRoleCreate, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    store_id = str(body.store_id)
    ensure_store_manager(db, store_id, current_user.id, allow_owner=False)

    role = insert_row(
        db,
        "store_job_roles",
        {
            "store_id": store_id,
            "name": body.name,
            "code": body.code or default_role_code(body.name),
            "description": body.description,
            "active": body.active,
        },
    )
    logger.info("Job role created", store_id=store_id, job_role_id=role.get("id"))
    return envelope(role)


@store_job_roles_router.patch("/{role_id}")
def update_store_job_role(
    role_id: str, body: StoreJobRoleUpdate, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    role = get_row(db, "store_job_roles", role_id, columns="store_id")
    ensure_store_manager(db, role["store_id"], current_user.id, allow_owner=False)

    changes = body.model_dump(mode="json", exclude_unset=True)
    return envelope(update_row(db, "store_job_roles", role_id, changes))


@store_job_roles_router.delete("/{role_id}")
def delete_store_job_role(
    role_id: str, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    role = get_row(db, "store_job_roles", role_id, columns="store_id")
    ensure_store_manager(db, role["store_id"], current_user.id, allow_owner=False)

    in_use = fetch_one(
        db.table("user_store_job_roles").select("id").eq("job_role_id", role_id)
    )
    if in_use:
        raise ConflictError("errors.jobRoleInUse")

    delete_row(db, "store_job_roles", role_id)
    return envelope()


@user_job_roles_router.get("", dependencies=[Depends(no_store_cache)])
def list_user_job_roles(
    store_id: StoreIdParam,
    current_user: CurrentUser,
    db: UserDb,
    user_id: str | None = None,
) -> dict[str, Any]:
    query = (
        db.table("user_store_job_roles")
        .select(f"id, user_id, store_id, job_role_id, created_at, {JOB_ROLE_EMBED}")
        .eq("store_id", store_id)
    )
    if user_id:
        query = query.eq("user_id", user_id)

    rows = query.order("created_at", desc=True).execute().data
    return envelope(rows or [])


@user_job_roles_router.post("", status_code=status.HTTP_201_CREATED)
def replace_user_job_roles(
    body: UserStoreJobRoles, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    store_id, user_id = str(body.store_id), str(body.user_id)
    ensure_store_manager(db, store_id, current_user.id, allow_owner=False)

    db.table("user_store_job_roles").delete().eq("store_id", store_id).eq(
        "user_id", user_id
    ).execute()

    rows = (
        db.table("user_store_job_roles")
        .insert(
            [
                {"store_id": store_id, "user_id": user_id, "job_role_id": str(role_id)}
                for role_id in body.job_role_ids
            ]
        )
        .execute()
        .data
    )
    logger.info(
        "User job roles replaced",
        store_id=store_id,
        user_id=user_id,
        count=len(body.job_role_ids),
    )
    return envelope(rows or [])


@user_job_roles_router.delete("")
def remove_user_job_roles(
    body: UserStoreJobRoles, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    store_id, user_id = str(body.store_id), str(body.user_id)
    ensure_store_manager(db, store_id, current_user.id, allow_owner=False)

    db.table("user_store_job_roles").delete().eq("store_id", store_id).eq(
        "user_id", user_id
    ).in_("job_role_id", [str(r) for r in body.job_role_ids]).execute()
    return envelope()


@required_roles_router.get("", dependencies=[Depends(no_store_cache)])
def list_required_roles(
    current_user: CurrentUser, db: UserDb, work_item_id: str | None = None
) -> dict[str, Any]:
    if not work_item_id:
        raise BadRequestError("errors.workItemIdRequired")

    rows = (
        db.table("work_item_required_roles")
        .select(f"id, work_item_id, job_role_id, min_count, {JOB_ROLE_EMBED}")
        .eq("work_item_id", work_item_id)
        .order("min_count", desc=True)
        .execute()
        .data
    )
    return envelope(rows or [])


@required_roles_router.post("", status_code=status.HTTP_201_CREATED)
def replace_required_roles(
    body: WorkItemRequiredRoles, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    work_item_id = str(body.work_item_id)
    item = get_row(db, "work_items", work_item_id, columns="store_id")
    ensure_store_manager(db, item["store_id"], current_user.id, allow_owner=False)

    db.table("work_item_required_roles").delete().eq(
        "work_item_id", work_item_id
    ).execute()
    if not body.roles:
        return envelope([])

    rows = (
        db.table("work_item_required_roles")
        .insert(
            [
                {
                    "work_item_id": work_item_id,
                    "job_role_id": str(role.job_role_id),
                    "min_count": role.min_count,
                }
                for role in body.roles
            ]
        )
        .execute()
        .data
    )
    return envelope(rows or [])


@required_roles_router.delete("")
def clear_required_roles(
    current_user: CurrentUser, db: UserDb, work_item_id: str | None = None
) -> dict[str, Any]:
    if not work_item_id:
        raise BadRequestError("errors.workItemIdRequired")

    item = get_row(db, "work_items", work_item_id, columns="store_id")
    ensure_store_manager(db, item["store_id"], current_user.id, allow_owner=False)

    db.table("work_item_required_roles").delete().eq(
        "work_item_id", work_item_id
    ).execute()
    return envelope()
