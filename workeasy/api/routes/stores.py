"""
Store API Routes

Store creation is reserved to MASTER users; a store's owner is the only
caller allowed to read or edit its details.
"""

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Query, status
from postgrest.exceptions import APIError

from workeasy.api.deps import CurrentUser, MasterUser, RequestLocale, UserDb
from workeasy.core.exceptions import (
    UNKNOWN_FUNCTION,
    PermissionDeniedError,
    UpstreamError,
)
from workeasy.core.i18n import t
from workeasy.core.observability import get_logger
from workeasy.core.rbac import UserRole
from workeasy.schemas.common import envelope
from workeasy.schemas.stores import StoreCreate, StoreUpdate
from workeasy.services.store_access import get_owned_store

logger = get_logger(__name__)

router = APIRouter(prefix="/stores", tags=["stores"])


def _missing_function(exc: APIError) -> bool:
    return exc.code == UNKNOWN_FUNCTION or "Could not find the function" in (
        exc.message or ""
    )


def accessible_stores_fallback(db: Any, user_id: str) -> list[dict[str, Any]]:
    """Owned stores plus stores reached through an ACTIVE role, sorted by name."""
    owned = (
        db.table("stores")
        .select("*")
        .eq("status", "ACTIVE")
        .eq("owner_id", user_id)
        .execute()
        .data
        or []
    )
    roles = (
        db.table("user_store_roles")
        .select("store_id, role, granted_at")
        .eq("user_id", user_id)
        .eq("status", "ACTIVE")
        .execute()
        .data
        or []
    )
    role_by_store = {r["store_id"]: r for r in roles}

    invited = []
    if role_by_store:
        invited = (
            db.table("stores")
            .select("*")
            .eq("status", "ACTIVE")
            .in_("id", list(role_by_store))
            .execute()
            .data
            or []
        )

    stores: dict[str, dict[str, Any]] = {}
    for store in owned:
        stores[store["id"]] = {
            **store,
            "user_role": UserRole.MASTER.value,
            "granted_at": store.get("created_at"),
        }
    for store in invited:
        if store["id"] in stores:
            continue
        role = role_by_store.get(store["id"], {})
        stores[store["id"]] = {
            **store,
            "user_role": role.get("role") or UserRole.PART_TIMER.value,
            "granted_at": role.get("granted_at") or store.get("created_at"),
        }

    return sorted(stores.values(), key=lambda s: s.get("name") or "")


@router.post("", status_code=status.HTTP_201_CREATED)
def create_store(
    body: StoreCreate, current_user: MasterUser, db: UserDb, locale: RequestLocale
) -> dict[str, Any]:
    rows = (
        db.table("stores")
        .insert(
            {
                **body.model_dump(),
                "owner_id": current_user.id,
                "status": "ACTIVE",
            }
        )
        .execute()
        .data
    )
    if not rows:
        raise UpstreamError("errors.internal")

    store = rows[0]
    logger.info("Store created", store_id=store.get("id"), owner_id=current_user.id)
    return envelope(
        {
            **store,
            "user_role": UserRole.MASTER.value,
            "granted_at": store.get("created_at"),
        },
        message=t("stores.created", locale),
    )


@router.get("")
def list_stores(
    current_user: CurrentUser,
    db: UserDb,
    mine: str | None = Query(None, description="'1' to list stores the caller can access"),
) -> dict[str, Any]:
    if mine == "1":
        try:
            stores = (
                db.rpc("get_user_accessible_stores", {"p_user_id": current_user.id})
                .execute()
                .data
            )
        except APIError as e:
            if not _missing_function(e):
                raise
            logger.info("Accessible-stores function missing, using fallback")
            stores = accessible_stores_fallback(db, current_user.id)

        return envelope(stores or [])

    if current_user.role != UserRole.MASTER:
        raise PermissionDeniedError("errors.masterRequired")

    stores = (
        db.table("stores")
        .select("*")
        .eq("status", "ACTIVE")
        .order("name")
        .execute()
        .data
    )
    return envelope(stores or [])


@router.get("/{store_id}")
def get_store(store_id: str, current_user: CurrentUser, db: UserDb) -> dict[str, Any]:
    store = get_owned_store(db, store_id, current_user.id)
    return envelope(store)


@router.patch("/{store_id}")
def update_store(
    store_id: str,
    body: StoreUpdate,
    current_user: CurrentUser,
    db: UserDb,
    locale: RequestLocale,
) -> dict[str, Any]:
    get_owned_store(db, store_id, current_user.id)

    changes = body.model_dump(exclude_unset=True)
    changes["updated_at"] = datetime.now(timezone.utc).isoformat()
    rows = db.table("stores").update(changes).eq("id", store_id).execute().data
    if not rows:
        raise UpstreamError("errors.internal")

    logger.info("Store updated", store_id=store_id, fields=sorted(changes))
    return envelope(rows[0], message=t("stores.updated", locale))
