"""Store ownership and membership checks shared by the store-scoped routes."""

from typing import Any

from supabase import Client

from workeasy.core.exceptions import NotFoundError, PermissionDeniedError
from workeasy.core.rbac import UserRole, coerce_role, is_manager_role
from workeasy.core.supabase import fetch_one


def get_active_store(db: Client, store_id: str, columns: str = "*") -> dict[str, Any]:
    store = fetch_one(
        db.table("stores")
        .select(columns)
        .eq("id", str(store_id))
        .eq("status", "ACTIVE")
    )
    if not store:
        raise NotFoundError("errors.storeNotFound")
    return store


def get_store(db: Client, store_id: str, columns: str = "*") -> dict[str, Any]:
    store = fetch_one(db.table("stores").select(columns).eq("id", str(store_id)))
    if not store:
        raise NotFoundError("errors.storeNotFound")
    return store


def ensure_store_owner(store: dict[str, Any], user_id: str) -> None:
    if store.get("owner_id") != user_id:
        raise PermissionDeniedError("errors.notStoreOwner")


def get_owned_store(db: Client, store_id: str, user_id: str) -> dict[str, Any]:
    store = get_active_store(db, store_id)
    ensure_store_owner(store, user_id)
    return store


def get_store_role(db: Client, store_id: str, user_id: str) -> UserRole | None:
    """The caller's ACTIVE role in the store, if any."""
    row = fetch_one(
        db.table("user_store_roles")
        .select("role")
        .eq("store_id", str(store_id))
        .eq("user_id", str(user_id))
        .eq("status", "ACTIVE")
    )
    return coerce_role(row["role"]) if row else None


def is_store_manager(
    db: Client, store_id: str, user_id: str, allow_owner: bool = True
) -> bool:
    if allow_owner:
        store = fetch_one(
            db.table("stores").select("owner_id").eq("id", str(store_id))
        )
        if store and store.get("owner_id") == user_id:
            return True
    return is_manager_role(get_store_role(db, store_id, user_id))


def ensure_store_manager(
    db: Client, store_id: str, user_id: str, allow_owner: bool = True
) -> None:
    if not is_store_manager(db, store_id, user_id, allow_owner=allow_owner):
        raise PermissionDeniedError()
