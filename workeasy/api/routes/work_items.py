"""
Work Item API Routes

Work items are the shift templates of a store: a named time span with an
unpaid break and a headcount cap. Edits and deletes are limited to the
store owner and its active managers.
"""

from typing import Any

from fastapi import APIRouter, Depends, status
from supabase import Client

from workeasy.api.deps import CurrentUser, StoreIdParam, UserDb, no_store_cache
from workeasy.core.exceptions import BadRequestError
from workeasy.core.observability import get_logger
from workeasy.core.supabase import delete_row, get_row, insert_row, update_row
from workeasy.schemas.common import envelope
from workeasy.schemas.schedule import WorkItemCreate, WorkItemUpdate
from workeasy.services.store_access import ensure_store_manager, get_store

logger = get_logger(__name__)

router = APIRouter(prefix="/work-items", tags=["schedule-config"])


def get_managed_work_item(db: Client, item_id: str, user_id: str) -> dict[str, Any]:
    item = get_row(db, "work_items", item_id)
    get_store(db, item["store_id"], columns="id, owner_id")
    ensure_store_manager(db, item["store_id"], user_id)
    return item


def check_merged_span(item: dict[str, Any], changes: dict[str, Any]) -> None:
    """Re-check the span against the stored row for partial updates."""
    start = changes.get("start_min", item.get("start_min"))
    end = changes.get("end_min", item.get("end_min"))
    unpaid = changes.get("unpaid_break_min", item.get("unpaid_break_min")) or 0
    if start is None or end is None:
        return
    if end <= start:
        raise BadRequestError("errors.endAfterStart")
    if unpaid > end - start:
        raise BadRequestError("errors.breakTooLong")


@router.get("", dependencies=[Depends(no_store_cache)])
def list_work_items(
    store_id: StoreIdParam, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    rows = (
        db.table("work_items")
        .select("*")
        .eq("store_id", store_id)
        .order("start_min")
        .execute()
        .data
    )
    return envelope(rows or [])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_work_item(
    body: WorkItemCreate, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    item = insert_row(db, "work_items", body.model_dump(mode="json"))
    logger.info("Work item created", store_id=str(body.store_id), work_item_id=item.get("id"))
    return envelope(item)


@router.patch("/{item_id}")
def update_work_item(
    item_id: str, body: WorkItemUpdate, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    item = get_managed_work_item(db, item_id, current_user.id)
    changes = body.model_dump(mode="json", exclude_unset=True)
    check_merged_span(item, changes)
    return envelope(update_row(db, "work_items", item_id, changes))


@router.delete("/{item_id}")
def delete_work_item(item_id: str, current_user: CurrentUser, db: UserDb) -> dict[str, Any]:
    get_managed_work_item(db, item_id, current_user.id)
    delete_row(db, "work_items", item_id)
    logger.info("Work item deleted", work_item_id=item_id)
    return envelope()
