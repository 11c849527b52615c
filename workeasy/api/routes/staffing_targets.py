"""Staffing targets: minimum and maximum headcount per weekday time window."""

from typing import Any

from fastapi import APIRouter, Depends, status

from workeasy.api.deps import CurrentUser, StoreIdParam, UserDb, no_store_cache
from workeasy.core.exceptions import BadRequestError
from workeasy.core.supabase import delete_row, get_row, insert_row, update_row
from workeasy.schemas.common import envelope
from workeasy.schemas.schedule import StaffingTargetCreate, StaffingTargetUpdate

router = APIRouter(prefix="/staffing-targets", tags=["schedule-config"])


@router.get("", dependencies=[Depends(no_store_cache)])
def list_staffing_targets(
    store_id: StoreIdParam, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    rows = (
        db.table("staffing_targets")
        .select("*")
        .eq("store_id", store_id)
        .order("weekday")
        .order("start_min")
        .execute()
        .data
    )
    return envelope(rows or [])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_staffing_target(
    body: StaffingTargetCreate, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    return envelope(insert_row(db, "staffing_targets", body.model_dump(mode="json")))


@router.patch("/{target_id}")
def update_staffing_target(
    target_id: str, body: StaffingTargetUpdate, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    changes = body.model_dump(mode="json", exclude_unset=True)
    target = get_row(db, "staffing_targets", target_id)

    start = changes.get("start_min", target.get("start_min"))
    end = changes.get("end_min", target.get("end_min"))
    if start is not None and end is not None and end <= start:
        raise BadRequestError("errors.endAfterStart")
    low = changes.get("min_headcount", target.get("min_headcount"))
    high = changes.get("max_headcount", target.get("max_headcount"))
    if low is not None and high is not None and low > high:
        raise BadRequestError("errors.minExceedsMax")

    return envelope(update_row(db, "staffing_targets", target_id, changes))


@router.delete("/{target_id}")
def delete_staffing_target(
    target_id: str, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    delete_row(db, "staffing_targets", target_id)
    return envelope()
