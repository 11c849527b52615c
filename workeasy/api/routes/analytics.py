"""Work-hour analytics for store managers."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends

from workeasy.api.deps import CurrentUser, UserDb, no_store_cache
from workeasy.schemas.common import envelope
from workeasy.services.store_access import ensure_store_manager
from workeasy.services.work_hours import (
    INCLUDED_STATUSES,
    HoursWindow,
    summarize_work_hours,
)

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/work-hours", dependencies=[Depends(no_store_cache)])
def work_hours(
    store_id: UUID,
    week_from: str,
    week_to: str,
    month_from: str,
    month_to: str,
    current_user: CurrentUser,
    db: UserDb,
) -> dict[str, Any]:
    ensure_store_manager(db, str(store_id), current_user.id, allow_owner=False)

    rows = (
        db.table("schedule_assignments")
        .select(
            "user_id, date, start_time, end_time, "
            "work_items (unpaid_break_min), store_users (name)"
        )
        .eq("store_id", str(store_id))
        .gte("date", min(week_from, month_from))
        .lte("date", max(week_to, month_to))
        .in_("status", list(INCLUDED_STATUSES))
        .execute()
        .data
    )
    return envelope(
        summarize_work_hours(
            rows or [],
            HoursWindow(week_from, week_to),
            HoursWindow(month_from, month_to),
        )
    )
