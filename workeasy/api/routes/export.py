"""
Schedule Export API Routes

Download a store's schedule for a date range as CSV. Any member with an
active store role may export; email addresses are only included for
managers who ask for them.
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query, Response

from workeasy.api.deps import CurrentUser, StoreIdParam, UserDb, no_store_cache
from workeasy.api.routes.assignments import parse_period
from workeasy.core.exceptions import PermissionDeniedError
from workeasy.core.observability import get_logger
from workeasy.core.rbac import is_manager_role
from workeasy.services.schedule_export import (
    assignment_rows,
    content_disposition,
    grid_rows,
    role_rows,
    to_csv,
    user_directory,
)
from workeasy.services.store_access import get_store, get_store_role

logger = get_logger(__name__)

router = APIRouter(prefix="/schedule", tags=["schedule"])


@router.get("/export", dependencies=[Depends(no_store_cache)])
def export_schedule(
    store_id: StoreIdParam,
    current_user: CurrentUser,
    db: UserDb,
    date_from: str = Query(..., alias="from"),
    date_to: str = Query(..., alias="to"),
    sheet: Literal["grid", "assignments", "roles"] = "grid",
    scope: Literal["all", "me"] = "all",
    include_private_info: bool = False,
) -> Response:
    role = get_store_role(db, store_id, current_user.id)
    if role is None:
        raise PermissionDeniedError("errors.storeAccessDenied")
    start, end = parse_period(date_from, date_to)
    store = get_store(db, store_id, columns="id, name")

    store_users = (
        db.table("store_users")
        .select("id, user_id, name, email")
        .eq("store_id", store_id)
        .execute()
        .data
        or []
    )
    directory = user_directory(store_users)
    include_private = include_private_info and is_manager_role(role)

    if sheet == "roles":
        job_roles = (
            db.table("store_job_roles")
            .select("id, name, code, active")
            .eq("store_id", store_id)
            .order("name")
            .execute()
            .data
            or []
        )
        user_roles = (
            db.table("user_store_job_roles")
            .select("user_id, job_role_id, store_job_roles (name)")
            .eq("store_id", store_id)
            .execute()
            .data
            or []
        )
        rows = role_rows(job_roles, user_roles, directory, include_private)
    else:
        assignments = (
            db.table("schedule_assignments")
            .select("*, work_items (id, name, role_hint)")
            .eq("store_id", store_id)
            .gte("date", start.isoformat())
            .lte("date", end.isoformat())
            .eq("status", "ASSIGNED")
            .order("date")
            .order("start_time")
            .execute()
            .data
            or []
        )
        if scope == "me":
            mine = {current_user.id} | {
                row["id"] for row in store_users if row.get("user_id") == current_user.id
            }
            assignments = [row for row in assignments if row.get("user_id") in mine]
        if sheet == "grid":
            rows = grid_rows(assignments, directory)
        else:
            rows = assignment_rows(assignments, directory, include_private)

    logger.info(
        "Schedule exported",
        store_id=store_id,
        sheet=sheet,
        scope=scope,
        rows=len(rows) - 1,
    )
    return Response(
        content=to_csv(rows),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": content_disposition(
                store.get("name") or "", start.isoformat(), end.isoformat(), sheet
            )
        },
    )
