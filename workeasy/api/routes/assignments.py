"""
Schedule Assignment API Routes

Assignments place a store user on a work item for a date. Managers write
assignments; staff may mark their own unavailable days. ``user_id`` on
assignments and availability rows refers to ``store_users.id`` so guest
users can be scheduled too. Auto-assignment fills open work items from the
store's job role holders.
"""

from datetime import date, timedelta
from typing import Any

from fastapi import APIRouter, Depends, Query, Request, status
from supabase import Client

from workeasy.api.deps import (
    CurrentUser,
    RequestLocale,
    StoreIdParam,
    UserDb,
    no_store_cache,
)
from workeasy.core.exceptions import BadRequestError, PermissionDeniedError
from workeasy.core.i18n import resolve_request_locale, t
from workeasy.core.observability import get_logger
from workeasy.core.supabase import delete_row, fetch_one, get_row, update_row
from workeasy.schemas.common import envelope
from workeasy.schemas.schedule import (
    AssignmentCreate,
    AssignmentUpdate,
    AvailabilityCreate,
    CopyWeek,
    ScheduleValidation,
)
from workeasy.services.auto_assign import date_range, plan_assignments, shift_times
from workeasy.services.role_coverage import validate_schedule_role_requirements
from workeasy.services.store_access import (
    ensure_store_manager,
    get_store,
    is_store_manager,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/schedule", tags=["schedule"])

ASSIGNMENT_SELECT = (
    "*, work_items (id, name, start_min, end_min, role_hint), "
    "store_users (id, name, user_id, role, is_guest)"
)
STORE_USER_COLUMNS = "id, name, is_guest, is_active, user_id"


def _embedded(row: dict[str, Any], key: str) -> dict[str, Any] | None:
    value = row.get(key)
    if isinstance(value, list):
        return value[0] if value else None
    return value


def shape_assignment(row: dict[str, Any]) -> dict[str, Any]:
    work_item = _embedded(row, "work_items")
    store_user = _embedded(row, "store_users")
    return {
        "id": row["id"],
        "storeId": row.get("store_id"),
        "userId": row.get("user_id"),
        "workItemId": row.get("work_item_id"),
        "date": row.get("date"),
        "startTime": row.get("start_time"),
        "endTime": row.get("end_time"),
        "status": row.get("status"),
        "notes": row.get("notes"),
        "createdAt": row.get("created_at"),
        "updatedAt": row.get("updated_at"),
        "workItem": {
            "id": work_item.get("id"),
            "name": work_item.get("name"),
            "startMin": work_item.get("start_min"),
            "endMin": work_item.get("end_min"),
            "roleHint": work_item.get("role_hint"),
        }
        if work_item
        else None,
        "user": {
            "id": store_user.get("id"),
            "name": store_user.get("name"),
            "userId": store_user.get("user_id"),
            "role": store_user.get("role"),
            "isGuest": store_user.get("is_guest", False),
        }
        if store_user
        else None,
    }


def week_bounds(day: str) -> tuple[date, date]:
    """Monday and Sunday of the week containing ``day``."""
    start = date.fromisoformat(day)
    start -= timedelta(days=start.weekday())
    return start, start + timedelta(days=6)


def resolve_store_user(
    db: Client, store_id: str, user_id: str
) -> dict[str, Any] | None:
    """Find the store user by ``store_users.id``, else by auth user id."""
    row = fetch_one(
        db.table("store_users")
        .select(STORE_USER_COLUMNS)
        .eq("id", user_id)
        .eq("store_id", store_id)
    )
    if row:
        return row
    return fetch_one(
        db.table("store_users")
        .select(STORE_USER_COLUMNS)
        .eq("user_id", user_id)
        .eq("store_id", store_id)
        .eq("is_guest", False)
        .eq("is_active", True)
    )


def parse_period(date_from: str, date_to: str) -> tuple[date, date]:
    try:
        start, end = date.fromisoformat(date_from), date.fromisoformat(date_to)
    except ValueError:
        raise BadRequestError("validation.invalidDate")
    if start > end:
        raise BadRequestError("errors.invalidDateRange")
    return start, end


def ensure_self_or_manager(
    db: Client, store_id: str, store_user: dict[str, Any], caller_id: str
) -> None:
    if store_user.get("user_id") == caller_id:
        return
    if not is_store_manager(db, store_id, caller_id):
        raise PermissionDeniedError()


@router.get("/assignments", dependencies=[Depends(no_store_cache)])
def list_assignments(
    request: Request,
    store_id: StoreIdParam,
    current_user: CurrentUser,
    db: UserDb,
    user_id: str | None = None,
    work_item_id: str | None = None,
) -> dict[str, Any]:
    date_from = request.query_params.get("from")
    date_to = request.query_params.get("to")

    query = db.table("schedule_assignments").select(ASSIGNMENT_SELECT).eq(
        "store_id", store_id
    )
    if date_from:
        query = query.gte("date", date_from)
    if date_to:
        query = query.lte("date", date_to)
    if user_id:
        query = query.eq("user_id", user_id)
    if work_item_id:
        query = query.eq("work_item_id", work_item_id)

    rows = query.order("date").order("start_time").execute().data
    return envelope([shape_assignment(row) for row in rows or []])


@router.post("/assignments", status_code=status.HTTP_201_CREATED)
def create_assignment(
    body: AssignmentCreate, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    store_id, user_id = str(body.store_id), str(body.user_id)
    ensure_store_manager(db, store_id, current_user.id, allow_owner=False)

    unavailable = fetch_one(
        db.table("user_availability")
        .select("id")
        .eq("store_id", store_id)
        .eq("user_id", user_id)
        .eq("date", body.date)
    )
    if unavailable:
        raise BadRequestError("errors.unavailableOnDate")

    # One ASSIGNED row per user and day; a new assignment replaces it.
    db.table("schedule_assignments").delete().eq("store_id", store_id).eq(
        "user_id", user_id
    ).eq("date", body.date).eq("status", "ASSIGNED").execute()

    rows = (
        db.table("schedule_assignments")
        .insert({**body.model_dump(mode="json"), "created_by": current_user.id})
        .execute()
        .data
    )
    logger.info(
        "Assignment created", store_id=store_id, user_id=user_id, date=body.date
    )
    return envelope(rows[0] if rows else None)


@router.patch("/assignments/{assignment_id}")
def update_assignment(
    assignment_id: str, body: AssignmentUpdate, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    existing = get_row(
        db, "schedule_assignments", assignment_id, columns="store_id, user_id, date"
    )
    ensure_store_manager(db, existing["store_id"], current_user.id, allow_owner=False)

    changes = body.model_dump(mode="json", exclude_unset=True)
    if changes.get("user_id"):
        unavailable = fetch_one(
            db.table("user_availability")
            .select("id")
            .eq("store_id", existing["store_id"])
            .eq("user_id", changes["user_id"])
            .eq("date", existing["date"])
        )
        if unavailable:
            raise BadRequestError("errors.unavailableOnDate")

    return envelope(update_row(db, "schedule_assignments", assignment_id, changes))


@router.delete("/assignments/{assignment_id}")
def delete_assignment(
    assignment_id: str, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    existing = get_row(db, "schedule_assignments", assignment_id, columns="store_id")
    ensure_store_manager(db, existing["store_id"], current_user.id, allow_owner=False)
    delete_row(db, "schedule_assignments", assignment_id)
    return envelope()


@router.post("/copy-week")
def copy_week(
    body: CopyWeek, current_user: CurrentUser, db: UserDb, locale: RequestLocale
) -> dict[str, Any]:
    store_id = str(body.store_id)
    ensure_store_manager(db, store_id, current_user.id, allow_owner=False)

    source_start, source_end = week_bounds(body.source_week_start)
    target_start, target_end = week_bounds(body.target_week_start)
    day_difference = (target_start - source_start).days

    source_rows = (
        db.table("schedule_assignments")
        .select("*")
        .eq("store_id", store_id)
        .gte("date", source_start.isoformat())
        .lte("date", source_end.isoformat())
        .eq("status", "ASSIGNED")
        .execute()
        .data
        or []
    )

    deleted_count = 0
    if day_difference != 0:
        target_rows = (
            db.table("schedule_assignments")
            .select("id, date")
            .eq("store_id", store_id)
            .gte("date", target_start.isoformat())
            .lte("date", target_end.isoformat())
            .eq("status", "ASSIGNED")
            .execute()
            .data
            or []
        )
        delete_ids = [
            row["id"]
            for row in target_rows
            if not source_start.isoformat() <= row["date"] <= source_end.isoformat()
        ]
        deleted_count = len(delete_ids)
        if delete_ids:
            db.table("schedule_assignments").delete().in_("id", delete_ids).execute()

    if not source_rows:
        return envelope(
            message=t("schedule.nothingToCopy", locale),
            copied_count=0,
            deleted_count=deleted_count,
        )

    copies = [
        {
            "store_id": row["store_id"],
            "user_id": row["user_id"],
            "work_item_id": row["work_item_id"],
            "date": (
                date.fromisoformat(row["date"]) + timedelta(days=day_difference)
            ).isoformat(),
            "start_time": row.get("start_time"),
            "end_time": row.get("end_time"),
            "status": "ASSIGNED",
            "notes": row.get("notes"),
            "created_by": current_user.id,
        }
        for row in source_rows
        if row.get("work_item_id") and row.get("user_id")
    ]
    inserted = (
        db.table("schedule_assignments").insert(copies).execute().data if copies else []
    )

    logger.info(
        "Week copied",
        store_id=store_id,
        source=source_start.isoformat(),
        target=target_start.isoformat(),
        copied=len(inserted or []),
        deleted=deleted_count,
    )
    return envelope(
        message=t("schedule.copied", locale),
        copied_count=len(inserted or []),
        deleted_count=deleted_count,
    )


@router.post("/auto-assign")
def auto_assign(
    store_id: StoreIdParam,
    current_user: CurrentUser,
    db: UserDb,
    locale: RequestLocale,
    date_from: str = Query(..., alias="from"),
    date_to: str = Query(..., alias="to"),
    user_id: str | None = None,
    day: str | None = Query(None, alias="date"),
) -> dict[str, Any]:
    """Fill open work items with qualified, available staff."""
    ensure_store_manager(db, store_id, current_user.id, allow_owner=False)
    start, end = parse_period(date_from, date_to)
    days = [parse_period(day, day)[0]] if day else list(date_range(start, end))

    business_hours = (
        db.table("store_business_hours")
        .select("day_of_week, open_min, close_min")
        .eq("store_id", store_id)
        .execute()
        .data
        or []
    )
    work_items = (
        db.table("work_items").select("id").eq("store_id", store_id).execute().data
        or []
    )
    user_roles = (
        db.table("user_store_job_roles")
        .select("user_id, store_job_roles (code)")
        .eq("store_id", store_id)
        .execute()
        .data
        or []
    )
    unavailable = (
        db.table("user_availability")
        .select("user_id, date")
        .eq("store_id", store_id)
        .gte("date", start.isoformat())
        .lte("date", end.isoformat())
        .execute()
        .data
        or []
    )
    existing = (
        db.table("schedule_assignments")
        .select("user_id, date")
        .eq("store_id", store_id)
        .gte("date", start.isoformat())
        .lte("date", end.isoformat())
        .neq("status", "CANCELLED")
        .execute()
        .data
        or []
    )

    work_item_ids = [row["id"] for row in work_items]
    required: dict[str, list[str]] = {}
    if work_item_ids:
        rows = (
            db.table("work_item_required_roles")
            .select("work_item_id, store_job_roles (code)")
            .in_("work_item_id", work_item_ids)
            .execute()
            .data
            or []
        )
        for row in rows:
            code = (_embedded(row, "store_job_roles") or {}).get("code")
            if code:
                required.setdefault(row["work_item_id"], []).append(code)

    plan = plan_assignments(
        days,
        work_item_ids,
        required,
        [
            (row["user_id"], (_embedded(row, "store_job_roles") or {}).get("code"))
            for row in user_roles
        ],
        {(row["user_id"], row["date"]) for row in unavailable + existing},
        only_user=user_id,
    )

    if plan:
        inserts = []
        for pick in plan:
            start_time, end_time = shift_times(
                date.fromisoformat(pick.date), business_hours
            )
            inserts.append(
                {
                    "store_id": store_id,
                    "user_id": pick.user_id,
                    "work_item_id": pick.work_item_id,
                    "date": pick.date,
                    "start_time": start_time,
                    "end_time": end_time,
                    "status": "ASSIGNED",
                    "created_by": current_user.id,
                }
            )
        db.table("schedule_assignments").insert(inserts).execute()

    logger.info(
        "Auto assignment finished",
        store_id=store_id,
        start=start.isoformat(),
        end=end.isoformat(),
        created=len(plan),
    )
    return envelope(
        {"created": len(plan)},
        message=t("schedule.autoAssigned", locale, count=len(plan)),
    )


@router.get("/availability", dependencies=[Depends(no_store_cache)])
def list_availability(
    request: Request,
    store_id: StoreIdParam,
    current_user: CurrentUser,
    db: UserDb,
    user_id: str | None = None,
) -> dict[str, Any]:
    query = (
        db.table("user_availability")
        .select("*, store_users (id, name, user_id, is_guest)")
        .eq("store_id", store_id)
    )
    if request.query_params.get("from"):
        query = query.gte("date", request.query_params["from"])
    if request.query_params.get("to"):
        query = query.lte("date", request.query_params["to"])
    if user_id:
        if user_id == "current":
            user_id = current_user.id
        store_user = resolve_store_user(db, store_id, user_id)
        query = query.eq("user_id", store_user["id"] if store_user else user_id)

    rows = query.order("date").execute().data or []
    data = []
    for row in rows:
        store_user = _embedded(row, "store_users") or {}
        data.append(
            {
                "id": row["id"],
                "storeId": row.get("store_id"),
                "userId": row.get("user_id"),
                "userName": store_user.get("name") or "",
                "date": row.get("date"),
                "reason": row.get("reason"),
                "hasTimeRestriction": bool(row.get("has_time_restriction")),
                "startTime": row.get("start_time"),
                "endTime": row.get("end_time"),
                "createdAt": row.get("created_at"),
                "updatedAt": row.get("updated_at"),
            }
        )
    return envelope(data)


@router.post("/availability")
def set_availability(
    body: AvailabilityCreate, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    store_id = str(body.store_id)
    target = current_user.id if body.user_id == "current" else body.user_id

    store_user = resolve_store_user(db, store_id, target)
    if not store_user or not store_user.get("is_active"):
        raise BadRequestError("errors.invalidStoreUser")
    ensure_self_or_manager(db, store_id, store_user, current_user.id)

    assigned = fetch_one(
        db.table("schedule_assignments")
        .select("id")
        .eq("store_id", store_id)
        .eq("user_id", store_user["id"])
        .eq("date", body.date)
        .eq("status", "ASSIGNED")
    )
    if assigned:
        raise BadRequestError("errors.assignedOnDate")

    restricted = body.has_time_restriction
    row = {
        "store_id": store_id,
        "user_id": store_user["id"],
        "date": body.date,
        "reason": body.reason,
        "created_by": current_user.id,
        "has_time_restriction": restricted,
        "start_time": body.start_time if restricted else None,
        "end_time": body.end_time if restricted else None,
    }
    saved = (
        db.table("user_availability")
        .upsert(row, on_conflict="store_id,user_id,date")
        .execute()
        .data
    )
    return envelope(saved[0] if saved else None)


@router.delete("/availability")
def remove_availability(
    store_id: StoreIdParam,
    current_user: CurrentUser,
    db: UserDb,
    locale: RequestLocale,
    user_id: str | None = None,
    day: str | None = Query(None, alias="date"),
) -> dict[str, Any]:
    if not user_id or not day:
        raise BadRequestError("errors.invalidData")

    target = current_user.id if user_id == "current" else user_id
    store_user = resolve_store_user(db, store_id, target)
    if not store_user:
        raise BadRequestError("errors.invalidStoreUser")
    ensure_self_or_manager(db, store_id, store_user, current_user.id)

    db.table("user_availability").delete().eq("store_id", store_id).eq(
        "user_id", store_user["id"]
    ).eq("date", day).execute()
    return envelope(message=t("schedule.availabilityRemoved", locale))


@router.post("/validate")
def validate_schedule(
    request: Request, body: ScheduleValidation, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    """Pre-submit checks for a shift: time order, template match, role coverage."""
    locale = resolve_request_locale(request, body.locale)

    if body.end_min <= body.start_min:
        key = "schedule.errors.endAfterStart"
        raise BadRequestError(t(key, locale), code=key)

    store_id = str(body.store_id)
    get_store(db, store_id, columns="id")

    templates = (
        db.table("work_items")
        .select("max_headcount, role_hint, start_min, end_min")
        .eq("store_id", store_id)
        .execute()
        .data
        or []
    )
    targets = (
        db.table("staffing_targets")
        .select("weekday, start_min, end_min, role_hint, min_headcount, max_headcount")
        .eq("store_id", store_id)
        .execute()
        .data
        or []
    )

    def overlaps(row: dict[str, Any]) -> bool:
        return body.end_min > row["start_min"] and body.start_min < row["end_min"]

    has_template = any(overlaps(row) for row in templates)
    has_target = any(
        overlaps(row)
        and (not body.role_hint or not row.get("role_hint") or row["role_hint"] == body.role_hint)
        for row in targets
    )
    if not has_template and not has_target:
        key = "schedule.errors.underMinTarget"
        raise BadRequestError(t(key, locale), code=key)

    role_validation = None
    if body.work_item_ids and body.assigned_users:
        result = validate_schedule_role_requirements(
            db,
            store_id,
            [str(i) for i in body.work_item_ids],
            [str(u) for u in body.assigned_users],
            locale,
        )
        if not result.is_valid:
            key = "schedule.errors.insufficientRoleCoverage"
            report = result.to_dict()
            raise BadRequestError(
                t(key, locale),
                code=key,
                details={
                    "roleCoverage": report["roleCoverage"],
                    "insufficientRoles": report["insufficientRoles"],
                    "message": result.message,
                },
            )
        role_validation = result.to_dict()

    return envelope(roleValidation=role_validation)
