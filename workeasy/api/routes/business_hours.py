"""Store business hours, one row per weekday (0 = Sunday)."""

from typing import Any

from fastapi import APIRouter, Body, Depends
from pydantic import TypeAdapter

from workeasy.api.deps import CurrentUser, StoreIdParam, UserDb, no_store_cache
from workeasy.core.exceptions import BadRequestError
from workeasy.schemas.common import envelope
from workeasy.schemas.schedule import BusinessHour

router = APIRouter(prefix="/store-business-hours", tags=["schedule-config"])

business_hours_adapter = TypeAdapter(list[BusinessHour])


@router.get("", dependencies=[Depends(no_store_cache)])
def list_business_hours(
    store_id: StoreIdParam, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    rows = (
        db.table("store_business_hours")
        .select("*")
        .eq("store_id", store_id)
        .order("weekday")
        .execute()
        .data
    )
    return envelope(rows or [])


@router.put("")
def replace_business_hours(
    current_user: CurrentUser, db: UserDb, payload: Any = Body(...)
) -> dict[str, Any]:
    if not isinstance(payload, list):
        raise BadRequestError("errors.bodyMustBeArray")

    hours = business_hours_adapter.validate_python(payload)
    rows = [hour.model_dump(mode="json") for hour in hours]
    if not rows:
        return envelope([])

    saved = (
        db.table("store_business_hours")
        .upsert(rows, on_conflict="store_id,weekday")
        .execute()
        .data
    )
    return envelope(saved or [])
