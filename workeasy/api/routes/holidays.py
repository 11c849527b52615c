"""Store holidays: dates the store is closed."""

from typing import Any

from fastapi import APIRouter, Depends, status

from workeasy.api.deps import CurrentUser, StoreIdParam, UserDb, no_store_cache
from workeasy.core.exceptions import BadRequestError
from workeasy.core.supabase import delete_row, insert_row
from workeasy.schemas.common import envelope
from workeasy.schemas.schedule import HolidayCreate

router = APIRouter(prefix="/store-holidays", tags=["schedule-config"])


@router.get("", dependencies=[Depends(no_store_cache)])
def list_holidays(
    store_id: StoreIdParam, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    rows = (
        db.table("store_holidays")
        .select("*")
        .eq("store_id", store_id)
        .order("date")
        .execute()
        .data
    )
    return envelope(rows or [])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_holiday(body: HolidayCreate, current_user: CurrentUser, db: UserDb) -> dict[str, Any]:
    return envelope(insert_row(db, "store_holidays", body.model_dump(mode="json")))


@router.delete("")
def delete_holiday(
    current_user: CurrentUser, db: UserDb, id: str | None = None
) -> dict[str, Any]:
    if not id:
        raise BadRequestError("errors.idRequired")
    delete_row(db, "store_holidays", id)
    return envelope()
