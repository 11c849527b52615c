"""
Break Rule API Routes

Break rules grant ``break_min`` minutes once a shift reaches
``threshold_hours``.
"""

from typing import Any

from fastapi import APIRouter, Depends, status

from workeasy.api.deps import CurrentUser, StoreIdParam, UserDb, no_store_cache
from workeasy.core.supabase import delete_row, insert_row, update_row
from workeasy.schemas.common import envelope
from workeasy.schemas.schedule import BreakRuleCreate, BreakRuleUpdate

router = APIRouter(prefix="/break-rules", tags=["schedule-config"])


@router.get("", dependencies=[Depends(no_store_cache)])
def list_break_rules(
    store_id: StoreIdParam, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    rows = (
        db.table("break_rules")
        .select("*")
        .eq("store_id", store_id)
        .order("threshold_hours")
        .execute()
        .data
    )
    return envelope(rows or [])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_break_rule(
    body: BreakRuleCreate, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    return envelope(insert_row(db, "break_rules", body.model_dump(mode="json")))


@router.patch("/{rule_id}")
def update_break_rule(
    rule_id: str, body: BreakRuleUpdate, current_user: CurrentUser, db: UserDb
) -> dict[str, Any]:
    changes = body.model_dump(mode="json", exclude_unset=True)
    return envelope(update_row(db, "break_rules", rule_id, changes))


@router.delete("/{rule_id}")
def delete_break_rule(rule_id: str, current_user: CurrentUser, db: UserDb) -> dict[str, Any]:
    delete_row(db, "break_rules", rule_id)
    return envelope()
