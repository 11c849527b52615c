"""
Admin API Routes

Account-level views for master and sub manager accounts. Users are read
from the auth provider's admin API, so the service-role client is used.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query
from supabase import AuthError

from workeasy.api.deps import AdminDb, AdminUser, no_store_cache, profile_from_user
from workeasy.core.exceptions import UpstreamError
from workeasy.core.observability import get_logger
from workeasy.schemas.common import envelope

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", dependencies=[Depends(no_store_cache)])
def list_users(
    current_user: AdminUser,
    admin: AdminDb,
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=1000, alias="perPage"),
) -> dict[str, Any]:
    try:
        users = admin.auth.admin.list_users(page=page, per_page=per_page)
    except AuthError as e:
        logger.error("Admin user listing failed", error=e.message)
        raise UpstreamError("errors.internal", code=e.code)

    profiles = [profile_from_user(user).model_dump(mode="json") for user in users]
    return envelope(
        {
            "users": profiles,
            "total": len(profiles),
            "page": page,
            "perPage": per_page,
            "requestedBy": {"id": current_user.id, "role": current_user.role.value},
        }
    )
