"""Store audit trail, written through the ``log_store_audit`` database function."""

from enum import Enum
from typing import Any

from postgrest.exceptions import APIError
from supabase import Client

from workeasy.core.observability import get_logger

logger = get_logger(__name__)


class AuditAction(str, Enum):
    GRANT_ROLE = "GRANT_ROLE"
    REVOKE_ROLE = "REVOKE_ROLE"
    DEACTIVATE_USER = "DEACTIVATE_USER"
    REACTIVATE_USER = "REACTIVATE_USER"
    DEMOTE_SUB_MANAGER = "DEMOTE_SUB_MANAGER"
    DELETE_USER = "DELETE_USER"
    CREATE_GUEST_USER = "CREATE_GUEST_USER"
    CREATE_INVITATION = "CREATE_INVITATION"
    ACCEPT_INVITATION = "ACCEPT_INVITATION"
    CANCEL_INVITATION = "CANCEL_INVITATION"
    RESEND_INVITATION = "RESEND_INVITATION"
    ASSIGN_TEMPORARY_WORK = "ASSIGN_TEMPORARY_WORK"


def log_store_audit(
    db: Client,
    store_id: str,
    action: AuditAction,
    table_name: str,
    old_values: dict[str, Any] | None = None,
    new_values: dict[str, Any] | None = None,
) -> None:
    """Record an audit entry. Failures are logged and never fail the request."""
    params: dict[str, Any] = {
        "p_store_id": str(store_id),
        "p_action": action.value,
        "p_table_name": table_name,
    }
    if old_values is not None:
        params["p_old_values"] = old_values
    if new_values is not None:
        params["p_new_values"] = new_values

    try:
        db.rpc("log_store_audit", params).execute()
    except APIError as e:
        logger.warning(
            "Audit log write failed",
            store_id=str(store_id),
            action=action.value,
            error=e.message,
        )
