"""
Supabase client integration.

The anon and service-role clients are created lazily and shared for the
process; user-scoped clients are built per request so row-level security
sees the caller's token.
"""

from functools import lru_cache
from typing import Any

from supabase import AuthError, Client, create_client
from supabase.lib.client_options import ClientOptions

from workeasy.core.config import settings
from workeasy.core.exceptions import NotFoundError, UpstreamError
from workeasy.core.observability import get_logger

logger = get_logger(__name__)


class SupabaseClient:
    """Wrapper for Supabase client with FastAPI integration."""

    def __init__(self) -> None:
        self._client: Client | None = None
        self._admin_client: Client | None = None

    @property
    def client(self) -> Client:
        """Supabase client with the anon key (public operations, auth)."""
        if not self._client:
            self._client = create_client(
                settings.SUPABASE_URL,
                settings.SUPABASE_ANON_KEY or "",
                options=ClientOptions(
                    auto_refresh_token=False,
                    persist_session=False,
                ),
            )
        return self._client

    @property
    def admin(self) -> Client:
        """Supabase client with the service key (admin auth, invitations)."""
        if not self._admin_client:
            self._admin_client = create_client(
                settings.SUPABASE_URL,
                settings.SUPABASE_SERVICE_KEY or "",
                options=ClientOptions(
                    auto_refresh_token=False,
                    persist_session=False,
                ),
            )
        return self._admin_client

    def get_user_client(self, access_token: str) -> Client:
        """Get a Supabase client authenticated with a user's access token."""
        client = create_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_ANON_KEY or "",
            options=ClientOptions(
                headers={"Authorization": f"Bearer {access_token}"},
                auto_refresh_token=False,
                persist_session=False,
            ),
        )
        client.postgrest.auth(access_token)
        return client

    def new_auth_client(self) -> Client:
        """A fresh anon client for flows that sign in as a different user."""
        return create_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_ANON_KEY or "",
            options=ClientOptions(
                auto_refresh_token=False,
                persist_session=False,
            ),
        )


@lru_cache
def get_supabase_client() -> SupabaseClient:
    """Get the singleton Supabase client instance."""
    return SupabaseClient()


def fetch_one(query: Any) -> dict[str, Any] | None:
    """Execute a select builder and return its first row, or None."""
    rows = query.limit(1).execute().data
    return rows[0] if rows else None


def get_row(
    db: Client,
    table: str,
    row_id: str,
    columns: str = "*",
    not_found: str = "errors.notFound",
) -> dict[str, Any]:
    row = fetch_one(db.table(table).select(columns).eq("id", str(row_id)))
    if not row:
        raise NotFoundError(not_found)
    return row


def insert_row(db: Client, table: str, values: dict[str, Any]) -> dict[str, Any]:
    rows = db.table(table).insert(values).execute().data
    if not rows:
        raise UpstreamError("errors.internal")
    return rows[0]


def update_row(
    db: Client, table: str, row_id: str, changes: dict[str, Any]
) -> dict[str, Any]:
    """Update one row by id; an empty result means it is missing or hidden by RLS."""
    rows = db.table(table).update(changes).eq("id", str(row_id)).execute().data
    if not rows:
        raise NotFoundError("errors.notFound")
    return rows[0]


def delete_row(db: Client, table: str, row_id: str) -> dict[str, Any]:
    rows = db.table(table).delete().eq("id", str(row_id)).execute().data
    if not rows:
        raise NotFoundError("errors.notFound")
    return rows[0]


def get_auth_user(admin: Client, user_id: str) -> Any:
    """Look up an auth user through the admin API; unknown ids raise 404."""
    try:
        result = admin.auth.admin.get_user_by_id(str(user_id))
    except AuthError as e:
        logger.warning("Auth user lookup failed", user_id=str(user_id), error=e.message)
        raise NotFoundError("errors.userNotFound")
    if not result or not result.user:
        raise NotFoundError("errors.userNotFound")
    return result.user


def update_auth_metadata(
    admin: Client, user: Any, changes: dict[str, Any], failure: str = "errors.internal"
) -> dict[str, Any]:
    """Merge ``changes`` into the user's metadata and return the merged dict."""
    metadata = {**(getattr(user, "user_metadata", None) or {}), **changes}
    try:
        admin.auth.admin.update_user_by_id(str(user.id), {"user_metadata": metadata})
    except AuthError as e:
        logger.error("Auth metadata update failed", user_id=str(user.id), error=e.message)
        raise UpstreamError(failure, code=e.message)
    return metadata
