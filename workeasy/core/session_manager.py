"""
Session expiry polling.

``SessionManager`` watches a Supabase auth session on a fixed interval. It
refreshes the session shortly before it expires and reports expiry through
callbacks. Works with both the sync and async supabase auth clients.
"""

import asyncio
import inspect
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from workeasy.core.config import settings
from workeasy.core.observability import get_logger

logger = get_logger(__name__)

Callback = Callable[[], Any | Awaitable[Any]]


@dataclass
class SessionState:
    user: Any
    session: Any
    is_expired: bool
    expires_at: float | None


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class SessionManager:
    """Periodically checks a session and refreshes it before expiry."""

    def __init__(
        self,
        auth_client: Any,
        check_interval: float = settings.SESSION_CHECK_INTERVAL_SECONDS,
        refresh_threshold: float = settings.SESSION_REFRESH_THRESHOLD_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.auth = auth_client
        self.check_interval = check_interval
        self.refresh_threshold = refresh_threshold
        self._clock = clock
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def get_session_state(self) -> SessionState:
        try:
            session = await _resolve(self.auth.get_session())
        except Exception as e:
            logger.error("Session state check failed", error=str(e))
            return SessionState(None, None, True, None)

        if not session:
            return SessionState(None, None, True, None)

        expires_at = getattr(session, "expires_at", None)
        is_expired = bool(expires_at) and self._clock() >= expires_at
        return SessionState(
            user=getattr(session, "user", None),
            session=session,
            is_expired=is_expired,
            expires_at=expires_at,
        )

    async def should_refresh_session(self) -> bool:
        state = await self.get_session_state()
        if not state.session or state.is_expired or not state.expires_at:
            return False
        return state.expires_at - self._clock() <= self.refresh_threshold

    async def refresh_session(self) -> bool:
        try:
            response = await _resolve(self.auth.refresh_session())
        except Exception as e:
            logger.error("Session refresh failed", error=str(e))
            return False

        session = getattr(response, "session", None)
        if not session:
            logger.warning("Session refresh returned no session")
            return False

        logger.debug("Session refreshed", expires_at=getattr(session, "expires_at", None))
        return True

    async def check_once(
        self, on_expired: Callback | None = None, on_refreshed: Callback | None = None
    ) -> bool:
        """Run a single check; returns False when polling should stop."""
        state = await self.get_session_state()
        if state.is_expired:
            logger.info("Session expired")
            if on_expired:
                await _resolve(on_expired())
            return False

        if await self.should_refresh_session():
            if await self.refresh_session():
                if on_refreshed:
                    await _resolve(on_refreshed())
            else:
                logger.info("Session refresh failed, treating as expired")
                if on_expired:
                    await _resolve(on_expired())
                return False

        return True

    async def _run(self, on_expired: Callback | None, on_refreshed: Callback | None) -> None:
        while True:
            await asyncio.sleep(self.check_interval)
            try:
                keep_going = await self.check_once(on_expired, on_refreshed)
            except Exception as e:
                logger.error("Periodic session check failed", error=str(e), exc_info=True)
                continue
            if not keep_going:
                self._task = None
                return

    def start_periodic_check(
        self, on_expired: Callback | None = None, on_refreshed: Callback | None = None
    ) -> None:
        if self.is_running:
            return

        self._task = asyncio.get_running_loop().create_task(
            self._run(on_expired, on_refreshed)
        )
        logger.debug("Periodic session check started", interval=self.check_interval)

    def stop_periodic_check(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()
        logger.debug("Periodic session check stopped")

    async def force_logout(self) -> None:
        try:
            await _resolve(self.auth.sign_out())
        except Exception as e:
            logger.error("Forced logout failed", error=str(e))
        finally:
            self.stop_periodic_check()

    def cleanup(self) -> None:
        self.stop_periodic_check()
