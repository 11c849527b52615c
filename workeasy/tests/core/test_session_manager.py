"""Session polling against a mocked auth client."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from workeasy.core.session_manager import SessionManager

NOW = 1_700_000_000.0


def make_manager(session, refresh_result=None, refresh_error=None, **kwargs):
    auth = MagicMock()
    auth.get_session.return_value = session
    auth.sign_out.return_value = None
    if refresh_error is not None:
        auth.refresh_session.side_effect = refresh_error
    else:
        auth.refresh_session.return_value = refresh_result
    manager = SessionManager(
        auth,
        check_interval=kwargs.pop("check_interval", 60),
        refresh_threshold=kwargs.pop("refresh_threshold", 300),
        clock=lambda: NOW,
    )
    return manager, auth


class TestSessionState:
    async def test_missing_session_is_expired(self):
        manager, _ = make_manager(None)
        state = await manager.get_session_state()
        assert state.is_expired
        assert state.session is None

    async def test_expiry_uses_clock(self):
        manager, _ = make_manager(SimpleNamespace(expires_at=NOW - 1, user="u"))
        assert (await manager.get_session_state()).is_expired

    async def test_lookup_errors_count_as_expired(self):
        manager, auth = make_manager(None)
        auth.get_session.side_effect = RuntimeError("network down")
        assert (await manager.get_session_state()).is_expired

    async def test_async_auth_client(self):
        auth = MagicMock()
        auth.get_session = AsyncMock(return_value=SimpleNamespace(expires_at=NOW + 3600))
        manager = SessionManager(auth, clock=lambda: NOW)
        state = await manager.get_session_state()
        assert not state.is_expired
        assert state.expires_at == NOW + 3600


class TestRefresh:
    async def test_refreshes_inside_threshold(self):
        manager, _ = make_manager(SimpleNamespace(expires_at=NOW + 120))
        assert await manager.should_refresh_session()

    async def test_no_refresh_far_from_expiry(self):
        manager, _ = make_manager(SimpleNamespace(expires_at=NOW + 3600))
        assert not await manager.should_refresh_session()

    async def test_refresh_without_session_fails(self):
        manager, _ = make_manager(
            SimpleNamespace(expires_at=NOW + 120),
            refresh_result=SimpleNamespace(session=None),
        )
        assert not await manager.refresh_session()

    async def test_refresh_error_fails(self):
        manager, _ = make_manager(
            SimpleNamespace(expires_at=NOW + 120), refresh_error=RuntimeError("boom")
        )
        assert not await manager.refresh_session()


class TestCheckOnce:
    async def test_expired_session_calls_on_expired(self):
        manager, _ = make_manager(SimpleNamespace(expires_at=NOW - 10))
        on_expired = MagicMock()
        assert not await manager.check_once(on_expired=on_expired)
        on_expired.assert_called_once()

    async def test_successful_refresh_calls_on_refreshed(self):
        manager, _ = make_manager(
            SimpleNamespace(expires_at=NOW + 60),
            refresh_result=SimpleNamespace(session=SimpleNamespace(expires_at=NOW + 3600)),
        )
        on_refreshed = AsyncMock()
        assert await manager.check_once(on_refreshed=on_refreshed)
        on_refreshed.assert_awaited_once()

    async def test_failed_refresh_treated_as_expiry(self):
        manager, _ = make_manager(
            SimpleNamespace(expires_at=NOW + 60),
            refresh_result=SimpleNamespace(session=None),
        )
        on_expired = MagicMock()
        assert not await manager.check_once(on_expired=on_expired)
        on_expired.assert_called_once()

    async def test_healthy_session_keeps_polling(self):
        manager, auth = make_manager(SimpleNamespace(expires_at=NOW + 3600))
        assert await manager.check_once()
        auth.refresh_session.assert_not_called()


class TestPeriodicCheck:
    async def test_stops_after_expiry(self):
        manager, _ = make_manager(SimpleNamespace(expires_at=NOW - 1), check_interval=0)
        expired = asyncio.Event()
        manager.start_periodic_check(on_expired=expired.set)
        await asyncio.wait_for(expired.wait(), timeout=1)
        await asyncio.sleep(0)
        assert not manager.is_running

    async def test_start_is_idempotent_and_stoppable(self):
        manager, _ = make_manager(SimpleNamespace(expires_at=NOW + 3600), check_interval=30)
        manager.start_periodic_check()
        task = manager._task
        manager.start_periodic_check()
        assert manager._task is task
        manager.stop_periodic_check()
        assert not manager.is_running

    async def test_force_logout_signs_out_and_stops(self):
        manager, auth = make_manager(SimpleNamespace(expires_at=NOW + 3600), check_interval=30)
        manager.start_periodic_check()
        await manager.force_logout()
        auth.sign_out.assert_called_once()
        assert not manager.is_running
