from collections.abc import Generator
from types import SimpleNamespace
from typing import Any

import pytest
from fastapi.testclient import TestClient

from workeasy.api.deps import get_supabase
from workeasy.core.rate_limiter import auth_limiter
from workeasy.main import app
from workeasy.tests.utils.fake_supabase import FakeSupabase


@pytest.fixture(autouse=True)
def reset_rate_limits() -> Generator[None, None, None]:
    auth_limiter.reset()
    yield
    auth_limiter.reset()


@pytest.fixture
def backend() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def client(backend: FakeSupabase) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_supabase] = lambda: backend
    with TestClient(app, headers={"Accept-Language": "en"}) as c:
        yield c
    app.dependency_overrides.clear()


def add_member(
    backend: FakeSupabase,
    store: dict[str, Any],
    email: str,
    role: str,
    name: str,
) -> SimpleNamespace:
    """A user holding an ACTIVE ``role`` in ``store``, with a store_users row."""
    user = backend.add_user(email, password="password123", role=role, name=name)
    role_row = backend.seed(
        "user_store_roles",
        user_id=user.id,
        store_id=store["id"],
        role=role,
        status="ACTIVE",
        deleted_at=None,
    )
    store_user = backend.seed(
        "store_users",
        store_id=store["id"],
        user_id=user.id,
        name=name,
        email=email,
        role=role,
        status="ACTIVE",
        is_guest=False,
        is_active=True,
        deleted_at=None,
    )
    return SimpleNamespace(
        user=user,
        role_row=role_row,
        store_user=store_user,
        headers={"Authorization": f"Bearer {backend.token_for(user)}"},
    )


@pytest.fixture
def store(backend: FakeSupabase) -> dict[str, Any]:
    owner = backend.add_user(
        "owner@example.com", password="password123", role="MASTER", name="Owner"
    )
    return backend.seed(
        "stores",
        name="Main Street",
        owner_id=owner.id,
        status="ACTIVE",
        timezone="Asia/Seoul",
        created_at="2024-01-01T00:00:00+00:00",
    )


@pytest.fixture
def owner(backend: FakeSupabase, store: dict[str, Any]) -> SimpleNamespace:
    user = backend.users[store["owner_id"]]
    role_row = backend.seed(
        "user_store_roles",
        user_id=user.id,
        store_id=store["id"],
        role="MASTER",
        status="ACTIVE",
        deleted_at=None,
    )
    store_user = backend.seed(
        "store_users",
        store_id=store["id"],
        user_id=user.id,
        name="Owner",
        email=user.email,
        role="MASTER",
        status="ACTIVE",
        is_guest=False,
        is_active=True,
        deleted_at=None,
    )
    return SimpleNamespace(
        user=user,
        role_row=role_row,
        store_user=store_user,
        headers={"Authorization": f"Bearer {backend.token_for(user)}"},
    )


@pytest.fixture
def manager(backend: FakeSupabase, store: dict[str, Any]) -> SimpleNamespace:
    return add_member(backend, store, "manager@example.com", "SUB_MANAGER", "Mina")


@pytest.fixture
def staff(backend: FakeSupabase, store: dict[str, Any]) -> SimpleNamespace:
    return add_member(backend, store, "staff@example.com", "PART_TIMER", "Jun")
