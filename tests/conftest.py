"""Pytest fixtures for backend tests."""

from __future__ import annotations

import os
from collections.abc import Iterator
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from tests.fakes import FakeSupabase


def _set_default_env() -> None:
    os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
    os.environ.setdefault("SUPABASE_ANON_KEY", "anon-key")
    os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-key")


# Settings are read when ``app.config`` is first imported by a test module.
_set_default_env()


@pytest.fixture
def fake_db() -> Iterator[FakeSupabase]:
    """A fresh in-memory database with empty caches."""
    from app import dependencies
    from app.services.common import clear_caches

    clear_caches()
    dependencies._admin_cache.clear()
    yield FakeSupabase()
    clear_caches()
    dependencies._admin_cache.clear()


@pytest.fixture(scope="session")
def client() -> TestClient:
    """Create a FastAPI test client."""
    from app.main import app

    return TestClient(app)


@pytest.fixture
def api(client: TestClient, fake_db: FakeSupabase) -> Iterator[SimpleNamespace]:
    """Test client wired to ``fake_db`` with a switchable signed-in user."""
    from app.dependencies import get_current_user, get_db_client
    from app.main import app

    member_id = fake_db.add_user("Member One")
    admin_id = fake_db.add_user("Chapter Admin", is_admin=True)
    session = SimpleNamespace(client=client, db=fake_db, admin_id=admin_id, member_id=member_id)
    session.user_id = member_id

    app.dependency_overrides[get_db_client] = lambda: fake_db
    app.dependency_overrides[get_current_user] = lambda: SimpleNamespace(id=session.user_id)
    yield session
    app.dependency_overrides.clear()
