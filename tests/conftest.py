"""
Shared pytest fixtures and configuration.
"""

from datetime import datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from studyflow.analytics.history import HistoryAssembler
from studyflow.api.app import create_app
from studyflow.store.sessions import SessionStore

# Wednesday morning; every clock-dependent fixture reads this
FIXED_NOW = datetime(2024, 6, 12, 10, 0)


@pytest.fixture
def store(tmp_path):
    """A fresh SessionStore backed by a temp file."""
    return SessionStore(tmp_path / "sessions.db")


@pytest.fixture
def history(store):
    return HistoryAssembler(store)


@pytest.fixture
def app(store):
    """A fresh app over the test store with the clock pinned to FIXED_NOW."""
    return create_app(db_path=store.db_path, clock=lambda: FIXED_NOW)


@pytest_asyncio.fixture
async def client(app):
    """Async HTTP client wired directly to the ASGI app (no server needed)."""
    async with app.router.lifespan_context(app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac
