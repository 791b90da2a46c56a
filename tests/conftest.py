import asyncio

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from app.schemas.health import ComponentStatus
from app.services.yunikorn_client import YunikornClient


class StaticComponent:
    """Component that answers immediately with a fixed verdict."""

    def __init__(self, identifier, error=None):
        self._identifier = identifier
        self._error = error
        self.calls = 0

    @property
    def identifier(self):
        return self._identifier

    async def health_check(self):
        self.calls += 1
        if self._error:
            return ComponentStatus.failed(self._identifier, self._error)
        return ComponentStatus.ok(self._identifier)


class HangingComponent:
    """Component whose dependency never answers."""

    def __init__(self, identifier):
        self._identifier = identifier
        self.cancelled = False

    @property
    def identifier(self):
        return self._identifier

    async def health_check(self):
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return ComponentStatus.ok(self._identifier)


class RaisingComponent:
    """Component that breaks its contract and lets an exception escape."""

    def __init__(self, identifier, exc):
        self._identifier = identifier
        self._exc = exc

    @property
    def identifier(self):
        return self._identifier

    async def health_check(self):
        raise self._exc


def mock_yunikorn_client(handler, base_url="http://yunikorn:9080"):
    """YunikornClient whose HTTP traffic is answered by *handler*."""
    transport = httpx.MockTransport(handler)
    return YunikornClient(base_url, client=httpx.AsyncClient(transport=transport))


@pytest_asyncio.fixture
async def sqlite_engine():
    """In-memory database shared by every connection of the pool."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def broken_engine(tmp_path):
    """Engine pointing at a database file that can never be opened."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/missing-dir/history.db")
    yield engine
    await engine.dispose()
