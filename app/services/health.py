"""Component health aggregation behind the liveness and readiness endpoints.

A ``Component`` wraps one dependency (the scheduler API, the database pool)
and turns a single check of it into a ``ComponentStatus``. ``HealthService``
fans readiness out to every registered component concurrently and folds the
results into one ``Status``; a failing or slow component never stops the
others from being evaluated.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Iterable, Protocol, runtime_checkable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.errors import describe_error
from app.core.logging_config import setup_logging
from app.schemas.health import ComponentStatus, Status
from app.services import database
from app.services.yunikorn_client import YunikornClient, YunikornError

logger = setup_logging()


@runtime_checkable
class Component(Protocol):
    @property
    def identifier(self) -> str: ...

    async def health_check(self) -> ComponentStatus: ...


class YunikornComponent:
    """Checks the scheduler's own health-check endpoint."""

    def __init__(self, client: YunikornClient):
        self._client = client

    @property
    def identifier(self) -> str:
        return "yunikorn"

    async def health_check(self) -> ComponentStatus:
        try:
            info = await self._client.healthcheck()
        except YunikornError as e:
            return ComponentStatus.failed(self.identifier, str(e))

        if not info.healthy:
            failed = ", ".join(check.name for check in info.failed_checks()) or "unknown"
            return ComponentStatus.failed(self.identifier, f"scheduler reported unhealthy, failed checks: {failed}")
        return ComponentStatus.ok(self.identifier)


class PostgresComponent:
    """Pings the shared database connection pool."""

    def __init__(self, engine: AsyncEngine):
        self._engine = engine

    @property
    def identifier(self) -> str:
        return "postgres"

    async def health_check(self) -> ComponentStatus:
        try:
            await database.ping(self._engine)
        except (SQLAlchemyError, OSError) as e:
            return ComponentStatus.failed(self.identifier, describe_error(e))
        return ComponentStatus.ok(self.identifier)


class HealthService:
    def __init__(
        self,
        components: Iterable[Component],
        version: str,
        started_at: datetime | None = None,
        check_timeout: float | None = None,
    ):
        self._components = tuple(components)
        identifiers = [c.identifier for c in self._components]
        duplicates = sorted({i for i in identifiers if identifiers.count(i) > 1})
        if duplicates:
            raise ValueError(f"duplicate component identifiers: {', '.join(duplicates)}")

        self._version = version
        self._started_at = started_at or datetime.now(timezone.utc)
        self._check_timeout = check_timeout

    @property
    def components(self) -> tuple[Component, ...]:
        return self._components

    @property
    def started_at(self) -> datetime:
        return self._started_at

    @property
    def version(self) -> str:
        return self._version

    def liveness(self) -> Status:
        """The process is up and answering; dependencies are not consulted."""
        return Status(healthy=True, component_statuses=[], started_at=self._started_at, version=self._version)

    async def readiness(self, timeout: float | None = None) -> Status:
        """Check every component once and aggregate the results.

        ``timeout`` bounds each component check and falls back to the
        service's ``check_timeout``; with neither set, a wedged dependency
        keeps the call waiting until the caller cancels it.
        """
        deadline = timeout if timeout is not None else self._check_timeout
        statuses = await asyncio.gather(*(self._check(c, deadline) for c in self._components))
        return Status.aggregate(statuses, self._started_at, self._version)

    async def _check(self, component: Component, timeout: float | None) -> ComponentStatus:
        """Run one component check; every unhealthy outcome is logged exactly once here."""
        scope = asyncio.timeout(timeout)
        try:
            async with scope:
                status = await component.health_check()
        except TimeoutError as e:
            if scope.expired():
                status = ComponentStatus.failed(component.identifier, f"health check timed out after {timeout}s")
            else:
                status = ComponentStatus.failed(component.identifier, describe_error(e))
        except Exception as e:
            logger.exception("Component unhealthy", component=component.identifier, error=describe_error(e))
            return ComponentStatus.failed(component.identifier, describe_error(e))

        if not status.healthy:
            logger.warning("Component unhealthy", component=status.identifier, error=status.error)
        return status
