from __future__ import annotations

from datetime import datetime
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class ComponentStatus(BaseModel):
    """Result of evaluating one component at one instant."""
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    identifier: str = Field(..., description="Identifier of the component that produced this status")
    healthy: bool = Field(..., description="Whether the component passed its health check")
    error: str | None = Field(None, description="Failure message, present only when unhealthy")

    @model_validator(mode="after")
    def _error_iff_unhealthy(self) -> ComponentStatus:
        if self.healthy and self.error:
            raise ValueError("a healthy component status cannot carry an error")
        if not self.healthy and not self.error:
            raise ValueError("an unhealthy component status requires an error")
        return self

    @classmethod
    def ok(cls, identifier: str) -> ComponentStatus:
        return cls(identifier=identifier, healthy=True)

    @classmethod
    def failed(cls, identifier: str, error: str) -> ComponentStatus:
        return cls(identifier=identifier, healthy=False, error=error)


class Status(BaseModel):
    """Aggregate health returned by liveness and readiness."""
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    healthy: bool = Field(..., description="True iff every component status is healthy")
    component_statuses: list[ComponentStatus] = Field(default_factory=list)
    started_at: datetime = Field(..., description="Process start time")
    version: str = Field(..., description="Build version")

    @classmethod
    def aggregate(cls, statuses: Iterable[ComponentStatus], started_at: datetime, version: str) -> Status:
        statuses = list(statuses)
        return cls(
            healthy=all(s.healthy for s in statuses),
            component_statuses=statuses,
            started_at=started_at,
            version=version,
        )
