from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _HistoryRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    created_at_nano: int
    deleted_at_nano: int | None = None
    timestamp: int = Field(..., description="Unix nanoseconds of the observation")


class AppHistory(_HistoryRecord):
    """Number of applications known to the scheduler at one instant."""
    total_applications: int = Field(..., ge=0)


class ContainerHistory(_HistoryRecord):
    """Number of containers known to the scheduler at one instant."""
    total_containers: int = Field(..., ge=0)


class HistoryFilters(BaseModel):
    timestamp_start: datetime | None = None
    timestamp_end: datetime | None = None
    limit: int | None = Field(None, ge=0)
    offset: int | None = Field(None, ge=0)
