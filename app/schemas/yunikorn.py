from pydantic import BaseModel, ConfigDict, Field


class SchedulerHealthCheck(BaseModel):
    """One internal check reported by the scheduler."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., alias="Name")
    succeeded: bool = Field(..., alias="Succeeded")
    description: str = Field("", alias="Description")
    diagnosis_message: str = Field("", alias="DiagnosisMessage")


class SchedulerHealthInfo(BaseModel):
    """Payload of GET /ws/v1/scheduler/healthcheck."""
    model_config = ConfigDict(populate_by_name=True)

    healthy: bool = Field(..., alias="Healthy")
    health_checks: list[SchedulerHealthCheck] = Field(default_factory=list, alias="HealthChecks")

    def failed_checks(self) -> list[SchedulerHealthCheck]:
        return [check for check in self.health_checks if not check.succeeded]
