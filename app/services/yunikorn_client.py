import httpx

from app.core.config import AppSettings
from app.core.errors import describe_error
from app.schemas.yunikorn import SchedulerHealthInfo

HEALTHCHECK_PATH = "/ws/v1/scheduler/healthcheck"


class YunikornError(Exception):
    """Raised when a request to the scheduler REST API fails."""


class YunikornClient:
    """Thin async client for the YuniKorn scheduler REST API.

    The underlying httpx.AsyncClient is shared and safe for concurrent use.
    A client passed in by the caller is never closed by this class.
    """

    def __init__(self, base_url: str, client: httpx.AsyncClient | None = None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
        )

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "YunikornClient":
        return cls(settings.yunikorn_base_url, timeout=settings.yunikorn_timeout)

    async def healthcheck(self) -> SchedulerHealthInfo:
        """Issue one GET against the scheduler health endpoint."""
        url = f"{self.base_url}{HEALTHCHECK_PATH}"
        try:
            response = await self._client.get(url)
            response.raise_for_status()
            return SchedulerHealthInfo.model_validate(response.json())
        except httpx.HTTPStatusError as e:
            raise YunikornError(f'GET "{url}": unexpected status {e.response.status_code}: {e.response.text}') from e
        except httpx.HTTPError as e:
            raise YunikornError(f'GET "{url}": {describe_error(e)}') from e
        except ValueError as e:
            raise YunikornError(f'GET "{url}": invalid healthcheck payload: {e}') from e

    async def aclose(self):
        if self._owns_client:
            await self._client.aclose()
