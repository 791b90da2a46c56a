import httpx
import pytest
from unittest.mock import AsyncMock

from app.core.config import AppSettings
from app.services.yunikorn_client import HEALTHCHECK_PATH, YunikornClient, YunikornError
from conftest import mock_yunikorn_client

HEALTHY_PAYLOAD = {
    "Healthy": True,
    "HealthChecks": [
        {
            "Name": "Scheduling errors",
            "Succeeded": True,
            "Description": "Check for scheduling error entries in metrics",
            "DiagnosisMessage": "There were 0 scheduling errors logged in the metrics",
        }
    ],
}


@pytest.mark.asyncio
async def test_healthcheck_parses_payload():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=HEALTHY_PAYLOAD)

    info = await mock_yunikorn_client(handler).healthcheck()

    assert info.healthy is True
    assert info.health_checks[0].name == "Scheduling errors"
    assert info.failed_checks() == []
    assert len(requests) == 1
    assert requests[0].method == "GET"
    assert str(requests[0].url) == f"http://yunikorn:9080{HEALTHCHECK_PATH}"


@pytest.mark.asyncio
async def test_healthcheck_non_2xx_raises():
    client = mock_yunikorn_client(lambda request: httpx.Response(503, text="scheduler starting"))
    with pytest.raises(YunikornError) as exc_info:
        await client.healthcheck()
    message = str(exc_info.value)
    assert message.startswith(f'GET "http://yunikorn:9080{HEALTHCHECK_PATH}"')
    assert "503" in message
    assert "scheduler starting" in message


@pytest.mark.asyncio
async def test_healthcheck_transport_error_raises_with_full_message():
    def handler(request):
        raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

    with pytest.raises(YunikornError, match=r"ConnectError: \[Errno 111\] Connection refused") as exc_info:
        await mock_yunikorn_client(handler).healthcheck()
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_healthcheck_timeout_raises():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(YunikornError, match="ReadTimeout"):
        await mock_yunikorn_client(handler).healthcheck()


@pytest.mark.asyncio
async def test_healthcheck_invalid_payload_raises():
    client = mock_yunikorn_client(lambda request: httpx.Response(200, text="<html>not json</html>"))
    with pytest.raises(YunikornError, match="invalid healthcheck payload"):
        await client.healthcheck()


@pytest.mark.asyncio
async def test_healthcheck_payload_missing_fields_raises():
    client = mock_yunikorn_client(lambda request: httpx.Response(200, json={"HealthChecks": []}))
    with pytest.raises(YunikornError, match="invalid healthcheck payload"):
        await client.healthcheck()


def test_from_settings_builds_base_url():
    settings = AppSettings(yunikorn_host="yk.example", yunikorn_port=9443, yunikorn_secure=True)
    client = YunikornClient.from_settings(settings)
    assert client.base_url == "https://yk.example:9443"


def test_base_url_trailing_slash_is_stripped():
    client = YunikornClient("http://yunikorn:9080/", client=AsyncMock())
    assert client.base_url == "http://yunikorn:9080"


@pytest.mark.asyncio
async def test_aclose_leaves_injected_client_open():
    http_client = AsyncMock()
    await YunikornClient("http://yunikorn:9080", client=http_client).aclose()
    http_client.aclose.assert_not_awaited()


@pytest.mark.asyncio
async def test_aclose_closes_owned_client():
    client = YunikornClient("http://yunikorn:9080")
    await client.aclose()
    assert client._client.is_closed
