import json

import httpx
import pytest

from soundsnap.errors import GenerationServiceError
from soundsnap.models.generation import QueueHandle, QueueStatus
from soundsnap.services.fal_client import FalQueueClient

QUEUE_URL = "https://queue.test"
APP = "fal-ai/thinksound"


def make_client(handler, api_key="secret"):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return FalQueueClient(api_key=api_key, application=APP, queue_url=QUEUE_URL, poll_interval=0, http_client=http_client)


async def test_submit_returns_queue_handle():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "request_id": "abc",
                "status_url": f"{QUEUE_URL}/fal-ai/thinksound/requests/abc/status",
                "response_url": f"{QUEUE_URL}/fal-ai/thinksound/requests/abc",
            },
        )

    client = make_client(handler)
    handle = await client.submit({"video_url": "https://store/abc.mp4", "prompt": "rain"})

    assert seen["url"] == f"{QUEUE_URL}/{APP}"
    assert seen["auth"] == "Key secret"
    assert seen["body"] == {"video_url": "https://store/abc.mp4", "prompt": "rain"}
    assert handle.request_id == "abc"
    assert handle.status_url.endswith("/requests/abc/status")


async def test_submit_builds_urls_when_missing():
    client = make_client(lambda request: httpx.Response(200, json={"request_id": "xyz"}))
    handle = await client.submit({})
    assert handle.status_url == f"{QUEUE_URL}/{APP}/requests/xyz/status"
    assert handle.response_url == f"{QUEUE_URL}/{APP}/requests/xyz"


async def test_submit_without_key_sends_no_auth_header():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"request_id": "abc"})

    await make_client(handler, api_key=None).submit({})
    assert seen["auth"] is None


async def test_submit_http_error_carries_details():
    client = make_client(lambda request: httpx.Response(422, json={"detail": "video_url is invalid"}))

    with pytest.raises(GenerationServiceError) as excinfo:
        await client.submit({})

    assert excinfo.value.status_code == 422
    assert excinfo.value.details == {"detail": "video_url is invalid"}


async def test_submit_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GenerationServiceError, match="Unable to reach"):
        await make_client(handler).submit({})


async def test_submit_requires_request_id():
    client = make_client(lambda request: httpx.Response(200, json={"status": "IN_QUEUE"}))
    with pytest.raises(GenerationServiceError, match="request id"):
        await client.submit({})


async def test_watch_polls_until_completed():
    statuses = iter(
        [
            {"status": "IN_QUEUE", "queue_position": 1},
            {"status": "IN_PROGRESS", "logs": [{"message": "loading"}, {"message": "rendering"}]},
            {"status": "COMPLETED", "logs": [{"message": "done"}]},
        ]
    )
    params = []

    def handler(request):
        params.append(request.url.params.get("logs"))
        return httpx.Response(200, json=next(statuses))

    client = make_client(handler)
    handle = QueueHandle("abc", f"{QUEUE_URL}/status", f"{QUEUE_URL}/result")
    updates = [update async for update in client.watch(handle)]

    assert [update.status for update in updates] == [
        QueueStatus.QUEUED,
        QueueStatus.IN_PROGRESS,
        QueueStatus.COMPLETED,
    ]
    assert updates[0].queue_position == 1
    assert updates[1].logs == ("loading", "rendering")
    assert updates[1].latest_log == "rendering"
    assert all(update.request_id == "abc" for update in updates)
    assert params == ["1", "1", "1"]


async def test_fetch_result_returns_raw_payload():
    payload = {"video": {"url": "https://cdn/out123.mp4"}}
    client = make_client(lambda request: httpx.Response(200, json=payload))
    handle = QueueHandle("abc", f"{QUEUE_URL}/status", f"{QUEUE_URL}/result")
    assert await client.fetch_result(handle) == payload


async def test_fetch_result_non_json_body():
    client = make_client(lambda request: httpx.Response(200, text="<html>oops</html>"))
    handle = QueueHandle("abc", f"{QUEUE_URL}/status", f"{QUEUE_URL}/result")
    with pytest.raises(GenerationServiceError, match="non-JSON") as excinfo:
        await client.fetch_result(handle)
    assert excinfo.value.details == "<html>oops</html>"
