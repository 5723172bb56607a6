"""HTTP client for the fal queue and storage REST APIs."""

import asyncio
import logging
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from soundsnap.config import Settings, settings
from soundsnap.errors import GenerationServiceError
from soundsnap.models.generation import QueueHandle, QueueStatus, QueueUpdate

logger = logging.getLogger(__name__)

_http_client: Optional[httpx.AsyncClient] = None


def get_http_client() -> httpx.AsyncClient:
    global _http_client
    if _http_client is None or _http_client.is_closed:
        _http_client = httpx.AsyncClient(timeout=settings.fal_request_timeout_seconds)
    return _http_client


async def close_http_client() -> None:
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


def auth_headers(api_key: Optional[str]) -> Dict[str, str]:
    if not api_key:
        return {}
    return {"Authorization": f"Key {api_key}"}


def _response_details(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


async def request_json(client: httpx.AsyncClient, method: str, url: str, **kwargs: Any) -> Any:
    try:
        response = await client.request(method, url, **kwargs)
    except httpx.HTTPError as exc:
        raise GenerationServiceError(f"Unable to reach {url}: {exc.__class__.__name__}: {exc}") from exc

    if response.is_error:
        raise GenerationServiceError(
            f"{method} {url} failed with HTTP {response.status_code}",
            status_code=response.status_code,
            details=_response_details(response),
        )

    try:
        return response.json()
    except ValueError as exc:
        raise GenerationServiceError(
            f"{method} {url} returned a non-JSON response",
            status_code=response.status_code,
            details=response.text,
        ) from exc


class FalQueueClient:
    """Generation service backed by the fal queue API.

    ``submit`` enqueues a job, ``watch`` polls its status until the queue
    reports it COMPLETED and ``fetch_result`` downloads the terminal payload.
    """

    def __init__(
        self,
        api_key: Optional[str],
        application: str,
        queue_url: str = "https://queue.fal.run",
        poll_interval: float = 1.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.application = application.strip("/")
        self.queue_url = queue_url.rstrip("/")
        self.poll_interval = poll_interval
        self._api_key = api_key
        self._client = http_client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client if self._client is not None else get_http_client()

    def _headers(self) -> Dict[str, str]:
        return auth_headers(self._api_key)

    async def submit(self, arguments: Dict[str, Any]) -> QueueHandle:
        url = f"{self.queue_url}/{self.application}"
        body = await request_json(self.client, "POST", url, json=arguments, headers=self._headers())

        request_id = body.get("request_id") if isinstance(body, dict) else None
        if not request_id:
            raise GenerationServiceError("Generation service did not return a request id.", details=body)

        base = f"{url}/requests/{request_id}"
        return QueueHandle(
            request_id=request_id,
            status_url=body.get("status_url") or f"{base}/status",
            response_url=body.get("response_url") or base,
        )

    async def status(self, handle: QueueHandle) -> QueueUpdate:
        body = await request_json(
            self.client, "GET", handle.status_url, params={"logs": 1}, headers=self._headers()
        )
        if not isinstance(body, dict):
            raise GenerationServiceError("Unexpected status payload from generation service.", details=body)

        logs = tuple(
            str(entry.get("message", "")) if isinstance(entry, dict) else str(entry)
            for entry in body.get("logs") or []
        )
        position = body.get("queue_position")
        return QueueUpdate(
            status=QueueStatus.parse(body.get("status")),
            logs=logs,
            request_id=handle.request_id,
            queue_position=position if isinstance(position, int) else None,
        )

    async def watch(self, handle: QueueHandle) -> AsyncIterator[QueueUpdate]:
        while True:
            update = await self.status(handle)
            yield update
            if update.status is QueueStatus.COMPLETED:
                return
            await asyncio.sleep(self.poll_interval)

    async def fetch_result(self, handle: QueueHandle) -> Any:
        return await request_json(self.client, "GET", handle.response_url, headers=self._headers())


def build_generation_service(config: Settings = settings) -> FalQueueClient:
    return FalQueueClient(
        api_key=config.fal_key,
        application=config.fal_application,
        queue_url=config.fal_queue_url,
        poll_interval=config.status_poll_interval_seconds,
    )
