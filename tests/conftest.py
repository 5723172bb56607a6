import asyncio
from typing import Any, Iterable, List, Optional

import pytest

from soundsnap.errors import GenerationServiceError
from soundsnap.models.generation import QueueHandle, QueueStatus, QueueUpdate


class StubGenerationService:
    """In-memory generation service with scripted failures and updates."""

    def __init__(
        self,
        result: Any = None,
        failures: int = 0,
        always_fail: bool = False,
        updates: Iterable[QueueUpdate] = (),
        result_gate: Optional[asyncio.Event] = None,
        watch_error: Optional[Exception] = None,
    ):
        self.result = result
        self.failures = failures
        self.always_fail = always_fail
        self.updates = list(updates)
        self.result_gate = result_gate
        self.watch_error = watch_error
        self.submitted: List[dict] = []
        self.errors: List[Exception] = []
        self.result_delivered = False

    async def submit(self, arguments):
        self.submitted.append(arguments)
        attempt = len(self.submitted)
        if self.always_fail or attempt <= self.failures:
            error = GenerationServiceError(f"submit failed on attempt {attempt}", status_code=503)
            self.errors.append(error)
            raise error
        return QueueHandle(
            request_id="req-1",
            status_url="https://queue.test/requests/req-1/status",
            response_url="https://queue.test/requests/req-1",
        )

    async def watch(self, handle):
        for update in self.updates:
            yield update
        if self.watch_error is not None:
            raise self.watch_error

    async def fetch_result(self, handle):
        if self.result_gate is not None:
            await self.result_gate.wait()
        self.result_delivered = True
        return self.result


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def queue_updates():
    return [
        QueueUpdate(status=QueueStatus.QUEUED, request_id="req-1", queue_position=2),
        QueueUpdate(
            status=QueueStatus.IN_PROGRESS,
            logs=("Loading model", "Synthesizing audio"),
            request_id="req-1",
        ),
        QueueUpdate(status=QueueStatus.COMPLETED, logs=("Done",), request_id="req-1"),
    ]


@pytest.fixture
def video_payload():
    return {
        "video": {
            "url": "https://cdn/out123.mp4",
            "content_type": "video/mp4",
            "file_name": "out123.mp4",
            "file_size": 2048,
        }
    }
