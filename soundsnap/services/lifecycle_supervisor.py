"""Drives one generation job from submission to a normalized outcome.

The job (submission with retries, status tracking and result fetch) runs as
its own task and is raced against a deadline that starts when ``run`` is
called. If the deadline wins, the job task is cancelled without waiting for
it; the generation service is not told to stop, so the remote job may keep
running and the abandoned task may still hold its connection until the
transport notices the cancellation.
"""

import asyncio
import inspect
import logging
import time
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional, Protocol

from tenacity import AsyncRetrying, stop_after_attempt, wait_fixed

from soundsnap.errors import ResultValidationError
from soundsnap.models.generation import (
    GenerationRequest,
    GenerationResult,
    JobOutcome,
    QueueHandle,
    QueueStatus,
    QueueUpdate,
)
from soundsnap.services.result_validator import validate_result

logger = logging.getLogger(__name__)

# Called synchronously; coroutine functions are not awaited.
ProgressCallback = Callable[[str], None]
SleepFunc = Callable[[float], Awaitable[None]]


class GenerationService(Protocol):
    async def submit(self, arguments: Dict[str, Any]) -> QueueHandle:
        ...

    def watch(self, handle: QueueHandle) -> AsyncIterator[QueueUpdate]:
        ...

    async def fetch_result(self, handle: QueueHandle) -> Any:
        ...


class SubmissionFailed(Exception):
    def __init__(self, cause: BaseException, attempts: int):
        super().__init__(str(cause))
        self.cause = cause
        self.attempts = attempts


class JobFailed(Exception):
    def __init__(self, cause: BaseException, handle: QueueHandle):
        super().__init__(str(cause))
        self.cause = cause
        self.handle = handle


def progress_text(update: QueueUpdate) -> str:
    if update.status is QueueStatus.IN_PROGRESS:
        return update.latest_log or "Processing..."
    if update.status is QueueStatus.COMPLETED:
        return "Generation complete!"
    if update.queue_position is not None:
        return f"Queued (position {update.queue_position})..."
    return "Queued..."


class LifecycleSupervisor:
    def __init__(
        self,
        service: GenerationService,
        max_attempts: int = 3,
        retry_delay: float = 2.0,
        sleep: SleepFunc = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.service = service
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._sleep = sleep

    async def run(
        self,
        request: GenerationRequest,
        deadline: float,
        on_progress: Optional[ProgressCallback] = None,
    ) -> JobOutcome:
        if on_progress is not None and inspect.iscoroutinefunction(on_progress):
            raise TypeError("on_progress must be a plain callable, not a coroutine function")
        started = time.monotonic()
        state = _RunState()
        job = asyncio.create_task(self._execute(request, state, on_progress))

        try:
            done, _ = await asyncio.wait({job}, timeout=deadline)
        except asyncio.CancelledError:
            _abandon(job, state)
            logger.warning("Caller cancelled generation job %s; abandoning it", state.request_id or "<not accepted>")
            raise
        elapsed = time.monotonic() - started

        if job not in done:
            _abandon(job, state)
            logger.error(
                "Generation job %s timed out after %.1fs (%d submission attempt(s)); abandoning it",
                state.request_id or "<not accepted>",
                elapsed,
                state.attempts,
            )
            return JobOutcome.timeout(
                deadline, attempts=state.attempts, elapsed_seconds=elapsed, request_id=state.request_id
            )

        common = {"attempts": state.attempts, "elapsed_seconds": elapsed, "request_id": state.request_id}
        try:
            result = job.result()
        except SubmissionFailed as exc:
            logger.error("Submission failed after %d attempt(s): %s", exc.attempts, exc.cause)
            return JobOutcome.transient_failure(exc.cause, **common)
        except JobFailed as exc:
            logger.error("Generation job %s failed: %s", exc.handle.request_id, exc.cause)
            return JobOutcome.transient_failure(exc.cause, **common)
        except ResultValidationError as exc:
            logger.error("Invalid response structure from generation service: %s", exc)
            return JobOutcome.validation_failed(str(exc), details=state.raw_response, **common)
        except Exception as exc:
            logger.exception("Unexpected error while running generation job")
            return JobOutcome.transient_failure(exc, **common)

        logger.info("Audio generated successfully: %s", result.video.url)
        return JobOutcome.success(result, **common)

    async def _execute(
        self,
        request: GenerationRequest,
        state: "_RunState",
        on_progress: Optional[ProgressCallback],
    ) -> GenerationResult:
        handle = await self._submit_with_retry(request, state)
        state.request_id = handle.request_id
        logger.info("Generation job %s accepted", handle.request_id)

        try:
            async for update in self.service.watch(handle):
                if not state.abandoned:
                    self._observe(update, on_progress)
            raw = await self.service.fetch_result(handle)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            raise JobFailed(exc, handle) from exc

        state.raw_response = raw
        logger.info("Generation service full response for %s: %s", handle.request_id, raw)
        return validate_result(raw)

    async def _submit_with_retry(self, request: GenerationRequest, state: "_RunState") -> QueueHandle:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.retry_delay),
            sleep=self._sleep,
            reraise=True,
        )
        handle: Optional[QueueHandle] = None
        try:
            async for attempt in retrying:
                with attempt:
                    state.attempts = attempt.retry_state.attempt_number
                    handle = await self._attempt_submit(request, state.attempts)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            raise SubmissionFailed(exc, state.attempts) from exc
        return handle

    async def _attempt_submit(self, request: GenerationRequest, attempt: int) -> QueueHandle:
        started = time.monotonic()
        try:
            handle = await self.service.submit(request.arguments())
        except Exception as exc:
            logger.warning(
                "Submission attempt %d/%d failed after %.2fs: %s",
                attempt,
                self.max_attempts,
                time.monotonic() - started,
                exc,
            )
            raise
        logger.info(
            "Submission attempt %d/%d succeeded in %.2fs", attempt, self.max_attempts, time.monotonic() - started
        )
        return handle

    def _observe(self, update: QueueUpdate, on_progress: Optional[ProgressCallback]) -> None:
        logger.info(
            "Generation queue update: status=%s logs=%s request_id=%s",
            update.status.value,
            list(update.logs),
            update.request_id,
        )
        if on_progress is None:
            return
        try:
            on_progress(progress_text(update))
        except Exception:
            logger.warning("Progress callback raised; ignoring", exc_info=True)


class _RunState:
    __slots__ = ("attempts", "request_id", "raw_response", "abandoned")

    def __init__(self):
        self.attempts = 0
        self.request_id: Optional[str] = None
        self.raw_response: Any = None
        self.abandoned = False


def _discard_late_completion(task: "asyncio.Future[Any]") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning("Abandoned generation job finished with an error after its deadline: %s", exc)
    else:
        logger.warning("Discarding generation result that arrived after the deadline")


def _abandon(job: "asyncio.Task[Any]", state: _RunState) -> None:
    state.abandoned = True
    job.add_done_callback(_discard_late_completion)
    job.cancel()
