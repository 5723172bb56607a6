from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class GenerationRequest:
    video_url: str
    prompt: str

    def arguments(self) -> Dict[str, str]:
        return {"video_url": self.video_url, "prompt": self.prompt}


class QueueStatus(str, Enum):
    QUEUED = "QUEUED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "QueueStatus":
        value = (raw or "").strip().upper()
        if value == "IN_QUEUE":
            return cls.QUEUED
        try:
            return cls(value)
        except ValueError:
            return cls.QUEUED


@dataclass(frozen=True)
class QueueUpdate:
    status: QueueStatus
    logs: Tuple[str, ...] = ()
    request_id: Optional[str] = None
    queue_position: Optional[int] = None

    @property
    def latest_log(self) -> Optional[str]:
        return self.logs[-1] if self.logs else None


@dataclass(frozen=True)
class QueueHandle:
    """Reference to a job the generation service has accepted."""

    request_id: str
    status_url: str
    response_url: str


@dataclass(frozen=True)
class VideoFile:
    url: str
    content_type: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None


@dataclass(frozen=True)
class GenerationResult:
    video: VideoFile
    extra: Mapping[str, Any] = field(default_factory=dict)


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    VALIDATION_FAILED = "validation_failed"
    TRANSIENT_FAILURE = "transient_failure"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class JobOutcome:
    """Terminal result of one orchestration attempt.

    Exactly one of the variants in :class:`OutcomeKind`. ``artifact_url`` is
    set only for successes, ``cause`` only for transient failures.
    """

    kind: OutcomeKind
    message: str
    artifact_url: Optional[str] = None
    result: Optional[GenerationResult] = None
    cause: Optional[BaseException] = None
    details: Any = None
    attempts: int = 0
    elapsed_seconds: float = 0.0
    request_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @classmethod
    def success(cls, result: GenerationResult, **kwargs: Any) -> "JobOutcome":
        return cls(
            kind=OutcomeKind.SUCCESS,
            message="Audio generated successfully",
            artifact_url=result.video.url,
            result=result,
            **kwargs,
        )

    @classmethod
    def validation_failed(cls, reason: str, **kwargs: Any) -> "JobOutcome":
        return cls(kind=OutcomeKind.VALIDATION_FAILED, message=reason, **kwargs)

    @classmethod
    def transient_failure(cls, cause: BaseException, **kwargs: Any) -> "JobOutcome":
        message = str(cause) or "Failed to generate audio"
        kwargs.setdefault("details", getattr(cause, "details", None))
        return cls(kind=OutcomeKind.TRANSIENT_FAILURE, message=message, cause=cause, **kwargs)

    @classmethod
    def timeout(cls, deadline: float, **kwargs: Any) -> "JobOutcome":
        return cls(
            kind=OutcomeKind.TIMEOUT,
            message=f"Audio generation timed out after {deadline:g} seconds",
            **kwargs,
        )
