from typing import Any, Mapping, Optional

from soundsnap.errors import ResultValidationError
from soundsnap.models.generation import GenerationResult, VideoFile


def normalize_payload(raw: Any) -> Optional[Mapping[str, Any]]:
    """Return the output payload whether it sits at the top level or under ``data``."""
    if not isinstance(raw, Mapping) or not raw:
        return None
    if "data" in raw:
        data = raw["data"]
        return data if isinstance(data, Mapping) and data else None
    return raw


def validate_result(raw: Any) -> GenerationResult:
    payload = normalize_payload(raw)
    if payload is None:
        raise ResultValidationError("No video with audio generated: response payload is missing")

    video = payload.get("video")
    if not isinstance(video, Mapping):
        raise ResultValidationError("No video with audio generated: video descriptor not found in response")

    url = video.get("url")
    if not isinstance(url, str) or not url.strip():
        raise ResultValidationError("No video with audio generated: video URL not found in response")

    file_size = video.get("file_size")
    if not isinstance(file_size, int) or isinstance(file_size, bool):
        file_size = None

    video_file = VideoFile(
        url=url,
        content_type=video.get("content_type"),
        file_name=video.get("file_name"),
        file_size=file_size,
    )
    extra = {key: value for key, value in payload.items() if key != "video"}
    return GenerationResult(video=video_file, extra=extra)
