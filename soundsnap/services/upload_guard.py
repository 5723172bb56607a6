from typing import Iterable, Optional

from soundsnap.errors import CallerError, UnsupportedMediaTypeError, UploadTooLargeError


def check_upload(
    content_type: Optional[str],
    size: int,
    allowed_mime_types: Iterable[str],
    max_bytes: int,
) -> None:
    """Reject uploads that should never reach the asset store."""
    if size <= 0:
        raise CallerError("Uploaded video is empty")

    mime = (content_type or "").split(";", 1)[0].strip().lower()
    allowed = {value.lower() for value in allowed_mime_types}
    if mime not in allowed:
        raise UnsupportedMediaTypeError(
            f"Unsupported video type {mime or 'unknown'}. Supported types: {', '.join(sorted(allowed))}"
        )

    if size > max_bytes:
        raise UploadTooLargeError(f"Video is too large ({size} bytes). Maximum size is {max_bytes} bytes.")
