from typing import Optional

from soundsnap.config import DEFAULT_PROMPT
from soundsnap.errors import CallerError
from soundsnap.models.generation import GenerationRequest


def build_generation_request(
    video_url: Optional[str],
    prompt: Optional[str] = None,
    default_prompt: str = DEFAULT_PROMPT,
) -> GenerationRequest:
    """Build the payload for one generation job.

    Pure construction: no I/O happens here. A missing video URL is a caller
    error. A prompt that is absent or blank is replaced by ``default_prompt``;
    any other prompt is kept exactly as given.
    """
    if not isinstance(video_url, str) or not video_url.strip():
        raise CallerError("Video URL is required")

    if prompt is None or not prompt.strip():
        prompt = default_prompt

    return GenerationRequest(video_url=video_url, prompt=prompt)


def describe_prompt(prompt: Optional[str]) -> str:
    """Shorten a prompt for log output."""
    if not prompt or not prompt.strip():
        return "Default"
    if len(prompt) <= 50:
        return prompt
    return prompt[:50] + "..."
