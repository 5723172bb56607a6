import asyncio
import logging
from typing import Optional

from soundsnap.config import Settings
from soundsnap.models.generation import GenerationRequest, JobOutcome
from soundsnap.services.asset_store import AssetStore
from soundsnap.services.job_submitter import describe_prompt
from soundsnap.services.lifecycle_supervisor import LifecycleSupervisor
from soundsnap.services.progress import ProgressChannel, log_progress
from soundsnap.services.upload_guard import check_upload

logger = logging.getLogger(__name__)


async def generate_soundtrack(
    request: GenerationRequest,
    supervisor: LifecycleSupervisor,
    config: Settings,
    channel: Optional[ProgressChannel] = None,
) -> JobOutcome:
    """Run one generation job, streaming its progress to the log."""
    logger.info(
        "Submitting audio generation request: video_url=%s prompt=%s api_key=%s",
        request.video_url,
        describe_prompt(request.prompt),
        "Set" if config.fal_key else "Missing",
    )

    channel = channel or ProgressChannel()
    consumer = asyncio.create_task(log_progress(channel, request.video_url))
    try:
        outcome = await supervisor.run(
            request,
            deadline=config.generation_deadline_seconds,
            on_progress=channel.publish,
        )
    finally:
        channel.close()
    await consumer

    if not outcome.ok:
        logger.error(
            "Error generating audio: kind=%s message=%s details=%s video_url=%s",
            outcome.kind.value,
            outcome.message,
            outcome.details,
            request.video_url,
        )
    return outcome


async def store_video(
    store: AssetStore,
    data: bytes,
    content_type: Optional[str],
    file_name: Optional[str],
    config: Settings,
) -> str:
    check_upload(content_type, len(data), config.upload_allowed_mime_types, config.upload_max_bytes)

    logger.info("Uploading video: filename=%s size=%d mimetype=%s", file_name, len(data), content_type)
    url = await store.upload(data, content_type=content_type or "", file_name=file_name or "video")
    logger.info("Video uploaded: %s", url)
    return url
