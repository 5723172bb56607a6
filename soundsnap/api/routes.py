import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from soundsnap.api.dependencies import get_asset_store, get_supervisor
from soundsnap.config import Settings, get_settings
from soundsnap.errors import AssetStoreError, CallerError, UnsupportedMediaTypeError, UploadTooLargeError
from soundsnap.models.generation import JobOutcome, OutcomeKind
from soundsnap.models.schemas import (
    ErrorResponse,
    GenerateAudioRequest,
    GenerateAudioResponse,
    HealthResponse,
    UploadVideoResponse,
)
from soundsnap.services import soundtrack_service
from soundsnap.services.asset_store import AssetStore
from soundsnap.services.job_submitter import build_generation_request
from soundsnap.services.lifecycle_supervisor import LifecycleSupervisor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

OUTCOME_STATUS = {
    OutcomeKind.TRANSIENT_FAILURE: status.HTTP_502_BAD_GATEWAY,
    OutcomeKind.VALIDATION_FAILED: status.HTTP_502_BAD_GATEWAY,
    OutcomeKind.TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
}

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


def error_response(status_code: int, message: str, details=None) -> JSONResponse:
    body = ErrorResponse(error=message, details=jsonable_encoder(details))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def outcome_response(outcome: JobOutcome) -> JSONResponse:
    status_code = OUTCOME_STATUS.get(outcome.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return error_response(status_code, outcome.message, outcome.details)


_UPLOAD_RESPONSES = {
    **_ERROR_RESPONSES,
    413: {"model": ErrorResponse},
    415: {"model": ErrorResponse},
}


@router.post("/upload-video", response_model=UploadVideoResponse, responses=_UPLOAD_RESPONSES)
async def upload_video(
    video: Optional[UploadFile] = File(default=None),
    store: AssetStore = Depends(get_asset_store),
    config: Settings = Depends(get_settings),
):
    if video is None:
        logger.error("Invalid request: No video file provided")
        return error_response(status.HTTP_400_BAD_REQUEST, "No video file provided")

    if video.size is not None and video.size > config.upload_max_bytes:
        logger.error("Rejected upload %s: %d bytes", video.filename, video.size)
        return error_response(
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            f"Video is too large ({video.size} bytes). Maximum size is {config.upload_max_bytes} bytes.",
        )

    # One byte past the limit is enough for the guard to reject it.
    data = await video.read(config.upload_max_bytes + 1)
    try:
        url = await soundtrack_service.store_video(store, data, video.content_type, video.filename, config)
    except UnsupportedMediaTypeError as exc:
        return error_response(status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, str(exc))
    except UploadTooLargeError as exc:
        return error_response(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, str(exc))
    except CallerError as exc:
        return error_response(status.HTTP_400_BAD_REQUEST, str(exc))
    except AssetStoreError as exc:
        logger.exception("Error uploading video %s", video.filename)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or "Failed to upload video")

    return UploadVideoResponse(video_url=url)


@router.post("/generate-audio", response_model=GenerateAudioResponse, responses=_ERROR_RESPONSES)
async def generate_audio(
    payload: GenerateAudioRequest,
    supervisor: LifecycleSupervisor = Depends(get_supervisor),
    config: Settings = Depends(get_settings),
):
    try:
        request = build_generation_request(payload.video_url, payload.prompt, config.default_prompt)
    except CallerError as exc:
        logger.error("Invalid request: %s", exc)
        return error_response(status.HTTP_400_BAD_REQUEST, str(exc))

    outcome = await soundtrack_service.generate_soundtrack(request, supervisor, config)
    if not outcome.ok:
        return outcome_response(outcome)
    return GenerateAudioResponse(generated_video_url=outcome.artifact_url)


@router.get("/health", response_model=HealthResponse)
def health_check():
    return HealthResponse(status="OK")
