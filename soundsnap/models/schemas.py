from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class GenerateAudioRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    video_url: Optional[str] = Field(default=None, alias="videoUrl", description="URL of the stored source video")
    prompt: Optional[str] = Field(default=None, description="Description of the desired ambient audio")


class GenerateAudioResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    generated_video_url: str = Field(..., alias="generatedVideoUrl")


class UploadVideoResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    video_url: str = Field(..., alias="videoUrl")


class ErrorResponse(BaseModel):
    error: str
    details: Optional[Any] = None


class HealthResponse(BaseModel):
    status: str
