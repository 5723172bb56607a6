import asyncio
import logging
import uuid
from typing import Optional, Protocol

import httpx
from botocore.exceptions import BotoCoreError, ClientError

from soundsnap.config import Settings, settings
from soundsnap.errors import AssetStoreError, GenerationServiceError
from soundsnap.services.aws_client import get_s3_client
from soundsnap.services.fal_client import auth_headers, get_http_client, request_json

logger = logging.getLogger(__name__)


class AssetStore(Protocol):
    async def upload(self, data: bytes, content_type: str, file_name: str) -> str:
        ...


class FalAssetStore:
    """Stores uploads on fal's CDN so the generation service can read them."""

    def __init__(
        self,
        api_key: Optional[str],
        rest_url: str = "https://rest.alpha.fal.ai",
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.rest_url = rest_url.rstrip("/")
        self._api_key = api_key
        self._client = http_client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client if self._client is not None else get_http_client()

    async def upload(self, data: bytes, content_type: str, file_name: str) -> str:
        try:
            grant = await request_json(
                self.client,
                "POST",
                f"{self.rest_url}/storage/upload/initiate",
                json={"content_type": content_type, "file_name": file_name},
                headers=auth_headers(self._api_key),
            )
        except GenerationServiceError as exc:
            raise AssetStoreError(f"Failed to initiate upload: {exc}") from exc

        upload_url = grant.get("upload_url") if isinstance(grant, dict) else None
        file_url = grant.get("file_url") if isinstance(grant, dict) else None
        if not upload_url or not file_url:
            raise AssetStoreError("Storage did not return an upload URL.")

        try:
            response = await self.client.put(upload_url, content=data, headers={"Content-Type": content_type})
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise AssetStoreError(f"Failed to upload {file_name}: {exc}") from exc

        return file_url


class S3AssetStore:
    """Stores uploads in an S3 bucket and hands out presigned download URLs."""

    def __init__(self, bucket: str, prefix: str = "", url_ttl_seconds: int = 3600, s3_client=None):
        if not bucket:
            raise AssetStoreError("S3 asset store requires a bucket name.")
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        self.url_ttl_seconds = url_ttl_seconds
        self._client = s3_client

    @property
    def client(self):
        return self._client if self._client is not None else get_s3_client()

    def object_key(self, file_name: str) -> str:
        name = file_name.rsplit("/", 1)[-1] or "video"
        key = f"{uuid.uuid4()}/{name}"
        return f"{self.prefix}/{key}" if self.prefix else key

    def _upload_sync(self, data: bytes, content_type: str, file_name: str) -> str:
        key = self.object_key(file_name)
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
            url = self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=self.url_ttl_seconds,
            )
        except (ClientError, BotoCoreError) as exc:
            logger.exception("Failed to store %s in s3://%s", key, self.bucket)
            raise AssetStoreError(f"Unable to store {file_name}.") from exc
        return url

    async def upload(self, data: bytes, content_type: str, file_name: str) -> str:
        return await asyncio.to_thread(self._upload_sync, data, content_type, file_name)


def build_asset_store(config: Settings = settings) -> AssetStore:
    if config.asset_store == "s3":
        return S3AssetStore(
            bucket=config.s3_bucket or "",
            prefix=config.s3_prefix,
            url_ttl_seconds=config.s3_presigned_url_ttl_seconds,
        )
    return FalAssetStore(api_key=config.fal_key, rest_url=config.fal_rest_url)
