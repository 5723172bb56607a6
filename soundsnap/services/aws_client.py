import logging
from typing import Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from soundsnap.config import Settings, settings
from soundsnap.errors import AssetStoreError

logger = logging.getLogger(__name__)

_s3_client = None


def create_s3_client(config: Settings = settings):
    session = boto3.Session(
        aws_access_key_id=config.aws_access_key_id,
        aws_secret_access_key=config.aws_secret_access_key,
        aws_session_token=config.aws_session_token,
        region_name=config.aws_region,
    )
    try:
        client = session.client("s3", config=BotoConfig(retries={"max_attempts": 5, "mode": "adaptive"}))
    except (ClientError, BotoCoreError) as exc:
        logger.exception("Failed to create s3 client")
        raise AssetStoreError("Unable to create s3 client.") from exc
    return client


def get_s3_client(config: Optional[Settings] = None):
    global _s3_client
    if _s3_client is None:
        _s3_client = create_s3_client(config or settings)
    return _s3_client
