"""
Image storage on S3 for creature portraits and scanned letters.
"""
import asyncio
import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

import core.config as config
from penpal.errors import StorageError

logger = logging.getLogger(__name__)

_s3_client = None


def _get_s3_client():
    global _s3_client
    if _s3_client is None:
        _s3_client = boto3.client("s3", region_name=config.AWS_REGION)
    return _s3_client


class S3ImageStore:
    """``BlobStorePort`` writing public-read objects to one bucket."""

    def __init__(self, bucket: Optional[str] = None, region: Optional[str] = None, client=None):
        self.bucket = bucket or config.LETTER_IMAGES_BUCKET
        self.region = region or config.AWS_REGION
        self._client = client

    def public_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    async def upload_image(self, *, key: str, data: bytes, content_type: str) -> str:
        client = self._client or _get_s3_client()
        try:
            await asyncio.to_thread(
                client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to upload {key} to bucket {self.bucket}: {str(e)}")
            raise StorageError() from e

        logger.info(f"Uploaded {key} ({len(data)} bytes) to bucket {self.bucket}")
        return self.public_url(key)
