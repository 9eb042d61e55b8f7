# peticao/services/storage/s3_service.py
import asyncio
import logging
from typing import Any
from urllib.parse import quote

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError
from botocore.exceptions import ClientError
from botocore.exceptions import ConnectionClosedError
from botocore.exceptions import ConnectTimeoutError
from botocore.exceptions import EndpointConnectionError
from botocore.exceptions import ReadTimeoutError

from peticao.core.config import settings
from peticao.core.exceptions import ConfigurationError
from peticao.services.retry import storage_error

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError, ConnectionClosedError)


def create_s3_client() -> Any:
    """Build an S3 client from settings, failing fast when configuration is missing."""
    if not all([settings.aws_access_key_id, settings.aws_secret_access_key, settings.s3_bucket_name, settings.aws_region]):
        logger.error("AWS S3 credentials or bucket name/region not configured.")
        raise ConfigurationError("S3 storage is not configured (AWS credentials, region and bucket are required)")
    session = boto3.session.Session(
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        region_name=settings.aws_region,
    )
    client = session.client("s3", config=Config(signature_version="s3v4"))
    logger.info(f"S3 client initialized for bucket: {settings.s3_bucket_name} in region: {settings.aws_region}")
    return client


class S3ObjectStore:
    """Object store backed by a single S3 bucket.

    boto3 is blocking, so every call runs in a worker thread.
    """

    def __init__(self, client: Any | None = None, bucket: str | None = None, public_base_url: str | None = None):
        self._s3 = client if client is not None else create_s3_client()
        self._bucket = bucket or settings.s3_bucket_name
        base = public_base_url or settings.s3_public_base_url
        self._public_base_url = (base or f"https://{self._bucket}.s3.{settings.aws_region}.amazonaws.com").rstrip("/")

    def _call(self, operation: str, description: str, **params: Any) -> Any:
        try:
            return getattr(self._s3, operation)(Bucket=self._bucket, **params)
        except ClientError as e:
            error = e.response.get("Error", {})
            status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            logger.error(f"S3 {operation} failed for {description}: {e}")
            raise storage_error(
                f"{description} failed: {error.get('Message') or e}",
                code=error.get("Code"),
                status_code=status,
            ) from e
        except _TRANSPORT_ERRORS as e:
            logger.warning(f"S3 {operation} transport error for {description}: {e}")
            raise storage_error(f"{description} failed: network error ({e})", transient=True) from e
        except BotoCoreError as e:
            logger.error(f"S3 {operation} failed for {description}: {e}", exc_info=True)
            raise storage_error(f"{description} failed: {e}") from e

    async def put(self, key: str, data: bytes, *, content_type: str, overwrite: bool = False) -> None:
        params: dict[str, Any] = {
            "Key": key,
            "Body": data,
            "ContentType": content_type,
            "CacheControl": "max-age=3600",
        }
        if not overwrite:
            # Conditional write: S3 answers 412 PreconditionFailed when the key exists
            params["IfNoneMatch"] = "*"
        await asyncio.to_thread(self._call, "put_object", f"Upload of {key}", **params)
        logger.info(f"Stored S3 object: {key} ({len(data)} bytes)")

    def get_public_url(self, key: str) -> str:
        return f"{self._public_base_url}/{quote(key, safe='/')}"

    async def remove(self, keys: list[str]) -> None:
        if not keys:
            return
        response = await asyncio.to_thread(
            self._call,
            "delete_objects",
            f"Removal of {', '.join(keys)}",
            Delete={"Objects": [{"Key": key} for key in keys], "Quiet": True},
        )
        errors = (response or {}).get("Errors") or []
        if errors:
            first = errors[0]
            raise storage_error(
                f"Removal of {first.get('Key')} failed: {first.get('Message')}",
                code=first.get("Code"),
            )
        logger.info(f"Removed S3 objects: {keys}")
