"""S3 access for the raw messages the relay stored.

All boto3 calls are wrapped with ``asyncio.to_thread()`` to avoid blocking.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import boto3
import structlog

from .config import S3Config
from .models import S3Locator

logger = structlog.get_logger()


@dataclass(frozen=True)
class FetchedObject:
    """Raw message bytes plus where they came from."""

    bucket: str
    key: str
    raw_bytes: bytes
    size: int

    @property
    def locator(self) -> S3Locator:
        return S3Locator(bucket=self.bucket, key=self.key)


class S3Store:
    """Download raw MIME messages by relay message id."""

    def __init__(self, config: S3Config) -> None:
        self._config = config
        self._client = None  # type: ignore[assignment]

    @property
    def bucket(self) -> str:
        return self._config.bucket

    async def start(self) -> None:
        """Create the boto3 S3 client."""
        kwargs: dict = {}
        if self._config.region:
            kwargs["region_name"] = self._config.region
        if self._config.endpoint_url:
            kwargs["endpoint_url"] = self._config.endpoint_url
        self._client = await asyncio.to_thread(boto3.client, "s3", **kwargs)
        logger.debug("s3_store_started", bucket=self._config.bucket)

    async def stop(self) -> None:
        """Clean up the boto3 client."""
        self._client = None
        logger.debug("s3_store_stopped")

    def object_key(self, message_id: str) -> str:
        """Key of the raw message: the configured prefix followed by the id."""
        return f"{self._config.prefix}{message_id}"

    async def fetch_raw_message(self, key: str) -> FetchedObject:
        """Download the object at *key*.

        A missing object or any store error propagates as the boto3
        exception.  ``size`` prefers the store's ``ContentLength``.
        """
        assert self._client is not None, "S3 client not started"
        response = await asyncio.to_thread(
            self._client.get_object,
            Bucket=self._config.bucket,
            Key=key,
        )
        body = response.get("Body")
        raw_bytes: bytes = await asyncio.to_thread(body.read) if body is not None else b""
        size = response.get("ContentLength")
        if size is None:
            size = len(raw_bytes)
        logger.debug("raw_message_downloaded", bucket=self._config.bucket, key=key, size=size)
        return FetchedObject(bucket=self._config.bucket, key=key, raw_bytes=raw_bytes, size=size)
