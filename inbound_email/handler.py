"""process-email: fetch the raw message an SES receipt rule stored in S3,
normalize it and forward the record to the ingestion backend.

One invocation handles one event, strictly in order::

    envelope → S3 fetch → MIME parse → sender/recipients → record → POST

Every failure is logged with its context and re-raised so the invoking
platform's retry and redrive policy applies.
"""

from __future__ import annotations

import asyncio
import functools
from typing import Any

import structlog

from .config import ProcessEmailConfig, load_config
from .envelope import extract_envelope
from .ingestion_client import IngestionClient
from .logging import bind_invocation, setup_logging
from .models import IngestRecord
from .normalizer import PayloadNormalizer
from .parser import MimeParser
from .s3 import S3Store

logger = structlog.get_logger()


class EmailProcessor:
    """Runs the pipeline for a single SES event."""

    def __init__(self, config: ProcessEmailConfig) -> None:
        self._config = config
        self._s3 = S3Store(config.s3)
        self._parser = MimeParser()
        self._normalizer = PayloadNormalizer(config.normalizer, config.sender_strategy)
        self._ingestion_client = IngestionClient(config.backend)

    async def process_event(self, event: dict[str, Any]) -> IngestRecord | None:
        """Process the first record of *event*.

        Returns the delivered record, or ``None`` when the event carries
        no SES record.
        """
        message_id: str | None = None
        object_key: str | None = None
        try:
            envelope = extract_envelope(event)
            if envelope is None:
                logger.warning("process_email_no_record", event=event)
                return None

            message_id = envelope.message_id
            object_key = self._s3.object_key(message_id)

            await self._s3.start()
            await self._ingestion_client.start()

            fetched = await self._s3.fetch_raw_message(object_key)
            parsed = self._parser.parse(fetched.raw_bytes)
            record = self._normalizer.build_record(
                envelope,
                parsed,
                locator=fetched.locator,
                raw_size=fetched.size,
            )
            await self._ingestion_client.submit(record)
        except Exception as exc:
            logger.exception(
                "process_email_failed",
                message_id=message_id,
                bucket=self._s3.bucket,
                object_key=object_key,
                error=str(exc),
            )
            raise
        finally:
            await self._ingestion_client.stop()
            await self._s3.stop()

        logger.info(
            "process_email_forwarded",
            message_id=message_id,
            object_key=object_key,
            size=fetched.size,
            recipients=list(envelope.destination_addresses),
            source=envelope.source_address,
            status="forwarded",
        )
        return record


@functools.lru_cache(maxsize=1)
def get_processor() -> EmailProcessor:
    """Build the processor once per process from the environment.

    Raises :class:`~inbound_email.errors.ConfigurationError` before any
    I/O when a required setting is missing.
    """
    config = load_config()
    setup_logging(json=config.log_json, level=config.log_level)
    return EmailProcessor(config)


def handler(event: dict[str, Any], context: object = None) -> None:
    """AWS Lambda entry point."""
    processor = get_processor()
    bind_invocation(context)
    asyncio.run(processor.process_event(event))
