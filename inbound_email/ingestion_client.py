"""Async HTTP client for the email ingestion backend."""

from __future__ import annotations

import httpx
import structlog

from .config import BackendConfig
from .errors import DeliveryError
from .models import IngestRecord

logger = structlog.get_logger()

TOKEN_HEADER = "x-email-ingest-token"


class IngestionClient:
    """Delivers :class:`IngestRecord` payloads to the ingestion backend.

    Each record is sent as one POST.  There is no retry here: a failed
    delivery fails the invocation and the platform decides what to do.
    """

    def __init__(self, config: BackendConfig) -> None:
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def start(self) -> None:
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self._config.timeout_seconds),
        )
        logger.debug("ingestion_client_started", url=self._config.url)

    async def stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.debug("ingestion_client_stopped")

    async def submit(self, record: IngestRecord) -> None:
        """POST *record* to the ingestion backend.

        Raises :class:`DeliveryError` on non-2xx responses; transport
        errors propagate as :class:`httpx.TransportError`.
        """
        if self._client is None:
            raise AssertionError("Client not started")

        response = await self._client.post(
            self._config.url,
            content=record.model_dump_json(by_alias=True),
            headers={
                "Content-Type": "application/json",
                TOKEN_HEADER: self._config.token.get_secret_value(),
            },
        )
        if not response.is_success:
            raise DeliveryError(response.status_code, response.text)
        logger.debug(
            "record_submitted",
            message_id=record.message_id,
            status_code=response.status_code,
        )
