"""Exception hierarchy for the inbound email pipeline.

Fetch failures (``botocore`` errors, missing objects) and HTTP transport
failures (``httpx.TransportError``) are not wrapped; they reach the
invoking platform unchanged.
"""

from __future__ import annotations

ERROR_BODY_LIMIT = 500


class InboundEmailError(Exception):
    """Base class for errors raised by this package."""


class ConfigurationError(InboundEmailError):
    """A required setting is missing or invalid."""


class MessageParseError(InboundEmailError):
    """The stored object could not be parsed as a MIME message."""


class DeliveryError(InboundEmailError):
    """The ingestion backend answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body[:ERROR_BODY_LIMIT]
        super().__init__(
            f"Backend ingest failed with status {status_code}: {self.body}"
        )
