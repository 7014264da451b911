"""Payload normalizer. Bounds body sizes, derives the preview snippet and
assembles the :class:`IngestRecord`.

Normalization is pure data transformation: the same envelope, message
and locator always produce an identical record.
"""

from __future__ import annotations

import re

from .addresses import (
    SENDER_RESOLVERS,
    SenderStrategy,
    flatten_addresses,
    normalize_recipients,
)
from .config import NormalizerConfig
from .models import EnvelopeMetadata, IngestRecord, S3Locator
from .parser import ParsedMessage

SNIPPET_MAX_CHARS = 500

_TAG_PATTERN = re.compile(r"<[^>]+>")


def truncate_content(content: str | None, max_chars: int) -> str | None:
    """Cut *content* to at most *max_chars* characters; empty becomes ``None``."""
    if not content:
        return None
    if len(content) <= max_chars:
        return content
    return content[:max_chars]


def strip_html(html: str) -> str:
    """Replace every tag with a single space.  Entities are left as-is."""
    return _TAG_PATTERN.sub(" ", html)


def build_snippet(text: str | None, html: str | None) -> str | None:
    """Preview string from the plain-text body, else from the stripped HTML."""
    candidates = (text, strip_html(html) if html else None)
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()[:SNIPPET_MAX_CHARS]
    return None


class PayloadNormalizer:
    """Combine a parsed message with its envelope into an ingest record."""

    def __init__(
        self,
        config: NormalizerConfig,
        sender_strategy: SenderStrategy = SenderStrategy.CASCADE,
    ) -> None:
        self._config = config
        self._resolve_sender = SENDER_RESOLVERS[sender_strategy]

    def build_record(
        self,
        envelope: EnvelopeMetadata,
        message: ParsedMessage,
        *,
        locator: S3Locator,
        raw_size: int,
    ) -> IngestRecord:
        max_chars = self._config.max_chars
        cc = flatten_addresses(message.cc)

        subject = message.subject
        if subject is None:
            subject = envelope.common_headers_subject

        return IngestRecord(
            message_id=envelope.message_id,
            from_=self._resolve_sender(message, envelope),
            to=tuple(flatten_addresses(message.to)),
            cc=tuple(cc) if cc else None,
            subject=subject,
            text=truncate_content(message.text, max_chars),
            html=truncate_content(message.html, max_chars),
            # Snippet comes from the untruncated bodies.
            snippet=build_snippet(message.text, message.html),
            received_at=envelope.timestamp_iso,
            raw_size=raw_size,
            recipients=normalize_recipients(envelope.destination_addresses),
            mail_source=envelope.source_address,
            s3=locator,
        )
