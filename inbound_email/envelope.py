"""Event adapter: extracts delivery metadata from an SES receipt event.

Only the first record of the event is used.  The SES ``mail`` object
carries the relay's view of the delivery (envelope sender, recipients,
timestamp) plus a summary of the common headers.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from .models import EnvelopeMetadata


class _SesModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True, "extra": "ignore"}


class SesCommonHeaders(_SesModel):
    subject: str | None = None
    from_: list[str] | None = Field(default=None, alias="from")


class SesMail(_SesModel):
    message_id: str
    timestamp: str
    source: str | None = None
    destination: list[str] = Field(default_factory=list)
    common_headers: SesCommonHeaders | None = None


class SesRecord(_SesModel):
    mail: SesMail


class SesEventRecord(BaseModel):
    model_config = {"extra": "ignore"}

    ses: SesRecord | None = None


class SesEvent(BaseModel):
    model_config = {"extra": "ignore"}

    records: list[SesEventRecord] | None = Field(default=None, alias="Records")


def extract_envelope(event: dict[str, Any]) -> EnvelopeMetadata | None:
    """Return the envelope of the event's first record.

    Returns ``None`` when the event has no records or the first record
    has no SES section.
    """
    parsed = SesEvent.model_validate(event)
    if not parsed.records or parsed.records[0].ses is None:
        return None

    mail = parsed.records[0].ses.mail
    headers = mail.common_headers
    common_from = headers.from_ if headers is not None else None

    return EnvelopeMetadata(
        message_id=mail.message_id,
        timestamp_iso=mail.timestamp,
        source_address=mail.source,
        destination_addresses=tuple(mail.destination),
        common_headers_subject=headers.subject if headers is not None else None,
        common_headers_from=tuple(common_from) if common_from is not None else None,
    )
