"""Wire and envelope models for the process-email pipeline.

All models are frozen: each is built once per invocation and never
mutated afterwards.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_serializer
from pydantic.alias_generators import to_camel


class CanonicalAddress(BaseModel):
    """A normalized mailbox: lower-cased address plus optional display name.

    Two instances are equal when their addresses are equal; the display
    name does not take part in comparisons.
    """

    model_config = {"frozen": True}

    address: str = Field(min_length=1, description="Lower-cased, trimmed email address")
    name: str | None = Field(default=None, description="Trimmed display name, if any")

    @field_validator("address", mode="before")
    @classmethod
    def _lower(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("name", mode="before")
    @classmethod
    def _trim(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @model_serializer(mode="wrap")
    def _omit_absent_name(self, handler: Any) -> dict[str, Any]:
        data = handler(self)
        if data.get("name") is None:
            data.pop("name", None)
        return data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CanonicalAddress):
            return NotImplemented
        return self.address == other.address

    def __hash__(self) -> int:
        return hash(self.address)


class S3Locator(BaseModel):
    """Where the raw message lives in the object store."""

    model_config = {"frozen": True}

    bucket: str
    key: str


class EnvelopeMetadata(BaseModel):
    """Delivery-time facts reported by the mail relay, distinct from the
    message's own headers."""

    model_config = {"frozen": True}

    message_id: str = Field(description="Relay-assigned message id (also the object name)")
    timestamp_iso: str = Field(description="Delivery timestamp, ISO-8601")
    source_address: str | None = Field(default=None, description="Envelope MAIL FROM")
    destination_addresses: tuple[str, ...] = Field(
        default=(),
        description="Envelope RCPT TO addresses, in relay order",
    )
    common_headers_subject: str | None = None
    common_headers_from: tuple[str, ...] | None = None


class IngestRecord(BaseModel):
    """Normalized record posted to the ingestion backend.

    Serialize with ``model_dump_json(by_alias=True)`` to get the camelCase
    wire form.  ``cc`` and ``mailSource`` are left out of the document
    when absent; every other optional field is sent as ``null``.
    """

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    message_id: str
    from_: CanonicalAddress = Field(alias="from")
    to: tuple[CanonicalAddress, ...] = ()
    cc: tuple[CanonicalAddress, ...] | None = None
    subject: str | None = None
    text: str | None = None
    html: str | None = None
    snippet: str | None = None
    received_at: str
    raw_size: int
    recipients: tuple[str, ...] = ()
    mail_source: str | None = None
    s3: S3Locator

    @model_serializer(mode="wrap")
    def _omit_absent_optionals(self, handler: Any) -> dict[str, Any]:
        data = handler(self)
        for key in ("cc", "mailSource", "mail_source"):
            if key in data and data[key] is None:
                del data[key]
        return data
