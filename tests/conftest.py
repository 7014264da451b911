"""Shared test fixtures for the inbound_email test suite."""

from __future__ import annotations

import logging
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import pytest
import structlog

from inbound_email.config import (
    BackendConfig,
    NormalizerConfig,
    ProcessEmailConfig,
    S3Config,
)
from inbound_email.models import EnvelopeMetadata

INGEST_URL = "https://backend.test/api/email/ingest"


@pytest.fixture
def s3_config() -> S3Config:
    return S3Config(bucket="test-bucket", prefix="raw/", region="us-east-1")


@pytest.fixture
def backend_config() -> BackendConfig:
    return BackendConfig(url=INGEST_URL, token="test-token", timeout_seconds=5.0)


@pytest.fixture
def normalizer_config() -> NormalizerConfig:
    return NormalizerConfig(max_chars=20000)


@pytest.fixture
def process_config(
    s3_config: S3Config,
    backend_config: BackendConfig,
    normalizer_config: NormalizerConfig,
) -> ProcessEmailConfig:
    return ProcessEmailConfig(
        s3=s3_config,
        backend=backend_config,
        normalizer=normalizer_config,
    )


# ------------------------------------------------------------------
# SES events
# ------------------------------------------------------------------


def make_ses_event(
    *,
    message_id: str = "abc123",
    timestamp: str = "2025-06-01T12:00:00.000Z",
    source: str | None = "Bounce@Relay.Example.com",
    destination: list[str] | None = None,
    subject: str | None = "Test Subject",
    common_from: list[str] | None = None,
) -> dict:
    """Build an SES receipt event with a single record."""
    common_headers: dict = {"subject": subject}
    if common_from is not None:
        common_headers["from"] = common_from
    mail: dict = {
        "messageId": message_id,
        "timestamp": timestamp,
        "destination": destination if destination is not None else ["Inbox@Example.com"],
        "commonHeaders": common_headers,
    }
    if source is not None:
        mail["source"] = source
    return {
        "Records": [
            {
                "eventSource": "aws:ses",
                "eventVersion": "1.0",
                "ses": {"mail": mail, "receipt": {"action": {"type": "Lambda"}}},
            }
        ]
    }


def make_envelope(**overrides) -> EnvelopeMetadata:
    defaults = dict(
        message_id="abc123",
        timestamp_iso="2025-06-01T12:00:00.000Z",
        source_address="bounce@relay.example.com",
        destination_addresses=("inbox@example.com",),
    )
    defaults.update(overrides)
    return EnvelopeMetadata(**defaults)


# ------------------------------------------------------------------
# Sample EML builders
# ------------------------------------------------------------------


def _build_plain_email(
    *,
    subject: str | None = "Test Subject",
    from_addr: str | None = "Sender <sender@example.com>",
    to_addr: str = "recipient@example.com",
    body: str = "Hello, World!",
    cc: str | None = None,
    reply_to: str | None = None,
    extra_headers: list[tuple[str, str]] | None = None,
) -> bytes:
    """Build a simple plain-text email as raw bytes."""
    msg = MIMEText(body, "plain")
    if subject is not None:
        msg["Subject"] = subject
    if from_addr is not None:
        msg["From"] = from_addr
    msg["To"] = to_addr
    msg["Message-ID"] = "<test-001@example.com>"
    msg["Date"] = "Mon, 01 Jun 2025 12:00:00 +0000"
    if cc:
        msg["Cc"] = cc
    if reply_to:
        msg["Reply-To"] = reply_to
    for name, value in extra_headers or []:
        msg[name] = value
    return msg.as_bytes()


def _build_html_email(*, body_html: str = "<p>Hello</p>") -> bytes:
    msg = MIMEText(body_html, "html")
    msg["Subject"] = "HTML Email"
    msg["From"] = "sender@example.com"
    msg["To"] = "recipient@example.com"
    msg["Message-ID"] = "<html-001@example.com>"
    msg["Date"] = "Mon, 01 Jun 2025 12:00:00 +0000"
    return msg.as_bytes()


def _build_multipart_email(
    *,
    body_text: str = "Plain body",
    body_html: str = "<p>HTML body</p>",
    attachments: list[tuple[str, str, bytes]] | None = None,
) -> bytes:
    """Build a multipart email with text, HTML, and optional attachments."""
    msg = MIMEMultipart("mixed")
    msg["Subject"] = "Multipart Email"
    msg["From"] = "sender@example.com"
    msg["To"] = "recipient@example.com"
    msg["Message-ID"] = "<multi-001@example.com>"
    msg["Date"] = "Mon, 01 Jun 2025 12:00:00 +0000"

    alt = MIMEMultipart("alternative")
    alt.attach(MIMEText(body_text, "plain"))
    alt.attach(MIMEText(body_html, "html"))
    msg.attach(alt)

    for filename, content_type, payload in attachments or []:
        maintype, subtype = content_type.split("/", 1)
        part = MIMEBase(maintype, subtype)
        part.set_payload(payload)
        encoders.encode_base64(part)
        part.add_header("Content-Disposition", "attachment", filename=filename)
        msg.attach(part)

    return msg.as_bytes()


@pytest.fixture
def plain_eml_bytes() -> bytes:
    return _build_plain_email()


@pytest.fixture
def html_eml_bytes() -> bytes:
    return _build_html_email()


@pytest.fixture
def multipart_eml_bytes() -> bytes:
    return _build_multipart_email(
        attachments=[("notes.txt", "text/plain", b"attached text")],
    )


@pytest.fixture(autouse=True)
def _reset_logging():
    """Undo any structlog / root-logger configuration a test applied."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    root.handlers[:] = handlers
    root.setLevel(level)
