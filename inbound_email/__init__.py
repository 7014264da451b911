"""Inbound email normalization for SES → S3 → Lambda delivery.

Public API re-exported here for convenience::

    from inbound_email import EmailProcessor, load_config

The Lambda entry point is ``inbound_email.handler.handler``.
"""

from .addresses import (
    AddressGroup,
    RawAddress,
    SenderStrategy,
    flatten_addresses,
    resolve_sender,
    resolve_sender_from_only,
)
from .config import (
    BackendConfig,
    NormalizerConfig,
    ProcessEmailConfig,
    S3Config,
    load_config,
)
from .envelope import extract_envelope
from .errors import (
    ConfigurationError,
    DeliveryError,
    InboundEmailError,
    MessageParseError,
)
from .handler import EmailProcessor
from .ingestion_client import IngestionClient
from .logging import setup_logging
from .models import CanonicalAddress, EnvelopeMetadata, IngestRecord, S3Locator
from .normalizer import PayloadNormalizer, build_snippet, strip_html, truncate_content
from .parser import MimeParser, ParsedMessage
from .s3 import FetchedObject, S3Store

__all__ = [
    "AddressGroup",
    "BackendConfig",
    "CanonicalAddress",
    "ConfigurationError",
    "DeliveryError",
    "EmailProcessor",
    "EnvelopeMetadata",
    "FetchedObject",
    "InboundEmailError",
    "IngestRecord",
    "IngestionClient",
    "MessageParseError",
    "MimeParser",
    "NormalizerConfig",
    "ParsedMessage",
    "PayloadNormalizer",
    "ProcessEmailConfig",
    "RawAddress",
    "S3Config",
    "S3Locator",
    "S3Store",
    "SenderStrategy",
    "build_snippet",
    "extract_envelope",
    "flatten_addresses",
    "load_config",
    "resolve_sender",
    "resolve_sender_from_only",
    "setup_logging",
    "strip_html",
    "truncate_content",
]
