"""Pipeline configuration loaded from environment variables.

Settings are read once when the process starts and are immutable
afterwards; the pipeline receives the resulting value explicitly.
"""

from __future__ import annotations

import math

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings

from .addresses import SenderStrategy
from .errors import ConfigurationError

DEFAULT_BODY_MAX_CHARS = 20000


class S3Config(BaseSettings):
    """Object-store location of the raw messages written by the relay."""

    model_config = {"env_prefix": "EMAIL_", "frozen": True}

    bucket: str = Field(min_length=1, description="S3 bucket holding raw messages")
    prefix: str = Field(
        default="raw/",
        description="Key prefix; the object key is prefix + message id",
    )
    region: str | None = Field(
        default=None,
        description="AWS region (defaults to the boto3 credential chain)",
    )
    endpoint_url: str | None = Field(
        default=None,
        description="Custom S3 endpoint URL (e.g. for MinIO)",
    )


class BackendConfig(BaseSettings):
    """Ingestion backend the normalized record is posted to."""

    model_config = {"env_prefix": "BACKEND_INGEST_", "frozen": True}

    url: str = Field(min_length=1, description="Full URL of the ingest endpoint")
    token: SecretStr = Field(description="Shared secret sent as x-email-ingest-token")
    timeout_seconds: float = Field(default=30.0, description="HTTP request timeout")

    @field_validator("token")
    @classmethod
    def _token_not_empty(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value():
            raise ValueError("token must not be empty")
        return value


class NormalizerConfig(BaseSettings):
    """Payload limits applied while building the ingest record."""

    model_config = {"env_prefix": "EMAIL_BODY_", "frozen": True}

    max_chars: int = Field(
        default=DEFAULT_BODY_MAX_CHARS,
        description="Maximum characters kept from the text and HTML bodies",
    )

    @field_validator("max_chars", mode="before")
    @classmethod
    def _fallback_to_default(cls, value: object) -> int:
        # Anything that is not a finite number >= 1 silently means "default".
        if isinstance(value, bool):
            return DEFAULT_BODY_MAX_CHARS
        try:
            parsed = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return DEFAULT_BODY_MAX_CHARS
        if not math.isfinite(parsed) or parsed < 1:
            return DEFAULT_BODY_MAX_CHARS
        return int(parsed)


class ProcessEmailConfig(BaseSettings):
    """Root configuration for the process-email function.

    Nested configs are populated from their own env-var prefixes.
    """

    model_config = {"env_prefix": "PROCESS_EMAIL_", "frozen": True}

    log_level: str = Field(default="INFO", description="Root log level name")
    log_json: bool = Field(default=True, description="Emit JSON log lines")
    sender_strategy: SenderStrategy = Field(
        default=SenderStrategy.CASCADE,
        description="Sender resolution rules: cascade or from_only",
    )

    s3: S3Config = Field(default_factory=S3Config)
    backend: BackendConfig = Field(default_factory=BackendConfig)
    normalizer: NormalizerConfig = Field(default_factory=NormalizerConfig)


def load_config() -> ProcessEmailConfig:
    """Build the configuration from the environment.

    Raises :class:`ConfigurationError` when a required setting is missing.
    """
    try:
        return ProcessEmailConfig()
    except ValidationError as exc:
        fields = ", ".join(
            ".".join(str(part) for part in err["loc"]) for err in exc.errors()
        )
        raise ConfigurationError(
            f"{exc.title} is missing or has invalid settings: {fields}"
        ) from exc
