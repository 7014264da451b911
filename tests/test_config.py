"""Tests for inbound_email.config."""

from __future__ import annotations

import pytest
from pydantic import SecretStr

from inbound_email.addresses import SenderStrategy
from inbound_email.config import (
    DEFAULT_BODY_MAX_CHARS,
    BackendConfig,
    NormalizerConfig,
    ProcessEmailConfig,
    S3Config,
    load_config,
)
from inbound_email.errors import ConfigurationError


@pytest.fixture
def required_env(monkeypatch):
    monkeypatch.setenv("EMAIL_BUCKET", "env-bucket")
    monkeypatch.setenv("BACKEND_INGEST_URL", "https://backend.test/ingest")
    monkeypatch.setenv("BACKEND_INGEST_TOKEN", "s3cret")
    monkeypatch.delenv("EMAIL_PREFIX", raising=False)
    monkeypatch.delenv("EMAIL_BODY_MAX_CHARS", raising=False)


class TestS3Config:
    def test_defaults(self):
        cfg = S3Config(bucket="my-bucket")
        assert cfg.prefix == "raw/"
        assert cfg.region is None
        assert cfg.endpoint_url is None

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("EMAIL_BUCKET", "env-bucket")
        monkeypatch.setenv("EMAIL_PREFIX", "inbound/")
        cfg = S3Config()
        assert cfg.bucket == "env-bucket"
        assert cfg.prefix == "inbound/"


class TestBackendConfig:
    def test_token_is_secret(self):
        cfg = BackendConfig(url="https://x", token="hunter2")
        assert isinstance(cfg.token, SecretStr)
        assert "hunter2" not in repr(cfg)
        assert cfg.token.get_secret_value() == "hunter2"

    def test_empty_token_rejected(self):
        with pytest.raises(ValueError):
            BackendConfig(url="https://x", token="")


class TestNormalizerConfig:
    def test_default(self, monkeypatch):
        monkeypatch.delenv("EMAIL_BODY_MAX_CHARS", raising=False)
        assert NormalizerConfig().max_chars == DEFAULT_BODY_MAX_CHARS == 20000

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("5000", 5000),
            ("123.9", 123),
            ("0", 20000),
            ("-10", 20000),
            ("abc", 20000),
            ("", 20000),
            ("NaN", 20000),
            ("Infinity", 20000),
        ],
    )
    def test_env_values(self, monkeypatch, raw, expected):
        monkeypatch.setenv("EMAIL_BODY_MAX_CHARS", raw)
        assert NormalizerConfig().max_chars == expected

    def test_direct_value(self):
        assert NormalizerConfig(max_chars=10).max_chars == 10
        assert NormalizerConfig(max_chars=-1).max_chars == 20000


class TestLoadConfig:
    def test_loads_from_env(self, required_env):
        cfg = load_config()
        assert isinstance(cfg, ProcessEmailConfig)
        assert cfg.s3.bucket == "env-bucket"
        assert cfg.s3.prefix == "raw/"
        assert cfg.backend.url == "https://backend.test/ingest"
        assert cfg.backend.token.get_secret_value() == "s3cret"
        assert cfg.normalizer.max_chars == 20000
        assert cfg.sender_strategy is SenderStrategy.CASCADE
        assert cfg.log_json is True

    def test_sender_strategy_from_env(self, required_env, monkeypatch):
        monkeypatch.setenv("PROCESS_EMAIL_SENDER_STRATEGY", "from_only")
        assert load_config().sender_strategy is SenderStrategy.FROM_ONLY

    @pytest.mark.parametrize(
        "missing", ["EMAIL_BUCKET", "BACKEND_INGEST_URL", "BACKEND_INGEST_TOKEN"]
    )
    def test_missing_required_setting(self, required_env, monkeypatch, missing):
        monkeypatch.delenv(missing)
        with pytest.raises(ConfigurationError):
            load_config()

    def test_config_is_frozen(self, required_env):
        cfg = load_config()
        with pytest.raises(ValueError):
            cfg.log_level = "DEBUG"
