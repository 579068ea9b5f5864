"""Tests for configuration loading."""

import os

import pytest

from token_scanner.core.config import ScannerConfig
from token_scanner.core.exceptions import ConfigurationError


class TestScannerConfig:
    """Tests for ScannerConfig."""

    def test_defaults(self, monkeypatch):
        for name in ("SCANNER_CONCURRENCY_LIMIT", "SCANNER_API_KEYS", "BIRDEYE_API_KEY"):
            monkeypatch.delenv(name, raising=False)

        config = ScannerConfig.from_env()

        assert config.concurrency_limit == 300
        assert config.request_timeout_ms == 3000
        assert config.retry_attempts == 1
        assert config.retry_delay_ms == 200
        assert config.max_tokens_per_request == 3000
        assert config.rate_limit == 290
        assert config.rate_window_ms == 60_000
        assert config.api_keys == []
        assert not config.has_birdeye()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SCANNER_CONCURRENCY_LIMIT", "50")
        monkeypatch.setenv("SCANNER_MAX_TOKENS", "500")
        monkeypatch.setenv("SCANNER_API_KEYS", "alpha, beta,,")
        monkeypatch.setenv("SCANNER_REQUIRE_API_KEY", "false")
        monkeypatch.setenv("BIRDEYE_API_KEY", "bird")

        config = ScannerConfig.from_env()

        assert config.concurrency_limit == 50
        assert config.max_tokens_per_request == 500
        assert config.api_keys == ["alpha", "beta"]
        assert config.require_api_key is False
        assert config.has_birdeye()

    def test_bad_integer(self, monkeypatch):
        monkeypatch.setenv("SCANNER_RETRY_ATTEMPTS", "three")

        with pytest.raises(ConfigurationError) as exc_info:
            ScannerConfig.from_env()
        assert exc_info.value.config_key == "SCANNER_RETRY_ATTEMPTS"

    def test_load_env_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("SCANNER_RATE_LIMIT", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("SCANNER_RATE_LIMIT=120\n", encoding="utf-8")

        try:
            config = ScannerConfig.load(env_file)
        finally:
            # load_dotenv writes straight into os.environ
            os.environ.pop("SCANNER_RATE_LIMIT", None)

        assert config.rate_limit == 120

    def test_summary(self):
        assert ScannerConfig(max_tokens_per_request=500).summary()["maxTokensPerRequest"] == 500
