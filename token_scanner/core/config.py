"""Configuration management for scanner settings.

Loads configuration from environment variables or a .env file.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

ENV_PREFIX = "SCANNER_"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(name, f"expected an integer, got {raw!r}")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str) -> list[str]:
    raw = os.getenv(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class ScannerConfig:
    """Settings for a scanner worker and its upstream providers."""

    # Server
    port: int = 3000
    cors_origin: str = "*"

    # Request handling
    concurrency_limit: int = 300
    request_timeout_ms: int = 3000
    retry_attempts: int = 1
    retry_delay_ms: int = 200
    max_tokens_per_request: int = 3000

    # DexScreener publishes 300/min; stay under it
    rate_limit: int = 290
    rate_window_ms: int = 60_000

    # Upstream endpoints
    dexscreener_base_url: str = "https://api.dexscreener.com/latest/dex"
    jupiter_base_url: str = "https://datapi.jup.ag/v1/assets"
    birdeye_base_url: str = "https://public-api.birdeye.so"
    birdeye_api_key: Optional[str] = None

    # API key authentication for /scan
    require_api_key: bool = True
    api_keys: list[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> "ScannerConfig":
        """Load configuration from environment variables."""
        defaults = cls()
        return cls(
            port=_env_int(f"{ENV_PREFIX}PORT", defaults.port),
            cors_origin=os.getenv(f"{ENV_PREFIX}CORS_ORIGIN", defaults.cors_origin),
            concurrency_limit=_env_int(
                f"{ENV_PREFIX}CONCURRENCY_LIMIT", defaults.concurrency_limit
            ),
            request_timeout_ms=_env_int(
                f"{ENV_PREFIX}REQUEST_TIMEOUT_MS", defaults.request_timeout_ms
            ),
            retry_attempts=_env_int(f"{ENV_PREFIX}RETRY_ATTEMPTS", defaults.retry_attempts),
            retry_delay_ms=_env_int(f"{ENV_PREFIX}RETRY_DELAY_MS", defaults.retry_delay_ms),
            max_tokens_per_request=_env_int(
                f"{ENV_PREFIX}MAX_TOKENS", defaults.max_tokens_per_request
            ),
            rate_limit=_env_int(f"{ENV_PREFIX}RATE_LIMIT", defaults.rate_limit),
            rate_window_ms=_env_int(f"{ENV_PREFIX}RATE_WINDOW_MS", defaults.rate_window_ms),
            dexscreener_base_url=os.getenv(
                "DEXSCREENER_BASE_URL", defaults.dexscreener_base_url
            ),
            jupiter_base_url=os.getenv("JUPITER_BASE_URL", defaults.jupiter_base_url),
            birdeye_base_url=os.getenv("BIRDEYE_BASE_URL", defaults.birdeye_base_url),
            birdeye_api_key=os.getenv("BIRDEYE_API_KEY") or None,
            require_api_key=_env_bool(
                f"{ENV_PREFIX}REQUIRE_API_KEY", defaults.require_api_key
            ),
            api_keys=_env_list(f"{ENV_PREFIX}API_KEYS"),
        )

    @classmethod
    def load(cls, env_file: Optional[Path] = None) -> "ScannerConfig":
        """
        Load configuration from .env file and environment variables.

        Args:
            env_file: Optional path to .env file. If not provided,
                      looks for .env in the project root.

        Returns:
            ScannerConfig instance with loaded values
        """
        if env_file:
            load_dotenv(env_file)
        else:
            project_root = Path(__file__).parent.parent.parent
            env_path = project_root / ".env"
            if env_path.exists():
                load_dotenv(env_path)

        return cls.from_env()

    def has_birdeye(self) -> bool:
        """Check if a Birdeye API key is configured."""
        return bool(self.birdeye_api_key)

    def summary(self) -> dict[str, int]:
        """Settings reported by the health endpoint."""
        return {
            "concurrencyLimit": self.concurrency_limit,
            "requestTimeout": self.request_timeout_ms,
            "retryAttempts": self.retry_attempts,
            "maxTokensPerRequest": self.max_tokens_per_request,
        }
