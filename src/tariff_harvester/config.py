"""Configuration handling for the tariff harvester."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

DEFAULT_BASE_URL = "https://www.vodafone.co.uk"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass
class HarvesterConfig:
    """Configuration for harvester, journey client and API server.

    Configuration can be loaded from:
    1. Environment variables (TARIFF_BASE_URL, TARIFF_TIMEOUT, ...)
    2. Explicit parameters

    The base URL only needs overriding when pointing at a mirror or a test
    double; the upstream URL shapes underneath it are fixed.
    """

    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0
    probe_delay: float = 0.7
    host: str = "127.0.0.1"
    port: int = 5000
    log_level: str = "INFO"

    @property
    def origin(self) -> str:
        """Scheme + host (+ port if non-default) of the target site."""
        parsed = urlparse(self.base_url)
        port = parsed.port
        if port and port not in (80, 443):
            return f"{parsed.scheme}://{parsed.hostname}:{port}"
        return f"{parsed.scheme}://{parsed.hostname}"

    @property
    def hostname(self) -> str:
        return urlparse(self.base_url).hostname or ""

    @property
    def listing_url(self) -> str:
        """Pay-monthly phone listing page, used as Referer and relative-URL root."""
        return f"{self.origin}/mobile/phones/pay-monthly-contracts"

    @property
    def digital_api_url(self) -> str:
        """Root of the digital v2 API that the journey endpoints hang off."""
        return f"{self.listing_url}/api/digital/v2"

    @classmethod
    def from_env(cls) -> "HarvesterConfig":
        """Load configuration from environment variables.

        Environment variables:
            TARIFF_BASE_URL: Target site origin (default https://www.vodafone.co.uk)
            TARIFF_TIMEOUT: Request timeout in seconds
            TARIFF_PROBE_DELAY: Pause between auth-flow probes in seconds
            TARIFF_HOST: Address the API server binds to
            TARIFF_PORT: Port the API server listens on
            TARIFF_LOG_LEVEL: Logging level name

        Returns:
            HarvesterConfig instance
        """
        return cls(
            base_url=os.environ.get("TARIFF_BASE_URL", DEFAULT_BASE_URL),
            timeout=float(os.environ.get("TARIFF_TIMEOUT", "30")),
            probe_delay=float(os.environ.get("TARIFF_PROBE_DELAY", "0.7")),
            host=os.environ.get("TARIFF_HOST", "127.0.0.1"),
            port=int(os.environ.get("TARIFF_PORT", "5000")),
            log_level=os.environ.get("TARIFF_LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> list[str]:
        """Validate configuration, returning a list of problems.

        Returns:
            List of human-readable problems, empty when the config is usable.
        """
        problems = []
        parsed = urlparse(self.base_url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            problems.append(f"base_url (TARIFF_BASE_URL) is not an http(s) URL: {self.base_url!r}")
        if self.timeout <= 0:
            problems.append("timeout (TARIFF_TIMEOUT) must be positive")
        if self.probe_delay < 0:
            problems.append("probe_delay (TARIFF_PROBE_DELAY) must not be negative")
        if logging.getLevelName(self.log_level) == f"Level {self.log_level}":
            problems.append(f"log_level (TARIFF_LOG_LEVEL) is not a logging level: {self.log_level!r}")
        return problems


def load_env() -> None:
    """Load environment from local.env if present."""
    for parent in [Path.cwd()] + list(Path.cwd().parents)[:3]:
        env_file = parent / "local.env"
        if env_file.exists():
            with open(env_file) as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith("#") and "=" in line:
                        key, _, value = line.partition("=")
                        value = value.strip().strip('"').strip("'")
                        os.environ.setdefault(key.strip(), value)
            break


def configure_logging(level: str = "INFO") -> None:
    """Set up root logging and quiet the HTTP client libraries."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
