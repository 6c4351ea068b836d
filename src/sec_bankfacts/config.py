"""Configuration management via environment variables.

Reads from .env file (via pydantic-settings) with sensible defaults.
All values can be overridden via environment variables.

Required:
    SEC_USER_AGENT    Your name + email for the SEC EDGAR User-Agent header

Optional:
    MAX_WORKERS                     Concurrent entity workers (default 4)
    DEADLINE_SECONDS                Overall run deadline (default: none)
    STALENESS_DAYS                  Drop entities whose data is older (default 150)
    ANNUAL_FALLBACK_WINDOW_MONTHS   TTM annual fallback window (default 6)
    CACHE_DIR, OUTPUT_DIR, IDENTITY_LIST   File locations
"""

from __future__ import annotations

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

from sec_bankfacts.errors import ConfigurationError


class Settings(BaseSettings):
    # SEC EDGAR API identity (name + email, required by SEC)
    sec_user_agent: str = ""

    # HTTP behaviour: SEC allows 10 req/s, one request per entity
    request_interval: float = 0.1
    request_timeout: int = 60
    request_retries: int = 2

    # Batch behaviour
    max_workers: int = 4
    deadline_seconds: float | None = None

    # Data quality
    staleness_days: int = 150
    annual_fallback_window_months: int = 6

    # File locations
    cache_dir: Path = Path(".sec-data-cache")
    output_dir: Path = Path("public/data")
    identity_list: Path = Path("public/data/bank-list.json")

    # Strip whitespace from string fields: the .env file often has
    # trailing spaces and quotes around the contact string
    @field_validator("sec_user_agent", mode="before")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().strip('"').strip("'").strip()
        return v

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    def require_user_agent(self) -> str:
        """Return the SEC contact string or raise if it is not configured."""
        if not self.sec_user_agent:
            raise ConfigurationError(
                "SEC_USER_AGENT environment variable is required. "
                'Set it to your contact info, e.g. "Company Name admin@example.com" '
                "(see https://www.sec.gov/os/accessing-edgar-data)."
            )
        return self.sec_user_agent


_config: Settings | None = None


def get_config() -> Settings:
    """Get or create the shared Settings singleton."""
    global _config
    if _config is None:
        _config = Settings()
    return _config
