"""Client Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Settings are static: read once at client construction, never mutated afterward
    - get_settings() is cached (lru_cache): single instance per process
    - Retry cadence and poll cadence are configured independently

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for every option: a bare environment yields a working client
    - Delays in milliseconds (integers in env vars); converted to seconds by bootstrap
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from computeops.core.domain_types import ApiVersion


class Settings(BaseSettings):
    """Client settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Compute API
    compute_api_base_url: str = "https://compute.googleapis.com/compute/"
    compute_api_version: ApiVersion = ApiVersion.V1
    compute_timeout_seconds: float = 60
    compute_use_wait_endpoint: bool = False

    # Retry (failed RPCs)
    retry_max_attempts: int = 10
    retry_max_elapsed_seconds: float | None = None
    retry_base_delay_ms: int = 1000
    retry_max_delay_ms: int = 30_000
    retry_jitter: float = 0.25

    # Polling (operations not yet DONE)
    poll_base_delay_ms: int = 1000
    poll_max_delay_ms: int = 10_000
    poll_deadline_seconds: float | None = None

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("retry_max_attempts")
    @classmethod
    def positive_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("retry_max_attempts must be >= 1")
        return v

    @field_validator("retry_jitter")
    @classmethod
    def jitter_range(cls, v: float) -> float:
        if not 0 <= v < 1:
            raise ValueError("retry_jitter must be in [0, 1)")
        return v

    @model_validator(mode="after")
    def delay_bounds(self) -> "Settings":
        if self.retry_max_delay_ms < self.retry_base_delay_ms:
            raise ValueError("retry_max_delay_ms must be >= retry_base_delay_ms")
        if self.poll_max_delay_ms < self.poll_base_delay_ms:
            raise ValueError("poll_max_delay_ms must be >= poll_base_delay_ms")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
