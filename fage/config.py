"""Framework Configuration: environment-driven settings via pydantic-settings.

Invariants:
    - Every setting has a working default; nothing is required to import fage
    - get_settings() is cached (lru_cache): single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - FAGE_ env prefix: the host application's own settings never collide
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Framework settings from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FAGE_", env_file=".env", case_sensitive=False, extra="ignore",
    )

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    # Authorization: the "golden key" claim that sees every record
    root_scope: str = "root"

    # Meta channel keys read by the step library
    claims_meta_key: str = "claims"
    user_meta_key: str = "user_id"
    resource_meta_key: str = "resource_id"

    @field_validator("log_format")
    @classmethod
    def check_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
