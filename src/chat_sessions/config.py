"""
Runtime settings for chat sessions.

Values come from the environment (or a local '.env' file). Explicit arguments
on a 'ChatSessionRequest' always take precedence over these defaults.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Defaults shared by every chat session in the process."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    run_loop_limit: int = Field(default=10, ge=1, alias="CHAT_RUN_LOOP_LIMIT")
    debug: bool = Field(default=False, alias="CHAT_DEBUG")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
