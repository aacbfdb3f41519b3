# get_chunk/config.py

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .policy import SizingMode, parse_sizing_mode


class ReaderSettings(BaseSettings):
    """
    Defaults applied to every reader unless overridden per instance.
    Values are read from GET_CHUNK_* environment variables or a .env file.
    """

    # Sizing mode used until set_mode() is called: "auto", "<p>%" or "<n>"
    DEFAULT_MODE: str = "auto"

    # Count swap space as available memory when sizing chunks
    INCLUDE_SWAP: bool = False

    # Record prometheus metrics for reads
    METRICS_ENABLED: bool = True

    model_config = SettingsConfigDict(
        env_prefix="GET_CHUNK_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DEFAULT_MODE")
    @classmethod
    def _validate_mode(cls, value: str) -> str:
        parse_sizing_mode(value)
        return value

    @property
    def default_mode(self) -> SizingMode:
        return parse_sizing_mode(self.DEFAULT_MODE)


# Instantiate settings once and export
settings = ReaderSettings()

__all__ = ["ReaderSettings", "settings"]
