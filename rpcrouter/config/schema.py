"""Configuration schema using Pydantic.

Values come from defaults, ``RPCROUTER_*`` environment variables, or a JSON
file read by ``rpcrouter.config.loader``.
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rpcrouter.utils.exceptions import INTERNAL_ERROR, is_reserved_code


class RouterConfig(BaseSettings):
    """Root configuration for a Router."""
    # Notifications (no "id" member) still run but get no response entry.
    suppress_notifications: bool = False
    internal_error_code: int = INTERNAL_ERROR
    internal_error_message: str = "Internal error"
    # None runs every batch member at once.
    max_batch_concurrency: int | None = Field(default=None, ge=1)
    log_level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="RPCROUTER_",
        extra="ignore",
    )

    @field_validator("internal_error_code")
    @classmethod
    def _outside_reserved_range(cls, value: int) -> int:
        if is_reserved_code(value):
            raise ValueError(f"internal_error_code {value} lies in the JSON-RPC reserved range -32768..-32000")
        return value
