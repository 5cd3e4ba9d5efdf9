"""Configuration Management for addon-inventory

Settings are read from ``ADDON_INVENTORY_*`` environment variables through
Pydantic settings. List-valued settings accept either a JSON array or a
comma-separated string.
"""

import json
from typing import Annotated, List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .errors import DEFAULT_FATAL_ERROR_CODES, DEFAULT_IGNORABLE_ERROR_CODES

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
VALID_LOG_FORMATS = ["console", "json"]
VALID_RETRY_MODES = ["standard", "adaptive", "legacy"]

StrList = Annotated[List[str], NoDecode]


def _split(value):
    if isinstance(value, str):
        value = value.strip()
        if value.startswith("["):
            return json.loads(value)
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class InventoryConfig(BaseSettings):
    """Configuration for addon-inventory."""

    # Region matrix: exact names or fnmatch patterns ("us-*", "*")
    regions: StrList = Field(default_factory=lambda: ["us-west-2"])
    aws_profile: Optional[str] = None

    # Fan-out
    max_parallelism: int = Field(default=4, description="Concurrent (region x cluster) units")
    page_size: Optional[int] = Field(default=None, description="maxResults for list_addons")

    # Error classification
    ignorable_error_codes: StrList = Field(
        default_factory=lambda: list(DEFAULT_IGNORABLE_ERROR_CODES)
    )
    fatal_error_codes: StrList = Field(default_factory=lambda: list(DEFAULT_FATAL_ERROR_CODES))

    # Remote call policy, applied by the botocore client config
    max_attempts: int = 5
    retry_mode: str = "standard"
    connect_timeout: float = 10.0
    read_timeout: float = 60.0

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"

    model_config = SettingsConfigDict(env_prefix="ADDON_INVENTORY_")

    @field_validator("regions", "ignorable_error_codes", "fatal_error_codes", mode="before")
    @classmethod
    def split_lists(cls, v):
        return _split(v)

    @field_validator("regions")
    @classmethod
    def validate_regions(cls, v):
        if not v:
            raise ValueError("regions must name at least one region or pattern")
        return v

    @field_validator("max_parallelism")
    @classmethod
    def validate_parallelism(cls, v):
        if v < 1:
            raise ValueError("max_parallelism must be at least 1")
        if v > 64:
            raise ValueError("max_parallelism must be at most 64")
        return v

    @field_validator("page_size")
    @classmethod
    def validate_page_size(cls, v):
        if v is not None and not 1 <= v <= 100:
            raise ValueError("page_size must be between 1 and 100")
        return v

    @field_validator("max_attempts")
    @classmethod
    def validate_max_attempts(cls, v):
        if v < 1:
            raise ValueError("max_attempts must be at least 1")
        return v

    @field_validator("retry_mode")
    @classmethod
    def validate_retry_mode(cls, v):
        if v not in VALID_RETRY_MODES:
            raise ValueError(f"Invalid retry mode: {v}")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v):
        v = str(v).upper()
        if v not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        if v not in VALID_LOG_FORMATS:
            raise ValueError(f"Invalid log format: {v}")
        return v

    @model_validator(mode="after")
    def validate_code_sets(self):
        overlap = set(self.ignorable_error_codes) & set(self.fatal_error_codes)
        if overlap:
            raise ValueError(
                f"Error codes cannot be both ignorable and fatal: {sorted(overlap)}"
            )
        return self

    def __str__(self) -> str:
        return (
            f"InventoryConfig(regions={self.regions}, "
            f"max_parallelism={self.max_parallelism})"
        )


# Global configuration instance
_global_config: Optional[InventoryConfig] = None


def get_config() -> InventoryConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = InventoryConfig()
    return _global_config


def set_config(config: InventoryConfig):
    """Set the global configuration instance."""
    global _global_config
    _global_config = config


def reset_config():
    """Reset the global configuration to default."""
    global _global_config
    _global_config = None
