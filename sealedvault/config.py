"""
Store Configuration — validated settings for file handling and secret names.

Cryptographic parameters are part of the vault format (see ``crypto``) and
are not configurable. Settings can be built directly or, by callers that
want it, from environment variables:
    SEALEDVAULT_FILE_MODE = <octal permission bits, e.g. 600>
    SEALEDVAULT_MAX_NAME_LENGTH = <integer>
"""
import os
import logging

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger("sealedvault")


class StoreConfig(BaseModel):
    """Validated store configuration."""

    file_mode: int = Field(default=0o600, ge=0, le=0o777)
    max_name_length: int = Field(default=255, ge=1, le=4096)

    @field_validator("file_mode")
    @classmethod
    def validate_owner_access(cls, v: int) -> int:
        """The owner must be able to read and write its own vault."""
        if v & 0o600 != 0o600:
            raise ValueError(f"file_mode {oct(v)} must grant owner read/write")
        return v

    @classmethod
    def from_env(cls) -> "StoreConfig":
        """Create StoreConfig from ``SEALEDVAULT_*`` environment variables.

        Unset variables fall back to the defaults.

        Raises:
            ValueError: If a variable is not a valid number.
        """
        values: dict[str, int] = {}
        raw_mode = os.environ.get("SEALEDVAULT_FILE_MODE")
        if raw_mode is not None:
            values["file_mode"] = int(raw_mode, 8)
        raw_length = os.environ.get("SEALEDVAULT_MAX_NAME_LENGTH")
        if raw_length is not None:
            values["max_name_length"] = int(raw_length)
        config = cls(**values)
        logger.debug(
            "Loaded store config: file_mode=%s max_name_length=%d",
            oct(config.file_mode), config.max_name_length,
        )
        return config
