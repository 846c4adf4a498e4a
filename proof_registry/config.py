"""Runtime settings and logging setup for proof-registry tooling."""

import base64
import binascii
import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class RegistrySettings(BaseSettings):
    """
    Settings read from ``PROOF_REGISTRY_*`` environment variables.

    Attributes:
        signing_key_b64: Base64 Ed25519 seed used to sign event logs
        log_level: Logging level name
        state_file: Default snapshot path for the CLI
    """

    signing_key_b64: Optional[str] = Field(default=None, description="Base64 Ed25519 private key")
    log_level: str = Field(default="WARNING", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    state_file: Path = Field(default=Path("registry_state.json"), description="Snapshot file path")

    model_config = SettingsConfigDict(env_prefix="PROOF_REGISTRY_", case_sensitive=False, extra="ignore")

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(LOG_LEVELS)}")
        return level

    @field_validator("signing_key_b64")
    @classmethod
    def _check_signing_key(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        try:
            raw = base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("signing_key_b64 is not valid base64") from exc
        if len(raw) != 32:
            raise ValueError("signing_key_b64 must decode to 32 bytes")
        return value

    @property
    def signing_key(self) -> Optional[bytes]:
        if self.signing_key_b64 is None:
            return None
        return base64.b64decode(self.signing_key_b64)


@lru_cache(maxsize=1)
def get_settings() -> RegistrySettings:
    return RegistrySettings()


def configure_logging(level: str = "WARNING") -> None:
    """Attach a stderr handler to the root logger at ``level``."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.WARNING), format=LOG_FORMAT)
    logging.getLogger("proof_registry").setLevel(level.upper())
