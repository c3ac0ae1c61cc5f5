"""Settings Management Module.

Process-wide webhook options. Values come from the environment (after
loading an optional ``.env`` file) or from a JSON settings file, and can
be overridden per webhook definition where noted.
"""

import hashlib
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

logger = logging.getLogger(__name__)

# Environment variable -> settings field
ENV_VARS = {
    "WEBHOOK_VERIFY_SIGNATURES": "verify_signatures",
    "WEBHOOK_REQUIRE_SIGNATURES": "require_signatures",
    "WEBHOOK_SIGNATURE_HEADER": "default_signature_header",
    "WEBHOOK_HASH_ALGORITHM": "hash_algorithm",
    "WEBHOOK_ROUTE_PREFIX": "route_prefix",
}


class WebhookSettings(BaseModel):
    """Global webhook settings."""

    model_config = ConfigDict(validate_assignment=True)

    # Master switch for signature checks
    verify_signatures: bool = True
    # Reject signed webhooks whose request carries no signature header
    require_signatures: bool = False
    # Seeds the signature header of every builder the manager creates
    default_signature_header: str = "X-Signature-256"
    # Used unless a definition sets its own
    hash_algorithm: str = "sha256"
    route_prefix: str = "/webhooks"

    @field_validator("hash_algorithm")
    @classmethod
    def _known_algorithm(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in hashlib.algorithms_available:
            raise ValueError(f"Unsupported hash algorithm: {value}")
        return value

    @field_validator("default_signature_header")
    @classmethod
    def _non_empty_header(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("default_signature_header must not be empty")
        return value.strip()

    @field_validator("route_prefix")
    @classmethod
    def _normalize_prefix(cls, value: str) -> str:
        value = "/" + value.strip().strip("/")
        return "" if value == "/" else value

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "WebhookSettings":
        """Build settings from ``WEBHOOK_*`` environment variables."""
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {
            field: environ[var] for var, field in ENV_VARS.items() if var in environ
        }
        return cls.model_validate(values)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "WebhookSettings":
        """Load settings from a JSON file."""
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls.model_validate(data)


def load_settings(env_file: Optional[Union[str, Path]] = None) -> WebhookSettings:
    """Load ``.env`` (without overriding real env vars) and read settings."""
    load_dotenv(env_file, override=False)
    settings = WebhookSettings.from_env()
    logger.info(
        f"Webhook settings loaded (verify_signatures={settings.verify_signatures}, "
        f"hash_algorithm={settings.hash_algorithm})"
    )
    return settings


_settings: Optional[WebhookSettings] = None


def default_settings() -> WebhookSettings:
    """Get the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings
