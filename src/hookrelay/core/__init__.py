"""Core module for hookrelay.

Contains settings loading and logging configuration.
"""

from .settings import WebhookSettings, load_settings, default_settings
from .logging_config import setup_logging

__all__ = [
    "WebhookSettings",
    "load_settings",
    "default_settings",
    "setup_logging",
]
