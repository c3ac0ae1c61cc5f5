"""Webhook definition registry.

Stores webhook definitions by name. Registration normally happens once
at startup, but lookups and registrations are guarded by a lock so the
two may overlap safely.
"""

from typing import Dict, List, Optional
import logging
import threading

from .definition import WebhookDefinition
from .exceptions import WebhookNotFoundError

logger = logging.getLogger(__name__)


class WebhookRegistry:
    """In-memory registry of webhook definitions.

    Registering a name that already exists replaces the old definition.

    Example:
        registry = WebhookRegistry()
        registry.register_webhook("user.created", definition)

        if registry.has_webhook("user.created"):
            webhook = registry.get_webhook("user.created")
    """

    def __init__(self):
        """Initialize empty registry."""
        self._webhooks: Dict[str, WebhookDefinition] = {}
        self._lock = threading.RLock()

    def register_webhook(self, name: str, webhook: WebhookDefinition) -> WebhookDefinition:
        """Register a definition under a name.

        Args:
            name: The registry key.
            webhook: The definition to store.

        Returns:
            The registered definition.
        """
        if not name:
            raise ValueError("Webhook name must not be empty")
        with self._lock:
            replaced = name in self._webhooks
            self._webhooks[name] = webhook
        if replaced:
            logger.info(f"Replaced webhook registration '{name}'")
        else:
            logger.info(f"Registered webhook '{name}'")
        return webhook

    def register(self, webhook: WebhookDefinition) -> WebhookDefinition:
        """Register a definition under its own name."""
        return self.register_webhook(webhook.name, webhook)

    def unregister(self, name: str) -> bool:
        """Remove a webhook registration.

        Args:
            name: The webhook name.

        Returns:
            True if removed, False if not found.
        """
        with self._lock:
            removed = self._webhooks.pop(name, None)
        if removed is None:
            return False
        logger.info(f"Unregistered webhook '{name}'")
        return True

    def get_webhook(self, name: str) -> WebhookDefinition:
        """Get a registered definition.

        Raises:
            WebhookNotFoundError: If nothing is registered under ``name``.
        """
        webhook = self.find(name)
        if webhook is None:
            raise WebhookNotFoundError(name)
        return webhook

    def find(self, name: str) -> Optional[WebhookDefinition]:
        with self._lock:
            return self._webhooks.get(name)

    def has_webhook(self, name: str) -> bool:
        with self._lock:
            return name in self._webhooks

    def get_all(self) -> List[WebhookDefinition]:
        with self._lock:
            return list(self._webhooks.values())

    def names(self) -> List[str]:
        with self._lock:
            return list(self._webhooks)

    def clear(self) -> int:
        """Remove all registrations.

        Returns:
            Number of webhooks removed.
        """
        with self._lock:
            count = len(self._webhooks)
            self._webhooks.clear()
        logger.info(f"Cleared {count} webhook registrations")
        return count

    def __contains__(self, name: str) -> bool:
        return self.has_webhook(name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._webhooks)
