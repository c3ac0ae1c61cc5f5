"""Webhook manager.

``WebhookManager`` ties together the settings, the registry and the
dispatch pipeline for one application. Most code receives a manager
explicitly; ``get_manager()`` provides the process-wide default used by
the HTTP routes.
"""

import logging
from typing import Any, Iterable, List, Optional

from hookrelay.core.settings import WebhookSettings, default_settings

from .builder import WebhookBuilder
from .definition import WebhookDefinition
from .handlers import JobQueue
from .models import DispatchResult
from .pipeline import DispatchPipeline, InboundRequest
from .registry import WebhookRegistry
from .templates import register_webhooks

logger = logging.getLogger(__name__)


class WebhookManager:
    """Entry point for registering and dispatching webhooks.

    Example:
        manager = WebhookManager()
        (
            manager.create("user.created", "s3cret")
            .user_webhook()
            .handle(lambda webhook: {"user_id": webhook.get("user_id")})
            .register()
        )

        result = manager.dispatch("user.created", request)
    """

    def __init__(
        self,
        settings: Optional[WebhookSettings] = None,
        registry: Optional[WebhookRegistry] = None,
        job_queue: Optional[JobQueue] = None,
    ):
        self.settings = settings or default_settings()
        self.registry = registry if registry is not None else WebhookRegistry()
        self.pipeline = DispatchPipeline(self.registry, self.settings, job_queue)

    def create(self, name: str, signing_secret: str = "") -> WebhookBuilder:
        """Start a builder bound to this manager's registry."""
        return WebhookBuilder(
            name,
            signing_secret,
            self.registry,
            signature_header=self.settings.default_signature_header,
        )

    def register_webhook(self, name: str, webhook: WebhookDefinition) -> WebhookDefinition:
        return self.registry.register_webhook(name, webhook)

    def register_webhooks(self, entries: Iterable[Any]) -> List[WebhookDefinition]:
        """Register builders, templates, or template factories in bulk."""
        return register_webhooks(self.registry, entries)

    def get_webhook(self, name: str) -> WebhookDefinition:
        return self.registry.get_webhook(name)

    def has_webhook(self, name: str) -> bool:
        return self.registry.has_webhook(name)

    def get_registered_webhooks(self) -> List[WebhookDefinition]:
        return self.registry.get_all()

    def dispatch(
        self,
        name: str,
        request: InboundRequest,
        job_queue: Optional[JobQueue] = None,
    ) -> DispatchResult:
        return self.pipeline.dispatch(name, request, job_queue)

    def get_config(self, key: Optional[str] = None, default: Any = None) -> Any:
        if key is None:
            return self.settings.model_dump()
        return getattr(self.settings, key, default)

    def set_config(self, key: str, value: Any) -> "WebhookManager":
        """Change a setting; validated like the settings model itself."""
        if key not in WebhookSettings.model_fields:
            raise KeyError(f"Unknown webhook setting '{key}'")
        setattr(self.settings, key, value)
        logger.info(f"Webhook setting '{key}' updated")
        return self


# Global manager instance
_manager: Optional[WebhookManager] = None


def get_manager() -> WebhookManager:
    """Get the global webhook manager instance."""
    global _manager
    if _manager is None:
        _manager = WebhookManager()
    return _manager


def reset_manager(manager: Optional[WebhookManager] = None) -> None:
    """Replace (or drop) the global manager. Mainly for tests."""
    global _manager
    _manager = manager
