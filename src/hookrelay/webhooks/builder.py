"""Fluent webhook builder.

Collects a webhook's configuration through chained calls and turns it
into a registered ``WebhookDefinition``.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union, TYPE_CHECKING

from . import presets
from .definition import DEFAULT_SIGNATURE_HEADER, WebhookDefinition
from .handlers import HandlerRef
from .security import is_supported_algorithm

if TYPE_CHECKING:
    from .registry import WebhookRegistry

logger = logging.getLogger(__name__)


class WebhookBuilder:
    """Accumulates webhook configuration.

    Example:
        (
            WebhookBuilder("payment.completed", "s3cret", registry)
            .payment_webhook()
            .store_headers(["X-Event-ID"])
            .handle(ProcessPayment)
            .register()
        )
    """

    def __init__(
        self,
        name: str,
        signing_secret: str = "",
        registry: Optional["WebhookRegistry"] = None,
        signature_header: str = DEFAULT_SIGNATURE_HEADER,
    ):
        """Start a builder.

        Args:
            name: Webhook name.
            signing_secret: HMAC secret; empty disables verification.
            registry: Registry that ``register()`` inserts into.
            signature_header: Initial signature header name.
        """
        if not name or not name.strip():
            raise ValueError("Webhook name must not be empty")
        self._name = name
        self._signing_secret = signing_secret or ""
        self._registry = registry
        self._signature_header = signature_header
        self._hash_algorithm: Optional[str] = None
        self._strict = False
        self._properties: Dict[str, Dict[str, Any]] = {}
        self._store_headers: List[str] = []
        self._metadata: Dict[str, Any] = {}
        self._handler: Optional[HandlerRef] = None
        self._registered = False

    @classmethod
    def create(
        cls,
        name: str,
        signing_secret: str = "",
        registry: Optional["WebhookRegistry"] = None,
    ) -> "WebhookBuilder":
        return cls(name, signing_secret, registry)

    @property
    def name(self) -> str:
        return self._name

    # Signature configuration

    def signing_secret(self, secret: str) -> "WebhookBuilder":
        self._signing_secret = secret or ""
        return self

    def secret(self, secret: str) -> "WebhookBuilder":
        return self.signing_secret(secret)

    def signature_header(self, header_name: str) -> "WebhookBuilder":
        self._signature_header = header_name
        return self

    def signed_by(self, header_name: str) -> "WebhookBuilder":
        return self.signature_header(header_name)

    def without_signature(self) -> "WebhookBuilder":
        self._signing_secret = ""
        return self

    def with_signature(self, secret: str, header_name: str = DEFAULT_SIGNATURE_HEADER) -> "WebhookBuilder":
        self._signing_secret = secret or ""
        self._signature_header = header_name
        return self

    def hash_algorithm(self, algorithm: str) -> "WebhookBuilder":
        """Override the global HMAC algorithm for this webhook.

        Raises:
            ValueError: If ``hashlib`` does not provide the algorithm.
        """
        algorithm = algorithm.strip().lower()
        if not is_supported_algorithm(algorithm):
            raise ValueError(f"Unsupported hash algorithm: {algorithm}")
        self._hash_algorithm = algorithm
        return self

    # Schema and handling

    def property(
        self,
        name: str,
        type: Union[str, List[str]] = "string",
        options: Optional[Dict[str, Any]] = None,
    ) -> "WebhookBuilder":
        self._properties[name] = {"type": type, "options": dict(options or {})}
        return self

    def properties(self, properties: Mapping[str, Any]) -> "WebhookBuilder":
        """Add several properties.

        Args:
            properties: Maps each name to a type string, or to a
                ``{"type": ..., "options": ...}`` record.
        """
        for name, config in properties.items():
            if isinstance(config, Mapping):
                self.property(name, config.get("type", "string"), config.get("options"))
            else:
                self.property(name, config)
        return self

    def store_headers(self, headers: Iterable[str]) -> "WebhookBuilder":
        self._store_headers = list(headers)
        return self

    def metadata(self, metadata: Mapping[str, Any]) -> "WebhookBuilder":
        self._metadata = dict(metadata)
        return self

    def strict(self, enabled: bool = True) -> "WebhookBuilder":
        self._strict = enabled
        return self

    def handle(self, handler: Any) -> "WebhookBuilder":
        """Set the handler: function, handler class, class path, or instance."""
        self._handler = HandlerRef.resolve(handler)
        return self

    # Presets

    def preset(self, name: str) -> "WebhookBuilder":
        """Apply a named preset from ``presets.PRESETS``."""
        return self._apply(presets.get_preset(name))

    def _apply(self, preset: presets.Preset) -> "WebhookBuilder":
        self.properties(preset.properties)
        if preset.store_headers is not None:
            self.store_headers(preset.store_headers)
        if preset.signature_header is not None:
            self.signature_header(preset.signature_header)
        if not preset.signed:
            self.without_signature()
        return self

    def user_webhook(self) -> "WebhookBuilder":
        return self._apply(presets.USER)

    def payment_webhook(self) -> "WebhookBuilder":
        return self._apply(presets.PAYMENT)

    def order_webhook(self) -> "WebhookBuilder":
        return self._apply(presets.ORDER)

    def github_webhook(self) -> "WebhookBuilder":
        return self._apply(presets.GITHUB)

    def stripe_webhook(self) -> "WebhookBuilder":
        return self._apply(presets.STRIPE)

    def discord_webhook(self) -> "WebhookBuilder":
        return self._apply(presets.DISCORD)

    def shopify_webhook(self) -> "WebhookBuilder":
        return self._apply(presets.SHOPIFY)

    def mailgun_webhook(self) -> "WebhookBuilder":
        return self._apply(presets.MAILGUN)

    # Finalization

    def build(self) -> WebhookDefinition:
        """Create the definition without registering it."""
        webhook = WebhookDefinition(
            self._name,
            signing_secret=self._signing_secret,
            store_headers=self._store_headers,
            signature_header_name=self._signature_header,
            hash_algorithm=self._hash_algorithm,
            strict=self._strict,
        )
        for name, config in self._properties.items():
            webhook.add_property(name, config["type"], config["options"])
        if self._metadata:
            webhook.set_metadata(self._metadata)
        if self._handler is not None:
            webhook.handler(self._handler)
        return webhook

    def register(self) -> WebhookDefinition:
        """Build the definition and insert it into the registry.

        Raises:
            RuntimeError: If the builder has no registry or was already registered.
        """
        if self._registry is None:
            raise RuntimeError(f"Webhook builder '{self._name}' has no registry to register into")
        if self._registered:
            raise RuntimeError(f"Webhook builder '{self._name}' has already been registered")

        webhook = self.build()
        self._registry.register_webhook(self._name, webhook)
        self._registered = True
        return webhook
