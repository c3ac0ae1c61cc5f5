"""Webhook templates and bulk registration.

A ``WebhookTemplate`` holds the defaults for one domain webhook (name,
schema, headers, handler). Its ``configure`` callback runs on the seeded
builder, so a template can layer extra settings on top of its defaults,
for instance by applying a sender preset.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, TYPE_CHECKING

from .builder import WebhookBuilder
from .definition import DEFAULT_SIGNATURE_HEADER, WebhookDefinition

if TYPE_CHECKING:
    from .registry import WebhookRegistry

logger = logging.getLogger(__name__)


@dataclass
class WebhookTemplate:
    """Reusable webhook defaults.

    Example:
        stripe_payments = WebhookTemplate(
            name="stripe.payment_intent.succeeded",
            signing_secret=os.getenv("STRIPE_WEBHOOK_SECRET", ""),
            handler=HandleStripePayment,
            configure=lambda builder: builder.stripe_webhook(),
        )
    """

    name: str
    handler: Any = None
    signing_secret: str = ""
    signature_header: str = DEFAULT_SIGNATURE_HEADER
    store_headers: List[str] = field(default_factory=list)
    properties: Dict[str, Any] = field(default_factory=dict)
    configure: Optional[Callable[[WebhookBuilder], None]] = None

    def to_builder(self, registry: Optional["WebhookRegistry"] = None) -> WebhookBuilder:
        """Seed a builder with this template's defaults, then run ``configure``."""
        builder = (
            WebhookBuilder(self.name, self.signing_secret, registry)
            .signature_header(self.signature_header)
            .store_headers(self.store_headers)
            .properties(self.properties)
        )
        if self.handler is not None:
            builder.handle(self.handler)
        if self.configure is not None:
            self.configure(builder)
        return builder


def register_webhooks(registry: "WebhookRegistry", entries: Iterable[Any]) -> List[WebhookDefinition]:
    """Register a mixed list of webhook declarations.

    Every entry is built before any is inserted, so an invalid entry
    leaves the registry untouched. Definitions always go into
    ``registry``, even when a builder was created against another one.

    Args:
        registry: Registry to insert into.
        entries: Each entry is a ``WebhookBuilder``, a ``WebhookTemplate``,
            or a zero-argument callable returning a template.

    Returns:
        The registered definitions, in order.

    Raises:
        TypeError: If an entry is none of the supported kinds.
    """
    webhooks = []
    for entry in entries:
        if callable(entry) and not isinstance(entry, (WebhookBuilder, WebhookTemplate)):
            entry = entry()

        if isinstance(entry, WebhookTemplate):
            builder = entry.to_builder()
        elif isinstance(entry, WebhookBuilder):
            builder = entry
        else:
            raise TypeError(f"Cannot register webhook from {type(entry).__name__}")

        webhooks.append(builder.build())

    for webhook in webhooks:
        registry.register_webhook(webhook.name, webhook)

    logger.info(f"Registered {len(webhooks)} webhooks")
    return webhooks
