"""Preset webhook configurations for common senders.

Each preset is plain data: a property schema and, where the sender signs
its requests, the headers worth keeping and the signature header name.
``signature_header=None`` leaves the builder's header untouched;
``signed=False`` clears the signing secret.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class Preset:
    """A named bundle of webhook defaults."""

    name: str
    properties: Mapping[str, Any]
    store_headers: Optional[Tuple[str, ...]] = None
    signature_header: Optional[str] = None
    signed: bool = True


def _enum(*values: str) -> Dict[str, Any]:
    return {"type": "string", "options": {"enum": list(values)}}


USER = Preset(
    name="user",
    properties={
        "user_id": "integer",
        "email": "string",
        "name": "string",
        "created_at": "string",
    },
)

PAYMENT = Preset(
    name="payment",
    properties={
        "payment_id": "string",
        "amount": "number",
        "currency": "string",
        "status": _enum("completed", "failed", "pending"),
        "customer_id": "string",
    },
)

ORDER = Preset(
    name="order",
    properties={
        "order_id": "string",
        "customer_id": "string",
        "total": "number",
        "status": _enum("pending", "confirmed", "shipped", "delivered", "cancelled"),
        "items": "array",
    },
)

GITHUB = Preset(
    name="github",
    properties={
        "action": "string",
        "repository": "object",
        "sender": "object",
        "ref": "string",
        "commits": "array",
    },
    store_headers=("X-GitHub-Event", "X-GitHub-Delivery", "X-Hub-Signature-256"),
    signature_header="X-Hub-Signature-256",
)

STRIPE = Preset(
    name="stripe",
    properties={
        "id": "string",
        "type": "string",
        "data": "object",
        "created": "integer",
    },
    store_headers=("Stripe-Signature", "User-Agent"),
    signature_header="Stripe-Signature",
)

# Discord does not sign outgoing webhooks
DISCORD = Preset(
    name="discord",
    properties={
        "content": "string",
        "username": "string",
        "avatar_url": "string",
        "embeds": "array",
    },
    signed=False,
)

SHOPIFY = Preset(
    name="shopify",
    properties={
        "id": "integer",
        "name": "string",
        "email": "string",
        "created_at": "string",
        "updated_at": "string",
    },
    store_headers=("X-Shopify-Topic", "X-Shopify-Shop-Domain", "X-Shopify-Hmac-Sha256"),
    signature_header="X-Shopify-Hmac-Sha256",
)

MAILGUN = Preset(
    name="mailgun",
    properties={
        "event": "string",
        "timestamp": "integer",
        "token": "string",
        "signature": "string",
        "recipient": "string",
    },
    store_headers=("User-Agent",),
    signature_header="X-Mailgun-Signature",
)

PRESETS: Mapping[str, Preset] = MappingProxyType({
    preset.name: preset
    for preset in (USER, PAYMENT, ORDER, GITHUB, STRIPE, DISCORD, SHOPIFY, MAILGUN)
})


def get_preset(name: str) -> Preset:
    """Look up a preset by name.

    Raises:
        KeyError: If no preset has that name.
    """
    try:
        return PRESETS[name]
    except KeyError:
        raise KeyError(f"Unknown webhook preset '{name}'. Available: {', '.join(PRESETS)}") from None
