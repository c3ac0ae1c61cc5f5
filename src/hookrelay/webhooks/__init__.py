"""Webhooks module for inbound webhook registration and dispatch.

Provides:
- A fluent builder and preset schemas for declaring webhooks
- A name-keyed registry of webhook definitions
- A dispatch pipeline with constant-time HMAC signature verification
- Handler resolution for functions, handler classes, instances, and jobs
"""

from .builder import WebhookBuilder
from .definition import WebhookDefinition
from .exceptions import (
    WebhookError,
    WebhookNotFoundError,
    WebhookValidationError,
    InvalidPayloadError,
    NoHandlerError,
    InvalidHandlerError,
)
from .handlers import HandlerKind, HandlerRef, WebhookHandler, WebhookJob, InlineJobQueue
from .manager import WebhookManager, get_manager, reset_manager
from .models import DispatchFailure, DispatchSuccess, FailureKind, PropertySpec
from .pipeline import DispatchPipeline, InboundRequest
from .registry import WebhookRegistry
from .templates import WebhookTemplate, register_webhooks

__all__ = [
    "WebhookBuilder",
    "WebhookDefinition",
    "WebhookError",
    "WebhookNotFoundError",
    "WebhookValidationError",
    "InvalidPayloadError",
    "NoHandlerError",
    "InvalidHandlerError",
    "HandlerKind",
    "HandlerRef",
    "WebhookHandler",
    "WebhookJob",
    "InlineJobQueue",
    "WebhookManager",
    "get_manager",
    "reset_manager",
    "DispatchFailure",
    "DispatchSuccess",
    "FailureKind",
    "PropertySpec",
    "DispatchPipeline",
    "InboundRequest",
    "WebhookRegistry",
    "WebhookTemplate",
    "register_webhooks",
]
