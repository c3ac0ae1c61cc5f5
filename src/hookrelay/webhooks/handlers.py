"""Webhook handler resolution.

A handler can be given as a function, a handler class (or a dotted
import path naming one), a pre-built object with a ``handle`` method,
or a ``WebhookJob`` subclass that is queued instead of run inline.
``HandlerRef.resolve`` classifies the value once, when it is assigned,
so execution never has to probe types again.
"""

import importlib
import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Protocol, TYPE_CHECKING

from .exceptions import InvalidHandlerError
from .models import WebhookSnapshot, lookup_header

if TYPE_CHECKING:
    from .definition import WebhookDefinition

logger = logging.getLogger(__name__)


class WebhookHandler(ABC):
    """Base class for class-based webhook handlers.

    Subclasses implement ``handle``. ``should_process`` can veto a call
    and ``handle_failure`` can turn an exception into a result; by
    default it re-raises.

    Example:
        class ProcessUserCreated(WebhookHandler):
            def handle(self, webhook):
                return {"user_id": self.get(webhook, "user_id")}
    """

    @abstractmethod
    def handle(self, webhook: "WebhookDefinition") -> Any:
        """Process the webhook and return a JSON-serializable result."""

    def should_process(self, webhook: "WebhookDefinition") -> bool:
        return True

    def handle_failure(self, webhook: "WebhookDefinition", exc: Exception) -> Any:
        raise exc

    def payload(self, webhook: "WebhookDefinition") -> Mapping[str, Any]:
        return MappingProxyType(dict(webhook.get_payload()))

    def get(self, webhook: "WebhookDefinition", key: str, default: Any = None) -> Any:
        return webhook.get(key, default)

    def headers(self, webhook: "WebhookDefinition") -> Mapping[str, Any]:
        return MappingProxyType(dict(webhook.get_headers()))

    def header(self, webhook: "WebhookDefinition", name: str, default: Any = None) -> Any:
        return webhook.get_header(name, default)


class WebhookJob(ABC):
    """Deferred webhook processing.

    A job receives a frozen snapshot of the request rather than the live
    definition, so it can run after the HTTP response has been sent.

    Example:
        class SyncPayment(WebhookJob):
            def process(self, webhook):
                charge(self.get("payment_id"), self.get("amount"))
    """

    def __init__(self, webhook: WebhookSnapshot):
        self.webhook = webhook

    def handle(self) -> Any:
        return self.process(self.webhook)

    @abstractmethod
    def process(self, webhook: WebhookSnapshot) -> Any:
        """Run the job against the captured payload."""

    def payload(self) -> Mapping[str, Any]:
        return MappingProxyType(self.webhook.payload)

    def get(self, key: str, default: Any = None) -> Any:
        return self.webhook.payload.get(key, default)

    def headers(self) -> Mapping[str, Any]:
        return MappingProxyType(self.webhook.headers)

    def header(self, name: str, default: Any = None) -> Any:
        return lookup_header(self.webhook.headers, name, default)


class JobQueue(Protocol):
    """Anything that accepts a job for later execution."""

    def submit(self, job: WebhookJob) -> None:
        ...


class InlineJobQueue:
    """Runs submitted jobs immediately. Used when no queue is configured."""

    def __init__(self):
        self.processed = 0
        self.last_result: Any = None

    def submit(self, job: WebhookJob) -> None:
        self.last_result = job.handle()
        self.processed += 1


class HandlerKind(str, Enum):
    FUNCTION = "function"
    CLASS = "class"
    INSTANCE = "instance"
    JOB = "job"


def _import_class(path: str) -> type:
    module_name, sep, attr = path.partition(":")
    if not sep:
        module_name, _, attr = path.rpartition(".")
    if not module_name or not attr:
        raise InvalidHandlerError(f"Handler path '{path}' is not a dotted class path")
    try:
        module = importlib.import_module(module_name)
        handler_cls = getattr(module, attr)
    except (ImportError, AttributeError) as exc:
        raise InvalidHandlerError(f"Handler class '{path}' could not be imported") from exc
    if not inspect.isclass(handler_cls):
        raise InvalidHandlerError(f"Handler path '{path}' does not name a class")
    return handler_cls


def _call_handler(instance: Any, webhook: "WebhookDefinition") -> Any:
    if not isinstance(instance, WebhookHandler):
        return instance.handle(webhook)

    if not instance.should_process(webhook):
        logger.info(f"Handler {type(instance).__name__} skipped webhook '{webhook.name}'")
        return None
    try:
        return instance.handle(webhook)
    except Exception as exc:
        return instance.handle_failure(webhook, exc)


@dataclass(frozen=True)
class HandlerRef:
    """A handler classified into one of the ``HandlerKind`` variants."""

    kind: HandlerKind
    target: Any

    @classmethod
    def resolve(cls, value: Any) -> "HandlerRef":
        """Classify a handler value.

        Args:
            value: Function, class, dotted class path, or handler instance.

        Returns:
            The tagged handler reference.

        Raises:
            InvalidHandlerError: If the value can never be invoked.
        """
        if isinstance(value, HandlerRef):
            return value
        if isinstance(value, str):
            if not value.strip():
                raise InvalidHandlerError("Handler path must not be empty")
            return cls(HandlerKind.CLASS, value.strip())
        if inspect.isclass(value):
            if issubclass(value, WebhookJob):
                return cls(HandlerKind.JOB, value)
            return cls(HandlerKind.CLASS, value)
        if callable(value):
            return cls(HandlerKind.FUNCTION, value)
        if callable(getattr(value, "handle", None)):
            return cls(HandlerKind.INSTANCE, value)
        raise InvalidHandlerError(
            f"Handler must be callable or a dispatchable class, got {type(value).__name__}"
        )

    @property
    def label(self) -> str:
        if isinstance(self.target, str):
            return self.target
        if self.kind is HandlerKind.INSTANCE:
            return type(self.target).__name__
        return getattr(self.target, "__qualname__", repr(self.target))

    def handler_class(self) -> type:
        if isinstance(self.target, str):
            return _import_class(self.target)
        return self.target

    def invoke(self, webhook: "WebhookDefinition", queue: Optional[JobQueue] = None) -> Any:
        """Run the handler against a populated definition.

        Exceptions raised by the handler propagate unchanged.
        """
        if self.kind is HandlerKind.FUNCTION:
            return self.target(webhook)
        if self.kind is HandlerKind.INSTANCE:
            return _call_handler(self.target, webhook)

        handler_cls = self.handler_class()
        if issubclass(handler_cls, WebhookJob):
            return self._enqueue(handler_cls, webhook, queue)

        try:
            instance = handler_cls()
        except TypeError as exc:
            raise InvalidHandlerError(
                f"Handler class {handler_cls.__name__} must be constructible without arguments"
            ) from exc

        if callable(getattr(instance, "handle", None)):
            return _call_handler(instance, webhook)
        if callable(instance):
            return instance(webhook)
        raise InvalidHandlerError(
            f"Handler class {handler_cls.__name__} must have a handle method or be callable"
        )

    def _enqueue(self, job_cls: type, webhook: "WebhookDefinition", queue: Optional[JobQueue]) -> Any:
        snapshot = WebhookSnapshot(**webhook.to_array())
        (queue or InlineJobQueue()).submit(job_cls(snapshot))
        logger.info(f"Queued {job_cls.__name__} for webhook '{webhook.name}'")
        return {"queued": True, "job": job_cls.__name__}
