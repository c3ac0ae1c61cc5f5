"""Webhook definition.

A ``WebhookDefinition`` is the registered configuration for one named
webhook endpoint plus the payload and headers of the request currently
being handled. Definitions held by the registry act as templates: the
dispatch pipeline works on a ``clone()`` per request and never writes
request data onto the registered object.
"""

import copy
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .exceptions import InvalidPayloadError, NoHandlerError, WebhookValidationError
from .handlers import HandlerKind, HandlerRef, JobQueue
from .models import PropertySpec, WebhookDescription, WebhookSnapshot, lookup_header

logger = logging.getLogger(__name__)

DEFAULT_SIGNATURE_HEADER = "X-Signature-256"


class WebhookDefinition:
    """Configuration and per-request state for a single webhook.

    Example:
        webhook = WebhookDefinition("user.created", signing_secret="s3cret")
        webhook.add_property("user_id", "integer", {"required": True})
        webhook.handler(lambda wh: {"user_id": wh.get("user_id")})

        webhook.set_payload({"user_id": 42})
        webhook.execute()  # {"user_id": 42}
    """

    def __init__(
        self,
        name: str,
        signing_secret: str = "",
        store_headers: Optional[Iterable[str]] = None,
        signature_header_name: str = DEFAULT_SIGNATURE_HEADER,
        hash_algorithm: Optional[str] = None,
        strict: bool = False,
    ):
        """Create a definition.

        Args:
            name: Unique webhook name, used as the registry key.
            signing_secret: HMAC secret. Empty disables signature checks.
            store_headers: Inbound header names to capture per request.
            signature_header_name: Header that carries the signature.
            hash_algorithm: Overrides the global HMAC algorithm if set.
            strict: Enforce declared types and enums in ``validate()``.
        """
        if not name or not name.strip():
            raise ValueError("Webhook name must not be empty")
        self.name = name
        self.signing_secret = signing_secret or ""
        self.signature_header_name = signature_header_name
        self.hash_algorithm = hash_algorithm
        self.strict = strict
        self._properties: Dict[str, PropertySpec] = {}
        self._store_headers: List[str] = list(store_headers or [])
        self._payload: Dict[str, Any] = {}
        self._headers: Dict[str, Any] = {}
        self._metadata: Dict[str, Any] = {}
        self._handler: Optional[HandlerRef] = None

    def __repr__(self) -> str:
        return f"WebhookDefinition(name={self.name!r}, handler={self.handler_kind})"

    # Configuration

    def set_signing_secret(self, secret: str) -> "WebhookDefinition":
        self.signing_secret = secret or ""
        return self

    def set_signature_header(self, header_name: str) -> "WebhookDefinition":
        self.signature_header_name = header_name
        return self

    def has_signature_validation(self) -> bool:
        return bool(self.signing_secret)

    def without_signature_validation(self) -> "WebhookDefinition":
        self.signing_secret = ""
        return self

    def add_property(
        self,
        name: str,
        type: Union[str, List[str]] = "string",
        options: Optional[Dict[str, Any]] = None,
    ) -> "WebhookDefinition":
        """Declare an expected payload field.

        Args:
            name: Payload key.
            type: A type tag or a list of allowed tags.
            options: May carry ``enum`` (allowed values) and ``required``.
        """
        self._properties[name] = PropertySpec(type=type, options=dict(options or {}))
        return self

    def get_properties(self) -> Dict[str, PropertySpec]:
        return dict(self._properties)

    def required_properties(self) -> List[str]:
        return [name for name, spec in self._properties.items() if spec.required]

    def store_headers(self, headers: Iterable[str]) -> "WebhookDefinition":
        self._store_headers = list(headers)
        return self

    def get_store_headers(self) -> List[str]:
        return list(self._store_headers)

    def handler(self, handler: Any) -> "WebhookDefinition":
        """Set the handler: function, handler class, class path, or instance."""
        self._handler = HandlerRef.resolve(handler)
        return self

    def get_handler(self) -> Optional[HandlerRef]:
        return self._handler

    @property
    def handler_kind(self) -> Optional[HandlerKind]:
        return self._handler.kind if self._handler else None

    def set_metadata(self, metadata: Mapping[str, Any]) -> "WebhookDefinition":
        self._metadata = dict(metadata)
        return self

    def get_metadata(self) -> Dict[str, Any]:
        return self._metadata

    # Request data

    def set_payload(self, payload: Mapping[str, Any]) -> "WebhookDefinition":
        self._payload = dict(payload)
        return self

    def get_payload(self) -> Dict[str, Any]:
        return self._payload

    def get(self, key: str, default: Any = None) -> Any:
        return self._payload.get(key, default)

    def has(self, key: str) -> bool:
        return key in self._payload

    def set_headers(self, headers: Mapping[str, Any]) -> "WebhookDefinition":
        self._headers = dict(headers)
        return self

    def get_headers(self) -> Dict[str, Any]:
        return self._headers

    def get_header(self, name: str, default: Any = None) -> Any:
        return lookup_header(self._headers, name, default)

    # Validation and execution

    def validation_errors(self) -> List[str]:
        """List the ways the current payload breaks the declared properties.

        Properties flagged ``required`` must always be present. Types and
        enums are only checked when the definition is strict.
        """
        errors = []
        for name, spec in self._properties.items():
            if name not in self._payload:
                if spec.required:
                    errors.append(f"Missing required property: {name}")
                continue
            if self.strict:
                problem = spec.check(name, self._payload[name])
                if problem:
                    errors.append(problem)
        return errors

    def validate(self) -> bool:
        return not self.validation_errors()

    def execute(self, queue: Optional[JobQueue] = None) -> Any:
        """Validate the payload and run the handler.

        Args:
            queue: Where job handlers are submitted. Jobs run inline if omitted.

        Returns:
            Whatever the handler returns.

        Raises:
            NoHandlerError: If no handler is configured.
            WebhookValidationError: If ``validate()`` fails.
            InvalidHandlerError: If the handler cannot be invoked.
        """
        if self._handler is None:
            raise NoHandlerError(self.name)

        errors = self.validation_errors()
        if errors:
            raise WebhookValidationError(
                f"Webhook '{self.name}' payload is invalid: {'; '.join(errors)}", errors
            )

        return self._handler.invoke(self, queue)

    def invoke(self, arguments: Mapping[str, Any]) -> Any:
        """Run the handler directly with explicit input, outside a request.

        Function handlers are called with every argument bound by name, so
        parameter order does not matter and an absent optional property
        falls back to the parameter's default. Other handler kinds receive the definition
        with ``arguments`` as its payload.

        Raises:
            NoHandlerError: If no handler is configured.
            InvalidPayloadError: If a required property is missing.
        """
        if self._handler is None:
            raise NoHandlerError(self.name)

        for name in self.required_properties():
            if name not in arguments:
                raise InvalidPayloadError(f"Missing required parameter: {name}")

        if self._handler.kind is not HandlerKind.FUNCTION:
            return self.set_payload(arguments).execute()

        return self._handler.target(**dict(arguments))

    # Copies and serialization

    def clone(self) -> "WebhookDefinition":
        """Copy the configuration with empty request state."""
        twin = copy.copy(self)
        twin._properties = dict(self._properties)
        twin._store_headers = list(self._store_headers)
        twin._payload = {}
        twin._headers = {}
        twin._metadata = copy.deepcopy(self._metadata)
        return twin

    def to_array(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "properties": {
                name: spec.model_dump() for name, spec in self._properties.items()
            },
            "store_headers": list(self._store_headers),
            "payload": copy.deepcopy(self._payload),
            "headers": dict(self._headers),
            "metadata": copy.deepcopy(self._metadata),
        }

    @classmethod
    def from_array(cls, data: Mapping[str, Any]) -> "WebhookDefinition":
        """Rebuild a definition (without handler) from ``to_array`` output."""
        snapshot = WebhookSnapshot.model_validate(dict(data))
        webhook = cls(snapshot.name, store_headers=snapshot.store_headers)
        for name, spec in snapshot.properties.items():
            webhook.add_property(name, spec.type, spec.options)
        webhook.set_payload(snapshot.payload)
        webhook.set_headers(snapshot.headers)
        webhook.set_metadata(snapshot.metadata)
        return webhook

    def describe(self) -> WebhookDescription:
        return WebhookDescription(
            name=self.name,
            properties=self.get_properties(),
            required=self.required_properties(),
            store_headers=self.get_store_headers(),
            signature_header=self.signature_header_name,
            signed=self.has_signature_validation(),
        )
