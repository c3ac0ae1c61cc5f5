"""Inbound webhook dispatch pipeline.

Each call runs, stopping at the first failure:

    lookup -> extract payload -> store headers -> verify signature -> execute

The registered definition is never mutated: the pipeline populates and
executes a per-request clone, so concurrent requests for the same webhook
do not share payload or header state.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple
from urllib.parse import parse_qsl

from hookrelay.core.settings import WebhookSettings, default_settings

from .definition import WebhookDefinition
from .exceptions import InvalidPayloadError, WebhookNotFoundError, WebhookValidationError
from .handlers import JobQueue
from .models import (
    DispatchFailure,
    DispatchResult,
    DispatchSuccess,
    FailureKind,
    lookup_header,
)
from .registry import WebhookRegistry
from .security import is_supported_algorithm, verify_signature

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An internal error occurred while processing the webhook."


def collapse_fields(pairs: Iterable[Tuple[str, Any]]) -> Dict[str, Any]:
    """Turn ``(key, value)`` pairs into a dict; repeated keys become lists."""
    fields: Dict[str, Any] = {}
    for key, value in pairs:
        if key not in fields:
            fields[key] = value
        elif isinstance(fields[key], list):
            fields[key].append(value)
        else:
            fields[key] = [fields[key], value]
    return fields


@dataclass
class InboundRequest:
    """Framework-neutral view of an inbound webhook request."""

    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, Any] = field(default_factory=dict)
    content_type: Optional[str] = None

    @classmethod
    def from_json(cls, payload: Any, headers: Optional[Mapping[str, str]] = None) -> "InboundRequest":
        """Build a JSON request; the body is the compact JSON encoding."""
        body = json.dumps(payload, separators=(",", ":")).encode("utf-8")
        return cls(body=body, headers=dict(headers or {}), content_type="application/json")

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return lookup_header(dict(self.headers), name, default)

    def has_header(self, name: str) -> bool:
        return self.header(name) is not None

    @property
    def media_type(self) -> str:
        raw = self.content_type or self.header("Content-Type") or ""
        return raw.split(";", 1)[0].strip().lower()

    def is_json(self) -> bool:
        media_type = self.media_type
        return media_type == "application/json" or media_type.endswith("+json")


class DispatchPipeline:
    """Runs inbound requests against registered webhooks.

    Example:
        pipeline = DispatchPipeline(registry, settings)
        result = pipeline.dispatch("user.created", InboundRequest.from_json({"user_id": 42}))
        result.status_code  # 200
    """

    def __init__(
        self,
        registry: WebhookRegistry,
        settings: Optional[WebhookSettings] = None,
        job_queue: Optional[JobQueue] = None,
    ):
        """Initialize the pipeline.

        Args:
            registry: Where webhook definitions are looked up.
            settings: Global options; the process-wide settings if omitted.
            job_queue: Default destination for job handlers.
        """
        self.registry = registry
        self.settings = settings or default_settings()
        self.job_queue = job_queue

    def dispatch(
        self,
        name: str,
        request: InboundRequest,
        job_queue: Optional[JobQueue] = None,
    ) -> DispatchResult:
        """Process one inbound request.

        Args:
            name: Target webhook name.
            request: The inbound request.
            job_queue: Overrides the pipeline's job queue for this call.

        Returns:
            ``DispatchSuccess`` or ``DispatchFailure``. Never raises for
            handler or request errors.
        """
        try:
            webhook = self.registry.get_webhook(name).clone()
            webhook.set_payload(self.extract_payload(request))
            webhook.set_headers(self.collect_headers(webhook, request))

            if self.should_verify(webhook, request):
                self.verify(webhook, request)

            result = webhook.execute(job_queue or self.job_queue)

        except WebhookNotFoundError as e:
            logger.info(f"Webhook not found: {name}")
            return DispatchFailure(error=FailureKind.NOT_FOUND, message=str(e))
        except WebhookValidationError as e:
            logger.warning(f"Webhook '{name}' rejected: {e}")
            return DispatchFailure(error=FailureKind.VALIDATION_FAILED, message=str(e))
        except InvalidPayloadError as e:
            logger.warning(f"Invalid payload for webhook '{name}': {e}")
            return DispatchFailure(error=FailureKind.INVALID_PAYLOAD, message=str(e))
        except Exception:
            logger.exception(f"Error processing webhook '{name}'")
            return DispatchFailure(error=FailureKind.INTERNAL_ERROR, message=INTERNAL_ERROR_MESSAGE)

        logger.info(f"Processed webhook '{name}'")
        return DispatchSuccess(webhook=name, result=result)

    def extract_payload(self, request: InboundRequest) -> Dict[str, Any]:
        """Parse the payload: a JSON object, or the query and form fields.

        Raises:
            InvalidPayloadError: For malformed JSON or a non-object JSON body.
        """
        if request.is_json():
            if not request.body.strip():
                return {}
            try:
                data = json.loads(request.body)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise InvalidPayloadError("Malformed JSON payload") from e
            if not isinstance(data, dict):
                raise InvalidPayloadError("JSON payload must be an object")
            return data

        fields = dict(request.query)
        if request.media_type == "application/x-www-form-urlencoded" and request.body:
            try:
                text = request.body.decode("utf-8")
            except UnicodeDecodeError as e:
                raise InvalidPayloadError("Form payload is not valid UTF-8") from e
            fields.update(collapse_fields(parse_qsl(text, keep_blank_values=True)))
        return fields

    def collect_headers(self, webhook: WebhookDefinition, request: InboundRequest) -> Dict[str, str]:
        """Copy the webhook's configured headers that the request carries."""
        stored = {}
        for name in webhook.get_store_headers():
            value = request.header(name)
            if value is not None:
                stored[name] = value
        return stored

    def should_verify(self, webhook: WebhookDefinition, request: InboundRequest) -> bool:
        """Decide whether the signature check runs.

        It runs only when verification is enabled globally, the webhook has
        a secret, and the request carries the signature header.

        Raises:
            WebhookValidationError: If signatures are required and the
                header is missing.
        """
        if not self.settings.verify_signatures or not webhook.has_signature_validation():
            return False

        if request.has_header(webhook.signature_header_name):
            return True

        if self.settings.require_signatures:
            raise WebhookValidationError("Missing webhook signature header")
        return False

    def verify(self, webhook: WebhookDefinition, request: InboundRequest) -> None:
        """Check the request signature in constant time.

        Raises:
            WebhookValidationError: If the signature does not match.
        """
        algorithm = webhook.hash_algorithm or self.settings.hash_algorithm
        if not is_supported_algorithm(algorithm):
            raise RuntimeError(f"Webhook '{webhook.name}' uses unsupported hash algorithm")

        signature = request.header(webhook.signature_header_name)
        if not verify_signature(request.body, signature, webhook.signing_secret, algorithm):
            logger.warning(f"Invalid signature for webhook '{webhook.name}'")
            raise WebhookValidationError("Invalid webhook signature")
