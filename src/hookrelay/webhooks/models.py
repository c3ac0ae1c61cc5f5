"""Webhook data models.

Pydantic schemas for property declarations, serialized webhook
definitions, and the dispatch outcomes returned to HTTP callers.
"""

from enum import Enum
from typing import Optional, Any, Dict, List, Union
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator


PROPERTY_TYPES = ("string", "integer", "number", "boolean", "array", "object", "null")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _matches_type(tag: str, value: Any) -> bool:
    # bool is an int subclass; keep it out of the numeric tags
    if tag == "string":
        return isinstance(value, str)
    if tag == "integer":
        return isinstance(value, int) and not isinstance(value, bool)
    if tag == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if tag == "boolean":
        return isinstance(value, bool)
    if tag == "array":
        return isinstance(value, (list, tuple))
    if tag == "object":
        return isinstance(value, dict)
    if tag == "null":
        return value is None
    return False


class PropertySpec(BaseModel):
    """Declared payload field: a type tag (or list of tags) plus options.

    Recognised options are ``enum`` (list of allowed literal values) and
    ``required`` (field must be present in the payload).
    """

    model_config = ConfigDict(frozen=True)

    type: Union[str, List[str]] = "string"
    options: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("type")
    @classmethod
    def _known_type(cls, value):
        tags = [value] if isinstance(value, str) else value
        if not tags:
            raise ValueError("property type must name at least one type")
        unknown = [tag for tag in tags if tag not in PROPERTY_TYPES]
        if unknown:
            raise ValueError(f"unknown property type(s): {', '.join(unknown)}")
        return value

    @property
    def types(self) -> List[str]:
        return [self.type] if isinstance(self.type, str) else list(self.type)

    @property
    def required(self) -> bool:
        return bool(self.options.get("required", False))

    @property
    def enum(self) -> Optional[List[Any]]:
        return self.options.get("enum")

    def check(self, name: str, value: Any) -> Optional[str]:
        """Return a problem description if ``value`` breaks this spec."""
        if not any(_matches_type(tag, value) for tag in self.types):
            return f"Property '{name}' must be of type {' | '.join(self.types)}"
        if self.enum is not None and value not in self.enum:
            allowed = ", ".join(str(v) for v in self.enum)
            return f"Property '{name}' must be one of: {allowed}"
        return None


class WebhookSnapshot(BaseModel):
    """Plain serialized form of a webhook definition (see ``to_array``)."""

    name: str
    properties: Dict[str, PropertySpec] = Field(default_factory=dict)
    store_headers: List[str] = Field(default_factory=list)
    payload: Dict[str, Any] = Field(default_factory=dict)
    headers: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class WebhookDescription(BaseModel):
    """Public schema of a registered webhook (no payload, no secret)."""

    name: str
    properties: Dict[str, PropertySpec]
    required: List[str]
    store_headers: List[str]
    signature_header: str
    signed: bool


class FailureKind(str, Enum):
    """Error codes returned to webhook callers."""

    NOT_FOUND = "webhook_not_found"
    VALIDATION_FAILED = "validation_failed"
    INVALID_PAYLOAD = "invalid_payload"
    INTERNAL_ERROR = "internal_error"


FAILURE_STATUS_CODES = {
    FailureKind.NOT_FOUND: 404,
    FailureKind.VALIDATION_FAILED: 400,
    FailureKind.INVALID_PAYLOAD: 400,
    FailureKind.INTERNAL_ERROR: 500,
}


class DispatchSuccess(BaseModel):
    """A webhook that ran to completion."""

    webhook: str
    result: Any = None
    processed_at: datetime = Field(default_factory=utcnow)

    @property
    def success(self) -> bool:
        return True

    @property
    def status_code(self) -> int:
        return 200

    def to_response(self) -> Dict[str, Any]:
        return {
            "success": True,
            "webhook": self.webhook,
            "result": self.result,
            "processed_at": self.processed_at.isoformat(),
        }


class DispatchFailure(BaseModel):
    """A webhook call that stopped at one of the pipeline stages."""

    error: FailureKind
    message: str

    @property
    def success(self) -> bool:
        return False

    @property
    def status_code(self) -> int:
        return FAILURE_STATUS_CODES[self.error]

    def to_response(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": self.error.value,
            "message": self.message,
        }


DispatchResult = Union[DispatchSuccess, DispatchFailure]


def lookup_header(headers: Dict[str, Any], name: str, default: Any = None) -> Any:
    """Find a header by exact name, falling back to a case-insensitive match."""
    if name in headers:
        return headers[name]
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return default
