"""Webhook error types.

Accessors and handler resolution raise these directly. The dispatch
pipeline is the only place they are turned into HTTP-style responses.
"""


class WebhookError(Exception):
    """Base class for all webhook errors."""


class WebhookNotFoundError(WebhookError, LookupError):
    """No webhook is registered under the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Webhook '{name}' not found.")


class WebhookValidationError(WebhookError):
    """Signature mismatch or a payload that failed validation."""

    def __init__(self, message: str, errors: list = None):
        self.errors = list(errors or [])
        super().__init__(message)


class InvalidPayloadError(WebhookError, ValueError):
    """The request body or handler arguments could not be used."""


class NoHandlerError(WebhookError):
    """A webhook was executed without a handler configured."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No handler defined for webhook '{name}'")


class InvalidHandlerError(WebhookError, TypeError):
    """The configured handler cannot be invoked."""
