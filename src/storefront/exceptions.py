"""Storefront-specific errors layered over Protean's exception hierarchy.

Stock and state-machine failures subclass Protean's ``ValidationError`` so
they carry the same ``messages`` mapping and surface as 400 responses.
"""

from protean.exceptions import ValidationError


class InsufficientStock(ValidationError):
    """Requested quantity exceeds available stock and backorders are off."""


class InvalidTransition(ValidationError):
    """The order state machine does not allow the requested move."""


class PermissionDenied(Exception):
    def __init__(self, messages):
        self.messages = messages
        super().__init__(messages)


class PaymentError(Exception):
    """A payment gateway call failed."""

    def __init__(self, message: str, gateway: str | None = None):
        self.message = message
        self.gateway = gateway
        super().__init__(message)


class WebhookSignatureError(Exception):
    """A webhook payload could not be authenticated."""
