"""Data models and exceptions for the notification pipeline.

Every error raised by the pipeline derives from NotificationError. Only
TransportError is retried; the others describe a malformed request and
surface immediately.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Tuple


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class ValidationError(NotificationError):
    """Raised when recipient or order data cannot be sanitized."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when a template cannot be rendered."""

    pass


class UnknownTemplateError(NotificationTemplateError):
    """Raised when the requested notification kind has no template."""

    pass


class UnsupportedProviderError(NotificationError):
    """Raised when a provider key is not in the configured provider table."""

    pass


class TransportError(NotificationError):
    """Raised by a transport when one send attempt fails."""

    pass


class DeliveryExhaustedError(NotificationError):
    """Raised when every delivery attempt failed.

    The last TransportError is available as ``last_error`` and as the
    exception's ``__cause__``.
    """

    def __init__(self, attempts: int, last_error: TransportError):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Failed to send email after {attempts} attempts: {last_error}")


class NotificationKind(str, Enum):
    """Order-lifecycle events that produce a notification."""

    ORDER_SUCCESS = "order-success"
    ORDER_FAILURE = "order-failure"
    ORDER_PENDING = "order-pending"
    ORDER_CANCELLED = "order-cancelled"
    ADMIN_NOTICE = "admin-notice"
    SHIPPING_NOTICE = "shipping-notice"


@dataclass(frozen=True)
class SanitizedRecipient:
    name: str
    email: str


@dataclass(frozen=True)
class OrderProduct:
    """One purchased line. Missing values are filled in by the templates."""

    name: Optional[Any] = None
    price: Optional[Any] = None
    quantity: Optional[Any] = None
    description: Optional[Any] = None
    image_link: Optional[Any] = None


@dataclass(frozen=True)
class ShippingAddress:
    state: Optional[Any] = None
    city: Optional[Any] = None
    line1: Optional[Any] = None
    line2: Optional[Any] = None
    postal_code: Optional[Any] = None


@dataclass(frozen=True)
class OrderSnapshot:
    """Order data captured when the notification was requested."""

    order_products: Tuple[OrderProduct, ...] = ()
    shipping_address: ShippingAddress = field(default_factory=ShippingAddress)
    number: str = "N/A"


@dataclass(frozen=True)
class RenderedMessage:
    """A complete e-mail ready for a transport. Never mutated after rendering."""

    sender: str
    to: str
    subject: str
    html: str


@dataclass(frozen=True)
class NotificationRequest:
    """What the order workflow asks the pipeline to announce.

    ``recipient`` and ``order`` are raw, untrusted mappings; they are only
    trusted after passing through the sanitizer.
    """

    kind: Any
    recipient: Any
    order: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of a successful delivery."""

    message_id: str
    attempt: int
    provider: str


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of a provider health check."""

    ok: bool
    message: str
    provider: Optional[str] = None


@dataclass(frozen=True)
class TestEmailResult:
    """Outcome of a diagnostic end-to-end send."""

    __test__ = False  # keep pytest from collecting this class

    ok: bool
    kind: str
    message_id: Optional[str] = None
    attempt: Optional[int] = None
    error: Optional[str] = None
