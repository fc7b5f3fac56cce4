"""Transactional notification pipeline for order-lifecycle events.

This package provides the complete notification pipeline:
- sanitize: Validates and normalizes raw recipient/order data
- TemplateRenderer: Jinja2 rendering, one template per notification kind
- ProviderRegistry / SMTPTransport: provider table and SMTP delivery
- DeliveryExecutor: bounded retries with exponential backoff
- ConfigurationVerifier: non-raising provider health check
- NotificationService: the facade used by the order workflow
"""

from .delivery import DeliveryExecutor, backoff_delay
from .models import (
    DeliveryExhaustedError,
    DeliveryResult,
    NotificationError,
    NotificationKind,
    NotificationRequest,
    NotificationTemplateError,
    OrderProduct,
    OrderSnapshot,
    RenderedMessage,
    SanitizedRecipient,
    ShippingAddress,
    TestEmailResult,
    TransportError,
    UnknownTemplateError,
    UnsupportedProviderError,
    ValidationError,
    VerificationResult,
)
from .providers import ProviderRegistry
from .sanitizer import sanitize
from .service import (
    NotificationService,
    build_notification_service,
    build_renderer,
    build_sender_address,
)
from .templates import TEMPLATE_TABLE, TemplateRenderer
from .transport import SMTPConnector, SMTPTransport, TransportHandle
from .verifier import ConfigurationVerifier

__all__ = [
    # Main service
    "NotificationService",
    "build_notification_service",
    "build_renderer",
    # Components
    "sanitize",
    "TemplateRenderer",
    "TEMPLATE_TABLE",
    "ProviderRegistry",
    "SMTPConnector",
    "SMTPTransport",
    "TransportHandle",
    "DeliveryExecutor",
    "ConfigurationVerifier",
    # Models and results
    "NotificationKind",
    "NotificationRequest",
    "SanitizedRecipient",
    "OrderProduct",
    "OrderSnapshot",
    "ShippingAddress",
    "RenderedMessage",
    "DeliveryResult",
    "VerificationResult",
    "TestEmailResult",
    # Exceptions
    "NotificationError",
    "ValidationError",
    "NotificationTemplateError",
    "UnknownTemplateError",
    "UnsupportedProviderError",
    "TransportError",
    "DeliveryExhaustedError",
    # Utilities
    "backoff_delay",
    "build_sender_address",
]
