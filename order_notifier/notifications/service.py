"""Notification service: the entry point used by the order workflow.

Coordinates the notification flow for one request:
1. Sanitize the raw recipient and order snapshot
2. Render the template for the requested kind
3. Deliver through the configured provider with retry/backoff

Malformed requests fail before any send attempt. Transport failures are
retried by the DeliveryExecutor; only DeliveryExhaustedError reaches the
caller, and there is no dead-letter store behind it.
"""

import asyncio
import logging
from typing import Iterable, List, Optional, Union
from uuid import uuid4

from order_notifier.config.environment import EnvironmentConfig
from order_notifier.config.exceptions import ConfigurationError
from order_notifier.config.models import NotifierConfig, TemplateConfig
from order_notifier.config.providers import ProviderConfig
from order_notifier.logging import get_logger
from order_notifier.logging.context import log_context

from .delivery import DeliveryExecutor, Sleep
from .models import (
    DeliveryResult,
    NotificationError,
    NotificationKind,
    NotificationRequest,
    RenderedMessage,
    TestEmailResult,
    UnknownTemplateError,
    VerificationResult,
)
from .providers import ProviderRegistry
from .sanitizer import sanitize
from .templates import TemplateRenderer
from .transport import SMTPConnector
from .verifier import ConfigurationVerifier

logger = get_logger(__name__, component="notification")

TEST_RECIPIENT_NAME = "Test User"

TEST_ORDER = {
    "orderProducts": [
        {
            "name": "Test Product",
            "price": "$99.99",
            "quantity": 1,
            "description": "Test product description",
            "image_link": "https://via.placeholder.com/150",
        }
    ],
    "shipping": {
        "address": {
            "state": "Test State",
            "city": "Test City",
            "line1": "Test Address Line 1",
            "line2": "Test Address Line 2",
            "postal_code": "12345",
        }
    },
    "number": "TEST-ORDER-123",
}


def build_test_request(email: str, kind: Union[str, NotificationKind]) -> NotificationRequest:
    """Compose the canned request used by diagnostic sends and previews."""
    return NotificationRequest(
        kind=kind,
        recipient={"name": TEST_RECIPIENT_NAME, "email": email},
        order=TEST_ORDER,
    )


def build_sender_address(
    template_config: TemplateConfig, provider_config: Optional[ProviderConfig] = None
) -> str:
    """Build the From header for outgoing notifications.

    Uses the configured sender override when present, otherwise the sender
    display name with the provider login when that login is an address, and
    finally a noreply address on the public site's domain. Previews pass no
    provider and get the noreply address.
    """
    if template_config.sender:
        return template_config.sender

    if provider_config is not None and "@" in provider_config.username:
        sender_email = provider_config.username
    else:
        host = template_config.site_url.split("://", 1)[-1].split("/", 1)[0]
        sender_email = f"noreply@{host}"

    return f'"{template_config.sender_name}" <{sender_email}>'


class NotificationService:
    """Sanitizes, renders and delivers order notifications."""

    def __init__(
        self,
        renderer: TemplateRenderer,
        executor: DeliveryExecutor,
        verifier: Optional[ConfigurationVerifier] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize notification service.

        Args:
            renderer: Template renderer for all notification kinds
            executor: Delivery executor bound to a provider registry
            verifier: Configuration verifier (built from the executor's registry if None)
            logger_instance: Logger instance (uses module logger if None)
        """
        self.renderer = renderer
        self.executor = executor
        self.verifier = verifier or ConfigurationVerifier(executor.registry)
        self.logger = logger_instance or logger

    def prepare(self, request: NotificationRequest) -> RenderedMessage:
        """Sanitize and render a request without sending it.

        Raises:
            ValidationError: If the recipient or order is malformed
            UnknownTemplateError: If the kind is not supported
        """
        recipient, order = sanitize(request.recipient, request.order)
        message = self.renderer.render(request.kind, recipient, order)
        self.logger.debug(
            f"Rendered {message.subject!r} for {recipient.email}",
            extra={"event": "notification.render.completed"},
        )
        return message

    async def notify(
        self, request: NotificationRequest, provider_key: Optional[str] = None
    ) -> DeliveryResult:
        """Deliver one notification.

        Args:
            request: Notification request from the order workflow
            provider_key: Provider override (the configured default when None)

        Returns:
            DeliveryResult of the successful attempt

        Raises:
            ValidationError, UnknownTemplateError, UnsupportedProviderError:
                Immediately, without any send attempt
            DeliveryExhaustedError: When every attempt failed
        """
        kind = getattr(request.kind, "value", request.kind)
        with log_context(notification_id=uuid4().hex[:12], kind=kind):
            try:
                message = self.prepare(request)
            except NotificationError as e:
                self.logger.error(
                    f"Rejected {kind} notification: {e}",
                    extra={"event": "notification.rejected", "error_type": type(e).__name__},
                )
                raise
            return await self.executor.deliver(message, provider_key)

    async def notify_many(
        self, requests: Iterable[NotificationRequest]
    ) -> List[Union[DeliveryResult, NotificationError]]:
        """Deliver several notifications concurrently.

        Deliveries are independent and complete in no particular order. The
        returned list is aligned with ``requests``: each entry is either the
        DeliveryResult or the NotificationError raised for that request.
        Any other exception propagates.
        """
        outcomes = await asyncio.gather(
            *(self.notify(request) for request in requests), return_exceptions=True
        )

        for outcome in outcomes:
            if isinstance(outcome, BaseException) and not isinstance(outcome, NotificationError):
                raise outcome

        sent = sum(1 for outcome in outcomes if isinstance(outcome, DeliveryResult))
        self.logger.info(
            f"Notification batch complete: {sent} sent, {len(outcomes) - sent} failed "
            f"(total: {len(outcomes)})",
            extra={"event": "notification.batch.completed"},
        )
        return list(outcomes)

    async def verify(self, provider_key: Optional[str] = None) -> VerificationResult:
        """Check provider connectivity. Never raises."""
        return await self.verifier.verify(provider_key)

    async def send_test_email(
        self,
        email: str,
        kind: Union[str, NotificationKind] = NotificationKind.ORDER_SUCCESS,
        provider_key: Optional[str] = None,
    ) -> TestEmailResult:
        """Send the canned test notification through the full pipeline.

        Never raises: failures are reported in the returned TestEmailResult.
        """
        kind_value = getattr(kind, "value", kind)
        try:
            result = await self.notify(build_test_request(email, kind), provider_key)
        except NotificationError as e:
            return TestEmailResult(ok=False, kind=str(kind_value), error=str(e))
        except Exception as e:
            self.logger.error(
                f"Unexpected error sending test email: {e}",
                exc_info=True,
                extra={"event": "notification.test.failed"},
            )
            return TestEmailResult(ok=False, kind=str(kind_value), error=str(e))

        return TestEmailResult(
            ok=True, kind=str(kind_value), message_id=result.message_id, attempt=result.attempt
        )


def build_renderer(
    template_config: TemplateConfig, provider_config: Optional[ProviderConfig] = None
) -> TemplateRenderer:
    """Build the renderer used for both real sends and previews.

    Raises:
        ConfigurationError: If a subject override names an unknown kind
    """
    try:
        return TemplateRenderer(
            sender=build_sender_address(template_config, provider_config),
            site_url=template_config.site_url,
            subjects=template_config.subjects,
            autoescape=template_config.autoescape,
        )
    except UnknownTemplateError as e:
        raise ConfigurationError(
            "Invalid subject override in templates.subjects",
            errors=[str(e)],
            suggestions=["Use one of: " + ", ".join(k.value for k in NotificationKind)],
        )


def build_notification_service(
    notifier_config: NotifierConfig,
    env_config: EnvironmentConfig,
    connector: Optional[SMTPConnector] = None,
    sleep: Optional[Sleep] = None,
) -> NotificationService:
    """Wire a NotificationService from loaded configuration.

    Raises:
        ConfigurationError: If a subject override names an unknown kind
    """
    renderer = build_renderer(notifier_config.templates, env_config.provider_config)
    registry = ProviderRegistry(
        env_config.providers,
        default_provider=env_config.provider,
        connector=connector,
    )
    executor = DeliveryExecutor(
        registry,
        max_attempts=notifier_config.delivery.max_attempts,
        backoff_unit=notifier_config.delivery.backoff_unit_seconds,
        sleep=sleep,
    )
    return NotificationService(renderer=renderer, executor=executor)
