"""Delivery executor: sends a rendered message with bounded retries.

Attempt ``n`` that fails with a TransportError is followed by a wait of
``2 ** n`` backoff units before attempt ``n + 1``. Both the send (run in a
worker thread) and the wait are awaited, so a notification that is backing
off never blocks other notifications on the same event loop.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from order_notifier.logging import get_logger
from order_notifier.logging.context import log_context

from .models import DeliveryExhaustedError, DeliveryResult, RenderedMessage, TransportError
from .providers import ProviderRegistry

logger = get_logger(__name__, component="delivery")

Sleep = Callable[[float], Awaitable[None]]


def backoff_delay(attempt: int, unit: float = 1.0) -> float:
    """Return the wait after failed attempt ``attempt`` (counted from 1)."""
    return (2 ** attempt) * unit


class DeliveryExecutor:
    """Sends messages through the provider registry with exponential backoff."""

    def __init__(
        self,
        registry: ProviderRegistry,
        max_attempts: int = 3,
        backoff_unit: float = 1.0,
        sleep: Optional[Sleep] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize the executor.

        Args:
            registry: Provider registry used to obtain a transport per attempt
            max_attempts: Default number of attempts, first one included
            backoff_unit: Seconds in one backoff time unit
            sleep: Awaitable sleep used between attempts (asyncio.sleep if None)
            logger_instance: Logger instance (uses module logger if None)
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.registry = registry
        self.max_attempts = max_attempts
        self.backoff_unit = backoff_unit
        self.sleep = sleep or asyncio.sleep
        self.logger = logger_instance or logger

    async def deliver(
        self,
        message: RenderedMessage,
        provider_key: Optional[str] = None,
        max_attempts: Optional[int] = None,
    ) -> DeliveryResult:
        """Deliver ``message``, retrying transport failures.

        Args:
            message: Message to send
            provider_key: Provider to use (the registry default when None)
            max_attempts: Overrides the executor's default attempt count

        Returns:
            DeliveryResult with the message id and the succeeding attempt number

        Raises:
            UnsupportedProviderError: If the provider is not configured (no attempt made)
            DeliveryExhaustedError: If every attempt failed
            ValueError: If max_attempts is lower than 1
        """
        attempts = self.max_attempts if max_attempts is None else max_attempts
        if attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        provider = self.registry.get(provider_key).key
        last_error: Optional[TransportError] = None

        with log_context(provider=provider, recipient=message.to):
            for attempt in range(1, attempts + 1):
                handle = self.registry.resolve(provider)
                self.logger.debug(
                    f"Sending to {message.to} (attempt {attempt}/{attempts})",
                    extra={"event": "notification.send.attempt", "attempt": attempt},
                )

                try:
                    message_id = await asyncio.to_thread(handle.send, message)
                except TransportError as e:
                    last_error = e
                    if attempt < attempts:
                        delay = backoff_delay(attempt, self.backoff_unit)
                        self.logger.warning(
                            f"Delivery to {message.to} failed (attempt {attempt}/{attempts}), "
                            f"retrying in {delay:.1f}s: {e}",
                            extra={
                                "event": "notification.send.failure",
                                "attempt": attempt,
                                "error_type": type(e).__name__,
                                "retry_remaining": True,
                                "backoff_seconds": delay,
                            },
                        )
                        await self.sleep(delay)
                    else:
                        self.logger.warning(
                            f"Delivery to {message.to} failed (attempt {attempt}/{attempts}): {e}",
                            extra={
                                "event": "notification.send.failure",
                                "attempt": attempt,
                                "error_type": type(e).__name__,
                                "retry_remaining": False,
                            },
                        )
                    continue

                self.logger.info(
                    f"Notification sent to {message.to} via {provider} (attempts: {attempt})",
                    extra={
                        "event": "notification.send.success",
                        "attempt": attempt,
                        "message_id": message_id,
                    },
                )
                return DeliveryResult(message_id=message_id, attempt=attempt, provider=provider)

            self.logger.error(
                f"Delivery to {message.to} exhausted after {attempts} attempts: {last_error}",
                extra={
                    "event": "notification.send.exhausted",
                    "attempts": attempts,
                    "subject": message.subject,
                },
            )
            raise DeliveryExhaustedError(attempts, last_error) from last_error
