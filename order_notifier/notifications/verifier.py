"""Provider health check for operational tooling."""

import asyncio
from typing import Optional

from order_notifier.logging import get_logger

from .models import NotificationError, TransportError, VerificationResult
from .providers import ProviderRegistry

logger = get_logger(__name__, component="verifier")


class ConfigurationVerifier:
    """Checks that a provider accepts a connection and the configured login.

    ``verify`` never raises: every outcome is returned as a VerificationResult.
    """

    def __init__(self, registry: ProviderRegistry):
        self.registry = registry

    def _handshake(self, provider_key: Optional[str]) -> str:
        config = self.registry.get(provider_key)
        with self.registry.connector.session(config) as smtp:
            code, reply = smtp.noop()
        if code != 250:
            raise TransportError(f"{config.host} answered NOOP with {code}: {reply!r}")
        return config.key

    async def verify(self, provider_key: Optional[str] = None) -> VerificationResult:
        """Connect, authenticate and NOOP against a provider.

        Args:
            provider_key: Provider to check (the registry default when None)

        Returns:
            VerificationResult with ok=True when the handshake succeeded
        """
        requested = provider_key if provider_key is not None else self.registry.default_provider
        try:
            provider = await asyncio.to_thread(self._handshake, provider_key)
        except NotificationError as e:
            logger.warning(
                f"Email configuration check failed for {requested}: {e}",
                extra={"event": "provider.verify.failed", "provider": requested},
            )
            return VerificationResult(ok=False, message=str(e), provider=requested)
        except Exception as e:
            logger.error(
                f"Unexpected error verifying {requested}: {e}",
                exc_info=True,
                extra={"event": "provider.verify.failed", "provider": requested},
            )
            return VerificationResult(ok=False, message=str(e), provider=requested)

        logger.info(
            f"Email configuration is valid for {provider}",
            extra={"event": "provider.verify.succeeded", "provider": provider},
        )
        return VerificationResult(ok=True, message="Email configuration is valid", provider=provider)
