"""Provider registry: maps a provider key to a transport handle."""

from typing import Callable, Dict, Mapping, Optional

from order_notifier.config.providers import ProviderConfig

from .models import UnsupportedProviderError
from .transport import SMTPConnector, SMTPTransport, TransportHandle

TransportFactory = Callable[[ProviderConfig], TransportHandle]


class ProviderRegistry:
    """Read-only table of configured providers.

    ``resolve`` builds a new handle on every call through ``transport_factory``
    (an SMTPTransport sharing this registry's connector by default). The table
    is never modified after construction.
    """

    def __init__(
        self,
        providers: Mapping[str, ProviderConfig],
        default_provider: Optional[str] = None,
        connector: Optional[SMTPConnector] = None,
        transport_factory: Optional[TransportFactory] = None,
    ):
        self._providers: Dict[str, ProviderConfig] = dict(providers)
        self.default_provider = default_provider
        self.connector = connector or SMTPConnector()
        self.transport_factory = transport_factory or (
            lambda config: SMTPTransport(config, connector=self.connector)
        )

    @property
    def keys(self):
        return tuple(self._providers)

    def get(self, provider_key: Optional[str] = None) -> ProviderConfig:
        """Return the configuration of a provider (the default one when None).

        Raises:
            UnsupportedProviderError: If the key is not configured
        """
        key = provider_key if provider_key is not None else self.default_provider
        try:
            return self._providers[key]
        except (KeyError, TypeError):
            supported = ", ".join(self._providers) or "none configured"
            raise UnsupportedProviderError(
                f"Unsupported email provider: {key!r}. Supported providers: {supported}"
            ) from None

    def resolve(self, provider_key: Optional[str] = None) -> TransportHandle:
        """Create a transport handle for a provider.

        Raises:
            UnsupportedProviderError: If the key is not configured
        """
        return self.transport_factory(self.get(provider_key))
