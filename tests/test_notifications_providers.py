"""Unit tests for the provider registry."""

import pytest

from order_notifier.notifications.models import UnsupportedProviderError
from order_notifier.notifications.providers import ProviderRegistry
from order_notifier.notifications.transport import SMTPConnector, SMTPTransport
from tests.helpers import ScriptedTransport, make_provider_config, make_registry


@pytest.fixture
def registry():
    return ProviderRegistry(
        {
            "gmail": make_provider_config("gmail", secure=True, starttls=False, port=465),
            "mailtrap": make_provider_config("mailtrap"),
        },
        default_provider="gmail",
    )


def test_keys(registry):
    assert registry.keys == ("gmail", "mailtrap")


def test_get_default_provider(registry):
    assert registry.get().key == "gmail"


def test_get_explicit_provider(registry):
    assert registry.get("mailtrap").port == 2525


def test_resolve_builds_smtp_transport(registry):
    handle = registry.resolve("mailtrap")
    assert isinstance(handle, SMTPTransport)
    assert handle.config.key == "mailtrap"
    assert handle.connector is registry.connector


def test_resolve_builds_new_handle_each_call(registry):
    assert registry.resolve() is not registry.resolve()


def test_custom_connector_shared_by_transports():
    connector = SMTPConnector()
    registry = ProviderRegistry({"mailtrap": make_provider_config()}, "mailtrap", connector=connector)
    assert registry.resolve().connector is connector


def test_transport_factory_override():
    transport = ScriptedTransport()
    assert make_registry(transport).resolve() is transport


def test_unknown_provider_rejected(registry):
    with pytest.raises(UnsupportedProviderError) as exc_info:
        registry.resolve("yahoo")

    message = str(exc_info.value)
    assert "Unsupported email provider: 'yahoo'" in message
    assert "gmail, mailtrap" in message


def test_missing_default_rejected():
    registry = ProviderRegistry({"mailtrap": make_provider_config()})
    with pytest.raises(UnsupportedProviderError):
        registry.get()


def test_empty_registry_reports_none_configured():
    with pytest.raises(UnsupportedProviderError, match="none configured"):
        ProviderRegistry({}, default_provider="gmail").get()


def test_registry_copies_provider_table():
    providers = {"mailtrap": make_provider_config()}
    registry = ProviderRegistry(providers, "mailtrap")
    providers.clear()
    assert registry.keys == ("mailtrap",)
