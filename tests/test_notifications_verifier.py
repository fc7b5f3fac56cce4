"""Unit tests for the provider configuration check."""

import asyncio
import smtplib
from unittest.mock import MagicMock, Mock

import pytest

from order_notifier.notifications.providers import ProviderRegistry
from order_notifier.notifications.transport import SMTPConnector
from order_notifier.notifications.verifier import ConfigurationVerifier
from tests.helpers import make_provider_config


def build_verifier(mock_smtp=None, factory=None):
    factory = factory or Mock(return_value=mock_smtp)
    registry = ProviderRegistry(
        {"mailtrap": make_provider_config()},
        default_provider="mailtrap",
        connector=SMTPConnector(smtp_factory=factory),
    )
    return ConfigurationVerifier(registry)


def test_verify_success():
    mock_smtp = MagicMock()
    mock_smtp.noop.return_value = (250, b"2.0.0 OK")

    result = asyncio.run(build_verifier(mock_smtp).verify())

    assert result.ok is True
    assert result.message == "Email configuration is valid"
    assert result.provider == "mailtrap"
    mock_smtp.login.assert_called_once_with("user@example.com", "secret")
    mock_smtp.noop.assert_called_once()
    mock_smtp.quit.assert_called_once()


@pytest.mark.parametrize("code", [421, 550])
def test_verify_rejected_noop_is_failure(code):
    """Test a server refusing NOOP after login is reported as a failure."""
    mock_smtp = MagicMock()
    mock_smtp.noop.return_value = (code, b"Service not available")

    result = asyncio.run(build_verifier(mock_smtp).verify())

    assert result.ok is False
    assert f"answered NOOP with {code}" in result.message
    assert result.provider == "mailtrap"
    mock_smtp.quit.assert_called_once()


def test_verify_authentication_failure():
    mock_smtp = MagicMock()
    mock_smtp.login.side_effect = smtplib.SMTPAuthenticationError(535, b"Bad credentials")

    result = asyncio.run(build_verifier(mock_smtp).verify())

    assert result.ok is False
    assert "Bad credentials" in result.message
    assert result.provider == "mailtrap"
    mock_smtp.noop.assert_not_called()


def test_verify_unreachable_host():
    factory = Mock(side_effect=OSError("Name or service not known"))

    result = asyncio.run(build_verifier(factory=factory).verify())

    assert result.ok is False
    assert "Network error" in result.message


def test_verify_unknown_provider_does_not_raise():
    result = asyncio.run(build_verifier(MagicMock()).verify("yahoo"))

    assert result.ok is False
    assert result.provider == "yahoo"
    assert "Unsupported email provider" in result.message


def test_verify_unexpected_error_does_not_raise():
    mock_smtp = MagicMock()
    mock_smtp.noop.side_effect = RuntimeError("unexpected")

    result = asyncio.run(build_verifier(mock_smtp).verify())

    assert result.ok is False
    assert result.message == "unexpected"
