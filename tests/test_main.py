"""Unit tests for the command-line entry point.

Tests main() including:
- Argument parsing for verify, send-test and preview
- Log level priority (CLI > env > config)
- Exit codes for success, failure and configuration errors
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from order_notifier.config.environment import EnvironmentConfig
from order_notifier.config.exceptions import ConfigurationError
from order_notifier.config.models import NotifierConfig
from order_notifier.main import build_parser, load_runtime_config, main
from order_notifier.notifications.models import TestEmailResult, VerificationResult
from tests.helpers import make_provider_config


@pytest.fixture
def env_config():
    return EnvironmentConfig(
        provider="mailtrap",
        providers={"mailtrap": make_provider_config()},
    )


@pytest.fixture
def mock_service():
    service = MagicMock()
    service.verify = AsyncMock()
    service.send_test_email = AsyncMock()
    return service


@pytest.fixture
def patched_runtime(env_config, mock_service):
    """Patch configuration loading, logging setup and service wiring."""
    with patch("order_notifier.main.load_runtime_config") as mock_load, patch(
        "order_notifier.main.configure_logging"
    ) as mock_logging, patch(
        "order_notifier.main.build_notification_service", return_value=mock_service
    ) as mock_build:
        mock_load.return_value = (NotifierConfig(), env_config)
        yield mock_load, mock_logging, mock_build


class TestLoadRuntimeConfig:
    """Test suite for load_runtime_config helper."""

    def test_cli_level_wins(self, env_config):
        env_config.log_level = "WARNING"
        with patch("order_notifier.main.load_config", return_value=(NotifierConfig(), env_config)):
            _, loaded = load_runtime_config(None, "DEBUG")
        assert loaded.log_level == "DEBUG"

    def test_env_level_beats_config(self, env_config):
        env_config.log_level = "WARNING"
        notifier_config = NotifierConfig.model_validate({"logging": {"level": "ERROR"}})
        with patch("order_notifier.main.load_config", return_value=(notifier_config, env_config)):
            _, loaded = load_runtime_config(None, None)
        assert loaded.log_level == "WARNING"

    def test_config_level_used_last(self, env_config):
        notifier_config = NotifierConfig.model_validate({"logging": {"level": "ERROR"}})
        with patch("order_notifier.main.load_config", return_value=(notifier_config, env_config)):
            _, loaded = load_runtime_config(None, None)
        assert loaded.log_level == "ERROR"


class TestParser:
    """Test CLI argument parsing."""

    def test_send_test_defaults(self):
        args = build_parser().parse_args(["send-test", "ops@example.com"])
        assert args.command == "send-test"
        assert args.email == "ops@example.com"
        assert args.kind == "order-success"
        assert args.provider is None

    def test_global_options(self):
        args = build_parser().parse_args(
            ["--log-level", "DEBUG", "verify", "--provider", "gmail"]
        )
        assert args.log_level == "DEBUG"
        assert args.provider == "gmail"

    def test_unknown_kind_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["preview", "order-refunded"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestMain:
    """Test exit codes and output of main()."""

    def test_verify_success(self, patched_runtime, mock_service, capsys):
        mock_service.verify.return_value = VerificationResult(
            ok=True, message="Email configuration is valid", provider="mailtrap"
        )

        assert main(["verify"]) == 0
        assert "✓ mailtrap: Email configuration is valid" in capsys.readouterr().out
        mock_service.verify.assert_awaited_once_with(None)

    def test_verify_failure(self, patched_runtime, mock_service, capsys):
        mock_service.verify.return_value = VerificationResult(
            ok=False, message="SMTP error via mailtrap: 535", provider="mailtrap"
        )

        assert main(["verify", "--provider", "mailtrap"]) == 1
        assert "✗ mailtrap" in capsys.readouterr().out
        mock_service.verify.assert_awaited_once_with("mailtrap")

    def test_send_test_success(self, patched_runtime, mock_service, capsys):
        mock_service.send_test_email.return_value = TestEmailResult(
            ok=True, kind="shipping-notice", message_id="<m@example.com>", attempt=1
        )

        assert main(["send-test", "ops@example.com", "--kind", "shipping-notice"]) == 0
        mock_service.send_test_email.assert_awaited_once_with(
            "ops@example.com", "shipping-notice", None
        )
        assert "<m@example.com>" in capsys.readouterr().out

    def test_send_test_failure(self, patched_runtime, mock_service, capsys):
        mock_service.send_test_email.return_value = TestEmailResult(
            ok=False, kind="order-success", error="Failed to send email after 3 attempts"
        )

        assert main(["send-test", "ops@example.com"]) == 1
        assert "after 3 attempts" in capsys.readouterr().err

    def test_logging_configured_from_runtime_config(self, patched_runtime, mock_service, env_config):
        _, mock_logging, _ = patched_runtime
        env_config.log_level = "DEBUG"
        env_config.environment = "staging"
        mock_service.verify.return_value = VerificationResult(ok=True, message="ok", provider="x")

        main(["verify"])

        mock_logging.assert_called_once_with(
            level="DEBUG", format_type="key-value", environment="staging"
        )

    def test_configuration_error_exit_code(self, capsys):
        error = ConfigurationError("Environment variable validation failed", errors=["Missing"])
        with patch("order_notifier.main.load_runtime_config", side_effect=error):
            assert main(["verify"]) == 1
        assert "Configuration Error" in capsys.readouterr().err

    def test_keyboard_interrupt(self):
        with patch("order_notifier.main.load_runtime_config", side_effect=KeyboardInterrupt):
            assert main(["verify"]) == 130

    def test_preview_needs_no_credentials(self, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        missing = ConfigurationError("Environment variable validation failed")
        with patch("order_notifier.main.configure_logging"), patch(
            "order_notifier.main.load_config"
        ) as mock_load, patch(
            "order_notifier.config.loader.load_environment_config", side_effect=missing
        ):
            assert main(["preview", "admin-notice", "--email", "boss@example.com"]) == 0

        mock_load.assert_not_called()
        out = capsys.readouterr().out
        assert 'From: "Tu Spacio, los expertos en belleza" <noreply@tuspacio.vercel.app>' in out
        assert "To: boss@example.com" in out
        assert "Subject: New purchase completed successfully" in out
        assert "Customer Test User" in out
        assert "TEST-ORDER-123" in out

    def test_preview_sender_matches_real_sends(self, tmp_path, monkeypatch, capsys, env_config):
        monkeypatch.chdir(tmp_path)
        with patch("order_notifier.main.configure_logging"), patch(
            "order_notifier.config.loader.load_environment_config", return_value=env_config
        ):
            assert main(["preview", "order-success"]) == 0

        out = capsys.readouterr().out
        assert 'From: "Tu Spacio, los expertos en belleza" <user@example.com>' in out

    def test_preview_with_missing_config_file(self, tmp_path, capsys):
        assert main(["--config", str(tmp_path / "missing.yaml"), "preview", "order-success"]) == 1
        assert "not found" in capsys.readouterr().err
