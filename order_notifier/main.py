"""Command-line entry point for notification diagnostics.

Subcommands:
    verify      Check that the configured provider accepts our login
    send-test   Send the canned test notification through the full pipeline
    preview     Print the HTML of the canned notification without sending it
"""

from dotenv import load_dotenv
load_dotenv()

import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from order_notifier.config.environment import EnvironmentConfig
from order_notifier.config.exceptions import ConfigurationError
from order_notifier.config.loader import load_config, load_preview_config
from order_notifier.config.models import NotifierConfig
from order_notifier.logging import get_logger
from order_notifier.logging.config import configure_logging
from order_notifier.notifications.models import NotificationError, NotificationKind
from order_notifier.notifications.service import (
    build_notification_service,
    build_renderer,
    build_test_request,
)
from order_notifier.notifications.sanitizer import sanitize

logger = get_logger(__name__, component="cli")

KIND_CHOICES = [kind.value for kind in NotificationKind]
LOG_LEVEL_CHOICES = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[NotifierConfig, EnvironmentConfig]:
    """
    Load configuration and settle the effective log level.

    Log level priority: CLI > LOG_LEVEL environment variable > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    notifier_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = notifier_config.logging.level

    return notifier_config, env_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="order-notifier",
        description="Order notification diagnostics - verify providers and send test e-mails",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml if present)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=LOG_LEVEL_CHOICES,
        help="Log level (overrides config and environment)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    verify_parser = subparsers.add_parser("verify", help="Check provider connectivity and login")
    verify_parser.add_argument("--provider", default=None, help="Provider key (default: EMAIL_PROVIDER)")

    send_parser = subparsers.add_parser("send-test", help="Send the canned test notification")
    send_parser.add_argument("email", help="Recipient address")
    send_parser.add_argument(
        "--kind", default=NotificationKind.ORDER_SUCCESS.value, choices=KIND_CHOICES
    )
    send_parser.add_argument("--provider", default=None, help="Provider key (default: EMAIL_PROVIDER)")

    preview_parser = subparsers.add_parser("preview", help="Print the rendered canned notification")
    preview_parser.add_argument("kind", choices=KIND_CHOICES)
    preview_parser.add_argument("--email", default="test@example.com", help="Recipient address")

    return parser


def run_preview(args: argparse.Namespace) -> int:
    notifier_config, provider_config = load_preview_config(args.config)
    configure_logging(
        level=args.log_level or notifier_config.logging.level,
        format_type=notifier_config.logging.format,
        environment=os.environ.get("ENVIRONMENT", "local"),
    )

    renderer = build_renderer(notifier_config.templates, provider_config)
    request = build_test_request(args.email, args.kind)
    recipient, order = sanitize(request.recipient, request.order)
    message = renderer.render(request.kind, recipient, order)

    print(f"From: {message.sender}")
    print(f"To: {message.to}")
    print(f"Subject: {message.subject}")
    print()
    print(message.html)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the order notifier CLI.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    args = build_parser().parse_args(argv)

    try:
        if args.command == "preview":
            return run_preview(args)

        notifier_config, env_config = load_runtime_config(args.config, args.log_level)
        configure_logging(
            level=env_config.log_level,
            format_type=notifier_config.logging.format,
            environment=env_config.environment,
        )
        service = build_notification_service(notifier_config, env_config)

        if args.command == "verify":
            result = asyncio.run(service.verify(args.provider))
            status = "✓" if result.ok else "✗"
            print(f"{status} {result.provider}: {result.message}")
            return 0 if result.ok else 1

        result = asyncio.run(service.send_test_email(args.email, args.kind, args.provider))
        if result.ok:
            print(f"✓ Sent {result.kind} to {args.email} (message id {result.message_id}, attempt {result.attempt})")
            return 0
        print(f"✗ Failed to send {result.kind} to {args.email}: {result.error}", file=sys.stderr)
        return 1

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except NotificationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
