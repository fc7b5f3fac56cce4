#!/usr/bin/env python3
"""Render every notification kind to HTML files for visual review.

Uses the canned test order and the template settings of the given config
file. Nothing is sent, so no provider credentials are needed; when the
environment is fully configured the From header matches real sends.

Usage:
    python scripts/render_previews.py
    python scripts/render_previews.py --config config.yaml --output /tmp/previews
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from order_notifier.config.exceptions import ConfigurationError
from order_notifier.config.loader import load_preview_config
from order_notifier.notifications.models import NotificationKind
from order_notifier.notifications.sanitizer import sanitize
from order_notifier.notifications.service import build_renderer, build_test_request


def print_header(title: str):
    """Print a formatted section header."""
    width = 80
    print("\n" + "=" * width)
    print(f" {title}")
    print("=" * width + "\n")


def print_summary_table(rows):
    """Print kind / subject / file rows as a box table."""
    kind_width = max(len(kind) for kind, _, _ in rows)
    subject_width = max(len(subject) for _, subject, _ in rows)

    print("┌" + "─" * (kind_width + 2) + "┬" + "─" * (subject_width + 2) + "┬" + "─" * 10 + "┐")
    print(f"│ {'Kind':<{kind_width}} │ {'Subject':<{subject_width}} │ {'Bytes':<8} │")
    print("├" + "─" * (kind_width + 2) + "┼" + "─" * (subject_width + 2) + "┼" + "─" * 10 + "┤")
    for kind, subject, size in rows:
        print(f"│ {kind:<{kind_width}} │ {subject:<{subject_width}} │ {size:<8} │")
    print("└" + "─" * (kind_width + 2) + "┴" + "─" * (subject_width + 2) + "┴" + "─" * 10 + "┘")


def main() -> int:
    parser = argparse.ArgumentParser(description="Render notification previews")
    parser.add_argument("--config", type=Path, default=None, help="Configuration file")
    parser.add_argument("--output", type=Path, default=Path("previews"), help="Output directory")
    parser.add_argument("--email", default="test@example.com", help="Recipient address")
    args = parser.parse_args()

    try:
        notifier_config, provider_config = load_preview_config(args.config)
        renderer = build_renderer(notifier_config.templates, provider_config)
    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 1

    print_header("Rendering notification previews")
    args.output.mkdir(parents=True, exist_ok=True)

    rows = []
    for kind in NotificationKind:
        request = build_test_request(args.email, kind)
        recipient, order = sanitize(request.recipient, request.order)
        message = renderer.render(kind, recipient, order)

        target = args.output / f"{kind.value}.html"
        target.write_text(message.html, encoding="utf-8")
        rows.append((kind.value, message.subject, len(message.html.encode("utf-8"))))

    print_summary_table(rows)
    print(f"\nPreviews written to {args.output.resolve()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
