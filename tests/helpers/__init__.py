"""Test helper utilities for order notifier tests."""

from .stub_transport import (
    RecordingSleep,
    ScriptedTransport,
    make_provider_config,
    make_registry,
)

__all__ = ["RecordingSleep", "ScriptedTransport", "make_provider_config", "make_registry"]
