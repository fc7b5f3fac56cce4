"""Per-notification logging context.

Fields bound here (notification_id, kind, provider, ...) are attached to
every record emitted inside the scope. Storage is a ContextVar, so each
asyncio task delivering a notification sees only its own fields.
"""

from contextvars import ContextVar, Token
from typing import Any, Dict, Optional

_LOG_CONTEXT: ContextVar[Dict[str, Any]] = ContextVar("order_notifier_log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the fields bound in the current context."""
    return dict(_LOG_CONTEXT.get())


def bind_log_context(**fields: Any) -> Token:
    """Merge ``fields`` into the current context and return a reset token."""
    return _LOG_CONTEXT.set({**_LOG_CONTEXT.get(), **fields})


def reset_log_context(token: Token) -> None:
    """Restore the context captured by ``bind_log_context``."""
    _LOG_CONTEXT.reset(token)


def clear_log_context() -> None:
    """Drop every bound field. Used by tests."""
    _LOG_CONTEXT.set({})


class log_context:
    """Context manager binding fields for the duration of a block.

    Example:
        >>> with log_context(notification_id="a1b2", kind="order-success"):
        ...     logger.info("Rendering notification")
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = bind_log_context(**self.fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            reset_log_context(self.token)
            self.token = None
        return False
