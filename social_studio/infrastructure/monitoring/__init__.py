"""Logging and observability."""

from .logging import (
    correlation_context,
    get_correlation_id,
    set_user_context,
    setup_structured_logging,
)

__all__ = [
    "correlation_context",
    "get_correlation_id",
    "set_user_context",
    "setup_structured_logging",
]
