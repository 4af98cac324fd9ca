"""
Error listener bus for authsession.
"""

from .bus import (
    ErrorBus,
    ErrorListener,
    ErrorMethod,
    ErrorPayload,
)

__all__ = [
    "ErrorBus",
    "ErrorListener",
    "ErrorMethod",
    "ErrorPayload",
]
