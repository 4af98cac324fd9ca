"""
authsession Python Package

Client-side authentication session manager: login state, pluggable
strategies, multi-tier token storage and transparent token refresh.
"""

__version__ = "0.1.0"

from .core.config import AuthOptions
from .core.context import AuthContext, Route
from .core.auth import Auth, SessionPhase
from .strategy import Capability, Strategy, StrategyOptions
from .events import ErrorMethod, ErrorPayload
from .errors import (
    AuthError,
    ConfigurationError,
    CredentialRecoveryError,
    HTTPError,
    StorageError,
    StrategyNotFoundError,
    TransportError,
)

__all__ = [
    "Auth",
    "AuthOptions",
    "AuthContext",
    "Route",
    "SessionPhase",
    "Capability",
    "Strategy",
    "StrategyOptions",
    "ErrorMethod",
    "ErrorPayload",
    "AuthError",
    "ConfigurationError",
    "CredentialRecoveryError",
    "HTTPError",
    "StorageError",
    "StrategyNotFoundError",
    "TransportError",
]
