"""Core session engine, configuration and context for authsession."""

from .config import (
    AuthOptions,
    TokenOptions,
    RefreshTokenOptions,
    StorageOptions,
    RedirectOptions,
    EndpointOptions,
)
from .context import AuthContext, Route, Navigator, RecordingNavigator, LoadingIndicator, route_option
from .auth import Auth, SessionPhase

__all__ = [
    "Auth",
    "SessionPhase",
    "AuthOptions",
    "TokenOptions",
    "RefreshTokenOptions",
    "StorageOptions",
    "RedirectOptions",
    "EndpointOptions",
    "AuthContext",
    "Route",
    "Navigator",
    "RecordingNavigator",
    "LoadingIndicator",
    "route_option",
]
