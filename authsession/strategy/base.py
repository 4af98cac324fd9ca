"""
Strategy interface for authsession.

A strategy implements one authentication method. Every lifecycle hook is
optional: a subclass overrides only the hooks it supports and the engine
falls back to its documented default for the rest. Hooks receive the
engine as their first argument and may be plain functions or coroutines.

Example:
    class PasswordStrategy(Strategy):
        async def login(self, auth, username, password):
            data = await auth.request({"method": "post", "url": "/login",
                                       "data": {"username": username,
                                                "password": password}})
            auth.set_token(self.name, "Bearer " + data["token"])
            await auth.fetch_user()
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, Optional

if TYPE_CHECKING:
    from ..core.auth import Auth


class Capability(Enum):
    """Optional strategy hooks."""
    MOUNTED = "mounted"
    LOGIN = "login"
    FETCH_USER = "fetch_user"
    LOGOUT = "logout"
    RESET = "reset"
    SET_TOKEN = "set_token"


@dataclass
class StrategyOptions:
    """Token endpoint settings used by the refresh protocol."""
    client_id: Optional[str] = None
    token_endpoint: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


class Strategy:
    """
    Base class for authentication strategies.

    The hook methods defined here are placeholders; capability detection
    checks whether a subclass replaced them.
    """

    def __init__(self, name: Optional[str] = None, options: Optional[StrategyOptions] = None):
        self.name = name
        self.options = options or StrategyOptions()

    @property
    def capabilities(self) -> FrozenSet[Capability]:
        return frozenset(cap for cap in Capability if self.supports(cap))

    def supports(self, capability: Capability) -> bool:
        """True if this strategy implements the given hook."""
        impl = getattr(type(self), capability.value, None)
        return impl is not None and impl is not getattr(Strategy, capability.value)

    def mounted(self, auth: "Auth", *args, **kwargs):
        raise NotImplementedError

    def login(self, auth: "Auth", *args, **kwargs):
        raise NotImplementedError

    def fetch_user(self, auth: "Auth", *args, **kwargs):
        raise NotImplementedError

    def logout(self, auth: "Auth", *args, **kwargs):
        raise NotImplementedError

    def reset(self, auth: "Auth", *args, **kwargs):
        raise NotImplementedError

    def set_token(self, auth: "Auth", token: Any):
        """Install a new access token into the strategy's own token holder."""
        raise NotImplementedError

    def __repr__(self) -> str:
        caps = ", ".join(sorted(cap.value for cap in self.capabilities))
        return f"{type(self).__name__}(name={self.name!r}, capabilities=[{caps}])"
