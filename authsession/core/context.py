"""
Per-call context handed to the engine.

The context replaces environment probing: whether the engine runs during
server rendering, where the user currently is, how to navigate and how to
show request progress are all supplied explicitly.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..storage.backends import CookieBackend, StorageBackend


logger = logging.getLogger(__name__)


@dataclass
class Route:
    """
    Current navigation location.

    Attributes:
        path: Path without query string
        full_path: Path including query string and fragment
        options: Per-route flags; {"auth": False} opts out of login redirects
    """
    path: str = "/"
    full_path: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.full_path is None:
            self.full_path = self.path


def route_option(route: Optional[Route], key: str, value: Any) -> bool:
    """True if the route explicitly sets option key to value."""
    if route is None or key not in route.options:
        return False
    option = route.options[key]
    return option is value or (type(option) is type(value) and option == value)


class Navigator:
    """
    Navigation capability of the host application.

    redirect() performs an in-app (router) navigation; replace() performs
    a full page replacement and is only used in the client context.
    """

    def redirect(self, to: str) -> None:
        raise NotImplementedError

    def replace(self, to: str) -> None:
        self.redirect(to)


class RecordingNavigator(Navigator):
    """Navigator that records targets instead of navigating."""

    def __init__(self):
        self.history: List[str] = []
        self.replaced: List[str] = []

    def redirect(self, to: str) -> None:
        logger.debug(f"Redirect to {to}")
        self.history.append(to)

    def replace(self, to: str) -> None:
        logger.debug(f"Replace location with {to}")
        self.replaced.append(to)


class LoadingIndicator:
    """Request progress indicator. The base class does nothing."""

    def start(self) -> None:
        pass

    def finish(self) -> None:
        pass

    def fail(self) -> None:
        pass

    def set(self, value: float) -> None:
        pass


@dataclass
class AuthContext:
    """
    Collaborators and environment for one engine instance.

    Attributes:
        route: Current location, used by redirects
        navigator: Performs navigation
        cookies: Cookie jar; also the source of the one-shot
            "oauth-redirect" cookie
        local: Client-side persistent store
        loading: Progress indicator, only driven in the client context
        is_server: True while rendering on the server
    """
    route: Route = field(default_factory=Route)
    navigator: Navigator = field(default_factory=RecordingNavigator)
    cookies: StorageBackend = field(default_factory=CookieBackend)
    local: Optional[StorageBackend] = None
    loading: LoadingIndicator = field(default_factory=LoadingIndicator)
    is_server: bool = False

    @property
    def is_client(self) -> bool:
        return not self.is_server
