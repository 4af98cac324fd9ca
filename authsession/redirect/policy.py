"""
Redirect decisions for login state transitions.

RedirectPolicy.decide() is pure: it maps a transition name and the
current location to a RedirectDecision. Applying the decision (storage
writes, cookie removal, navigation) is left to the engine.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..common.utils import is_relative_url, is_same_url
from ..core.config import RedirectOptions
from ..core.context import Route


logger = logging.getLogger(__name__)


OAUTH_REDIRECT_COOKIE = "oauth-redirect"


@dataclass(frozen=True)
class RedirectDecision:
    """
    Outcome of a redirect decision.

    Attributes:
        target: Where to navigate, or None for no navigation
        remember: Return-to location to record for a later "home" transition
        clear_remembered: Drop the recorded return-to location
        consume_cookie: Remove the one-shot redirect cookie
    """
    target: Optional[str] = None
    remember: Optional[str] = None
    clear_remembered: bool = False
    consume_cookie: bool = False

    @property
    def navigate(self) -> bool:
        return self.target is not None


class RedirectPolicy:
    """Resolves named transitions ("login", "logout", "home") to targets."""

    def __init__(self, options: Optional[RedirectOptions] = None):
        self.options = options or RedirectOptions()

    def current_location(self, route: Optional[Route]) -> str:
        if route is None:
            return "/"
        if self.options.full_path_redirect:
            return route.full_path
        return route.path

    def decide(self, name: str, current: str,
               stored_redirect: Optional[str] = None,
               cookie_redirect: Optional[str] = None) -> RedirectDecision:
        """
        Decide where a transition leads.

        Args:
            name: Transition name
            current: Current location (full path or path, per options)
            stored_redirect: Return-to location recorded by an earlier login
            cookie_redirect: Value of the one-shot redirect cookie
        """
        to = self.options.target(name)
        if not to:
            return RedirectDecision()

        full_path = self.options.full_path_redirect
        remember = None
        clear_remembered = False
        consume_cookie = False

        if self.options.rewrite_redirects:
            if name == "login" and is_relative_url(current) and not is_same_url(to, current, full_path):
                remember = current

            if name == "home":
                redirect = stored_redirect
                if cookie_redirect and not redirect:
                    redirect = cookie_redirect
                    consume_cookie = True
                clear_remembered = True

                if is_relative_url(redirect):
                    to = redirect

        # Prevent infinite redirects
        if is_same_url(to, current, full_path):
            logger.debug(f"Skipping {name} redirect to current location {current}")
            to = None

        return RedirectDecision(
            target=to,
            remember=remember,
            clear_remembered=clear_remembered,
            consume_cookie=consume_cookie,
        )
