"""
Redirect policy for login state transitions.
"""

from .policy import OAUTH_REDIRECT_COOKIE, RedirectDecision, RedirectPolicy

__all__ = [
    "OAUTH_REDIRECT_COOKIE",
    "RedirectDecision",
    "RedirectPolicy",
]
