"""
Common helpers shared across authsession packages.
"""

from .utils import (
    get_current_time,
    get_prop,
    is_relative_url,
    is_same_url,
    is_set,
    is_token_set,
    is_unset,
    maybe_await,
    merge_dicts,
    strip_token_type,
)

__all__ = [
    "get_current_time",
    "get_prop",
    "is_relative_url",
    "is_same_url",
    "is_set",
    "is_token_set",
    "is_unset",
    "maybe_await",
    "merge_dicts",
    "strip_token_type",
]
