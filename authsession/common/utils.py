"""
Common utilities and helper functions for authsession.
"""

import inspect
import re
import time
from typing import Any, Dict, Optional


UNSET_MARKERS = ("", "false", "null", "undefined")

_RELATIVE_URL = re.compile(
    r"^/([a-zA-Z0-9@\-%_~][/a-zA-Z0-9@\-%_~]*)?([?][^#]*)?(#[^#]*)?$"
)


def get_current_time() -> float:
    """Current epoch time in seconds. All token expirations use this clock."""
    return time.time()


async def maybe_await(value: Any) -> Any:
    """Await value if it is awaitable; strategy hooks may be sync or async."""
    if inspect.isawaitable(value):
        return await value
    return value


def is_unset(value: Any) -> bool:
    """True for values the storage layer treats as missing."""
    return value is None


def is_set(value: Any) -> bool:
    return not is_unset(value)


def is_token_set(value: Any) -> bool:
    """
    Check whether a stored token holds a usable value.

    Cleared tokens are stored as False, and string-only backends hand
    back the serialized sentinels, so those count as unset too.
    """
    if value is None or value is False:
        return False
    if isinstance(value, str) and value.strip().lower() in UNSET_MARKERS:
        return False
    return True


def get_prop(holder: Any, prop_name: Optional[str]) -> Any:
    """
    Look up a dotted path inside nested mappings or objects.

    Args:
        holder: Root mapping or object
        prop_name: Path such as "data.user.name"; an empty path returns holder

    Returns:
        The value found, or None when any segment is missing
    """
    if not prop_name or holder is None:
        return holder

    result = holder
    for part in prop_name.split("."):
        if result is None:
            return None
        if isinstance(result, dict):
            result = result.get(part)
        elif isinstance(result, (list, tuple)) and part.isdigit():
            index = int(part)
            result = result[index] if index < len(result) else None
        else:
            result = getattr(result, part, None)
    return result


def merge_dicts(*dicts: Dict[str, Any]) -> Dict[str, Any]:
    """Shallow merge; later dictionaries win. Non-dict arguments are skipped."""
    result = {}
    for d in dicts:
        if not isinstance(d, dict):
            continue
        result.update(d)
    return result


def is_relative_url(url: Any) -> bool:
    """True for same-origin paths such as "/profile?tab=1"."""
    return isinstance(url, str) and bool(url) and bool(_RELATIVE_URL.match(url))


def _normalize_url(url: str, full_path: bool) -> str:
    if not full_path:
        url = url.split("?")[0].split("#")[0]
    path, sep, rest = url.partition("?")
    path = path.rstrip("/") or "/"
    return f"{path}{sep}{rest}"


def is_same_url(a: Optional[str], b: Optional[str], full_path: bool = False) -> bool:
    """
    Compare two locations, ignoring trailing slashes.

    Unless full_path is set, query strings and fragments are ignored too.
    """
    if a is None or b is None:
        return False
    return _normalize_url(a, full_path) == _normalize_url(b, full_path)


def strip_token_type(token: Any) -> Any:
    """Drop the "<type> " prefix of a header token value."""
    if not isinstance(token, str):
        return None
    _, sep, raw = token.partition(" ")
    return raw if sep else token
