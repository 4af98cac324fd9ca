"""
Persistence backends for the key-value sync store.

A backend is a flat key/value container. Writes are fire-and-forget from
the store's point of view: a backend may persist lazily, but get() must
reflect the latest set() immediately.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from http.cookies import SimpleCookie
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import quote, unquote


logger = logging.getLogger(__name__)


class StorageBackend(ABC):
    """Abstract key/value persistence backend."""

    @abstractmethod
    def get(self, key: str) -> Any:
        """Return the stored value or None."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store a value."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove a key; missing keys are ignored."""
        pass

    @abstractmethod
    def keys(self) -> Iterator[str]:
        """Iterate over stored keys."""
        pass

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


class MemoryBackend(StorageBackend):
    """
    In-memory backend.

    Used as the local persistent store in tests and short-lived processes,
    and as the default when no backend is supplied.
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._store: Dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any:
        return self._store.get(key)

    def set(self, key: str, value: Any) -> None:
        self._store[key] = value

    def remove(self, key: str) -> None:
        self._store.pop(key, None)

    def keys(self) -> Iterator[str]:
        return iter(list(self._store.keys()))

    def clear(self) -> int:
        count = len(self._store)
        self._store.clear()
        return count


def encode_value(value: Any) -> str:
    """Serialize a value for a string-only backend.

    Strings are JSON encoded too, so "42" or "true" read back as strings.
    """
    return json.dumps(value)


def decode_value(value: Optional[str]) -> Any:
    """Inverse of encode_value.

    Cookies written by other code are not JSON; those come back as the raw string.
    """
    if value is None:
        return None
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        return value


@dataclass
class CookieOptions:
    """Attributes rendered on Set-Cookie headers"""
    path: str = "/"
    domain: Optional[str] = None
    max_age: Optional[int] = None
    secure: bool = False
    http_only: bool = False
    same_site: Optional[str] = "Lax"


class CookieBackend(StorageBackend):
    """
    Cookie jar backend.

    Values are kept as strings exactly as they would travel in a Cookie
    header, so every value is JSON-encoded on write and decoded on read.
    Changes made since construction can be rendered as Set-Cookie
    header values for a server response.
    """

    def __init__(self, cookies: Optional[Dict[str, str]] = None,
                 options: Optional[CookieOptions] = None):
        self._jar: Dict[str, str] = dict(cookies or {})
        self.options = options or CookieOptions()
        self._changed: Dict[str, Optional[str]] = {}

    @classmethod
    def from_header(cls, header: Optional[str],
                    options: Optional[CookieOptions] = None) -> "CookieBackend":
        """Build a jar from an incoming Cookie request header."""
        parsed = SimpleCookie()
        if header:
            parsed.load(header)
        cookies = {name: unquote(morsel.value) for name, morsel in parsed.items()}
        return cls(cookies, options)

    def get(self, key: str) -> Any:
        return decode_value(self._jar.get(key))

    def get_raw(self, key: str) -> Optional[str]:
        return self._jar.get(key)

    def set(self, key: str, value: Any) -> None:
        encoded = encode_value(value)
        self._jar[key] = encoded
        self._changed[key] = encoded
        logger.debug(f"Cookie set: {key}")

    def remove(self, key: str) -> None:
        if key in self._jar:
            del self._jar[key]
        self._changed[key] = None

    def keys(self) -> Iterator[str]:
        return iter(list(self._jar.keys()))

    def set_cookie_headers(self) -> List[str]:
        """
        Render pending changes as Set-Cookie header values.

        Removed cookies are rendered with Max-Age=0.
        """
        headers = []
        for name, value in self._changed.items():
            cookie = SimpleCookie()
            cookie[name] = quote(value) if value is not None else ""
            morsel = cookie[name]
            morsel["path"] = self.options.path
            if self.options.domain:
                morsel["domain"] = self.options.domain
            if value is None:
                morsel["max-age"] = 0
            elif self.options.max_age is not None:
                morsel["max-age"] = self.options.max_age
            if self.options.secure:
                morsel["secure"] = True
            if self.options.http_only:
                morsel["httponly"] = True
            if self.options.same_site:
                morsel["samesite"] = self.options.same_site
            headers.append(morsel.OutputString())
        return headers

    def clear_changes(self) -> None:
        self._changed.clear()
