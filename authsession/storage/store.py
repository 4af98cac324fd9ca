"""
Universal key-value store for authsession.

The store keeps three tiers consistent:

- state: in-memory values with change watchers (lost on reload)
- cookie: readable in both the server-render and the client context
- local: client-only persistent store

"Universal" keys are written to every tier and read back with a fixed
precedence, so a value resolved during server rendering agrees with the
value the client sees afterwards.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..common.utils import is_set, is_unset
from ..core.config import StorageOptions
from .backends import CookieBackend, MemoryBackend, StorageBackend


logger = logging.getLogger(__name__)


StateWatcher = Callable[[Any, Any], None]


class Storage:
    """
    Three-tier synchronized key-value store.

    Args:
        options: Tier switches and key prefixes
        cookies: Cookie tier backend (defaults to an empty CookieBackend)
        local: Local persistent backend (defaults to a MemoryBackend)
        initial_state: Initial state tier contents
        is_server: True while rendering on the server; disables the local
            tier and state watchers
    """

    def __init__(self,
                 options: Optional[StorageOptions] = None,
                 cookies: Optional[StorageBackend] = None,
                 local: Optional[StorageBackend] = None,
                 initial_state: Optional[Dict[str, Any]] = None,
                 is_server: bool = False):
        self.options = options or StorageOptions()
        self.cookies = cookies if cookies is not None else CookieBackend()
        self.local = local if local is not None else MemoryBackend()
        self.is_server = is_server
        self._state: Dict[str, Any] = dict(initial_state or {})
        self._watchers: Dict[str, List[StateWatcher]] = {}

    @property
    def state(self) -> Dict[str, Any]:
        """Read-only snapshot of the state tier."""
        return dict(self._state)

    # ---------------------------------------------------------------
    # Universal
    # ---------------------------------------------------------------

    def set_universal(self, key: str, value: Any) -> Any:
        """Write a value to every tier. None removes the key everywhere."""
        if is_unset(value):
            return self.remove_universal(key)

        self.set_cookie(key, value)
        self.set_local(key, value)
        self.set_state(key, value)
        return value

    def get_universal(self, key: str) -> Any:
        value = None

        if self.is_server:
            value = self.get_state(key)

        if is_unset(value):
            value = self.get_cookie(key)

        if is_unset(value):
            value = self.get_local(key)

        if is_unset(value):
            value = self.get_state(key)

        return value

    def sync_universal(self, key: str, default_value: Any = None) -> Any:
        """
        Reconcile a universal key across tiers.

        The persisted value wins; the default is used only when nothing is
        stored. The resolved value is written back to every tier.
        """
        value = self.get_universal(key)

        if is_unset(value) and is_set(default_value):
            value = default_value

        if is_set(value):
            self.set_universal(key, value)

        return value

    def remove_universal(self, key: str) -> None:
        self.remove_state(key)
        self.remove_local(key)
        self.remove_cookie(key)

    # ---------------------------------------------------------------
    # Persisted tiers
    # ---------------------------------------------------------------

    def get(self, key: str) -> Any:
        """Read a key from the persisted tiers only (cookie, then local)."""
        value = self.get_cookie(key)
        if is_unset(value):
            value = self.get_local(key)
        return value

    def set(self, key: str, value: Any) -> Any:
        """Write a key to the persisted tiers only."""
        if is_unset(value):
            self.remove_local(key)
            self.remove_cookie(key)
            return value

        self.set_cookie(key, value)
        self.set_local(key, value)
        return value

    def _cookie_key(self, key: str) -> str:
        return self.options.cookie_prefix + key

    def _local_key(self, key: str) -> str:
        return self.options.local_prefix + key

    def get_cookie(self, key: str) -> Any:
        if not self.options.cookie:
            return None
        return self.cookies.get(self._cookie_key(key))

    def set_cookie(self, key: str, value: Any) -> Any:
        if not self.options.cookie:
            return value
        if is_unset(value):
            self.remove_cookie(key)
        else:
            self.cookies.set(self._cookie_key(key), value)
        return value

    def remove_cookie(self, key: str) -> None:
        if not self.options.cookie:
            return
        self.cookies.remove(self._cookie_key(key))

    def get_local(self, key: str) -> Any:
        if self.is_server or not self.options.local:
            return None
        return self.local.get(self._local_key(key))

    def set_local(self, key: str, value: Any) -> Any:
        if self.is_server or not self.options.local:
            return value
        if is_unset(value):
            self.remove_local(key)
        else:
            self.local.set(self._local_key(key), value)
        return value

    def remove_local(self, key: str) -> None:
        if self.is_server or not self.options.local:
            return
        self.local.remove(self._local_key(key))

    # ---------------------------------------------------------------
    # State
    # ---------------------------------------------------------------

    def get_state(self, key: str) -> Any:
        return self._state.get(key)

    def set_state(self, key: str, value: Any) -> Any:
        old_value = self._state.get(key)
        self._state[key] = value
        logger.debug(f"State set: {key}")

        if old_value != value or type(old_value) is not type(value):
            self._notify(key, value, old_value)

        return value

    def remove_state(self, key: str) -> None:
        if key not in self._state:
            return
        old_value = self._state.pop(key)
        if old_value is not None:
            self._notify(key, None, old_value)

    def watch_state(self, key: str, callback: StateWatcher) -> Callable[[], None]:
        """
        Call callback(new, old) whenever the state value of key changes.

        Setting an equal value does not fire. In the server context nothing
        is registered. Returns a function that removes the watcher.
        """
        if self.is_server:
            return lambda: None

        self._watchers.setdefault(key, []).append(callback)

        def unwatch() -> None:
            watchers = self._watchers.get(key, [])
            if callback in watchers:
                watchers.remove(callback)

        return unwatch

    def _notify(self, key: str, value: Any, old_value: Any) -> None:
        if self.is_server:
            return
        for callback in list(self._watchers.get(key, [])):
            callback(value, old_value)
