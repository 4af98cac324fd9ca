"""
Token record management for authsession.

Each strategy owns one token record made of four universal keys:

    <token.prefix><strategy>                access token ("<type> <opaque>")
    <refresh_token.prefix><strategy>        refresh token
    <token.prefix>expiration.<strategy>     absolute expiry, epoch seconds
    <token.prefix>scope.<strategy>          granted scope

Cleared records hold False rather than being removed.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from ..common.utils import is_token_set
from ..core.config import RefreshTokenOptions, TokenOptions
from ..storage.store import Storage


logger = logging.getLogger(__name__)


Scope = Union[List[str], Dict[str, Any]]


class TokenManager:
    """Derives token record keys and proxies them to the store."""

    def __init__(self, storage: Storage,
                 token_options: Optional[TokenOptions] = None,
                 refresh_options: Optional[RefreshTokenOptions] = None):
        self.storage = storage
        self.token_options = token_options or TokenOptions()
        self.refresh_options = refresh_options or RefreshTokenOptions()

    # Keys

    def token_key(self, strategy: str) -> str:
        return self.token_options.prefix + strategy

    def refresh_token_key(self, strategy: str) -> str:
        return self.refresh_options.prefix + strategy

    def expiration_key(self, strategy: str) -> str:
        return self.token_options.prefix + "expiration." + strategy

    def scope_key(self, strategy: str) -> str:
        return self.token_options.prefix + "scope." + strategy

    # Access token

    def get_token(self, strategy: str) -> Any:
        return self.storage.get_universal(self.token_key(strategy))

    def set_token(self, strategy: str, token: Any) -> Any:
        return self.storage.set_universal(self.token_key(strategy), token)

    def sync_token(self, strategy: str) -> Any:
        return self.storage.sync_universal(self.token_key(strategy))

    # Refresh token

    def get_refresh_token(self, strategy: str) -> Any:
        return self.storage.get_universal(self.refresh_token_key(strategy))

    def set_refresh_token(self, strategy: str, refresh_token: Any) -> Any:
        return self.storage.set_universal(self.refresh_token_key(strategy), refresh_token)

    def sync_refresh_token(self, strategy: str) -> Any:
        return self.storage.sync_universal(self.refresh_token_key(strategy))

    # Expiration

    def get_expiration(self, strategy: str) -> Optional[float]:
        """Expiry as epoch seconds, or None when absent or cleared."""
        return self._as_epoch(self.storage.get_universal(self.expiration_key(strategy)))

    def set_expiration(self, strategy: str, expiration: Any) -> Any:
        return self.storage.set_universal(self.expiration_key(strategy), expiration)

    def sync_expiration(self, strategy: str) -> Optional[float]:
        return self._as_epoch(self.storage.sync_universal(self.expiration_key(strategy)))

    @staticmethod
    def _as_epoch(value: Any) -> Optional[float]:
        if value is None or isinstance(value, bool):
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring malformed token expiration: {value!r}")
            return None

    # Scope

    def get_scope(self, strategy: str) -> Optional[Scope]:
        """
        Granted scope for a strategy.

        A space-delimited string is split into a list, a mapping is
        returned as-is, anything unset yields None.
        """
        return self._normalize_scope(self.storage.get_universal(self.scope_key(strategy)))

    def set_scope(self, strategy: str, scope: Any) -> Any:
        return self.storage.set_universal(self.scope_key(strategy), scope)

    def sync_scope(self, strategy: str) -> Optional[Scope]:
        return self._normalize_scope(self.storage.sync_universal(self.scope_key(strategy)))

    @staticmethod
    def _normalize_scope(value: Any) -> Optional[Scope]:
        if value is None or value is False:
            return None
        if isinstance(value, str):
            return [part for part in value.split(" ") if part]
        if isinstance(value, (list, tuple)):
            return list(value)
        return value

    # Record

    def has_token(self, strategy: str) -> bool:
        return is_token_set(self.get_token(strategy))

    def store(self, strategy: str, token: Any, refresh_token: Any = None,
              expiration: Any = None, scope: Any = None) -> None:
        """Persist a full record; None fields are left untouched."""
        self.set_token(strategy, token)
        if refresh_token is not None:
            self.set_refresh_token(strategy, refresh_token)
        if expiration is not None:
            self.set_expiration(strategy, expiration)
        if scope is not None:
            self.set_scope(strategy, scope)
        logger.debug(f"Stored token record for strategy {strategy}")

    def clear(self, strategy: str) -> None:
        """Reset token and refresh token to the cleared sentinel."""
        self.set_token(strategy, False)
        self.set_refresh_token(strategy, False)
        logger.debug(f"Cleared token record for strategy {strategy}")
