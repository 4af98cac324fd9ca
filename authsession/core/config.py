"""
Configuration module for authsession.

Options are plain dataclasses. AuthOptions.from_env() builds them from
AUTHSESSION_* environment variables and validate() rejects values the
engine cannot work with.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Union

from ..errors import ConfigurationError
from ..util.config import get_bool_config, get_config_value, parse_redirect_map


ResetPredicate = Callable[[BaseException, Any], bool]


@dataclass
class TokenOptions:
    """Access token storage and header settings"""
    prefix: str = "_token."
    name: str = "Authorization"
    type: str = "Bearer"


@dataclass
class RefreshTokenOptions:
    """Refresh token storage settings"""
    prefix: str = "_refresh_token."


@dataclass
class StorageOptions:
    """Persisted storage tiers"""
    cookie: bool = True
    cookie_prefix: str = "auth."
    local: bool = True
    local_prefix: str = "auth."


def _default_routes() -> Dict[str, Optional[str]]:
    return {"login": "/login", "logout": "/", "home": "/"}


@dataclass
class RedirectOptions:
    """Named redirect targets and rewrite behaviour"""
    routes: Dict[str, Optional[str]] = field(default_factory=_default_routes)
    rewrite_redirects: bool = True
    full_path_redirect: bool = False

    def target(self, name: str) -> Optional[str]:
        return self.routes.get(name)


@dataclass
class EndpointOptions:
    """
    User service endpoints used for profile sync and credential recovery.

    With no api_base_url configured the profile sync is skipped.
    """
    api_base_url: Optional[str] = None
    user_update_path: str = "/api/users/update/"
    user_auth_path: str = "/api/users/get/auth/"

    @property
    def user_update_url(self) -> Optional[str]:
        if not self.api_base_url:
            return None
        return self.api_base_url.rstrip("/") + self.user_update_path

    @property
    def user_auth_url(self) -> str:
        return (self.api_base_url or "").rstrip("/") + self.user_auth_path


@dataclass
class AuthOptions:
    """Configuration for the authentication session engine"""
    default_strategy: Optional[str] = None
    token: TokenOptions = field(default_factory=TokenOptions)
    refresh_token: RefreshTokenOptions = field(default_factory=RefreshTokenOptions)
    storage: StorageOptions = field(default_factory=StorageOptions)
    redirect: RedirectOptions = field(default_factory=RedirectOptions)
    endpoints: EndpointOptions = field(default_factory=EndpointOptions)
    watch_logged_in: bool = True
    reset_on_error: Union[bool, ResetPredicate] = False
    user_id_field: str = "user_id"

    @classmethod
    def from_env(cls) -> "AuthOptions":
        """Create configuration from environment variables"""
        routes = _default_routes()
        routes.update(parse_redirect_map(get_config_value("redirect")))

        return cls(
            default_strategy=get_config_value("default_strategy"),
            token=TokenOptions(
                prefix=get_config_value("token_prefix", "_token."),
                name=get_config_value("token_name", "Authorization"),
                type=get_config_value("token_type", "Bearer"),
            ),
            refresh_token=RefreshTokenOptions(
                prefix=get_config_value("refresh_token_prefix", "_refresh_token."),
            ),
            storage=StorageOptions(
                cookie=get_bool_config("cookie", True),
                cookie_prefix=get_config_value("cookie_prefix", "auth."),
                local=get_bool_config("local_storage", True),
                local_prefix=get_config_value("local_storage_prefix", "auth."),
            ),
            redirect=RedirectOptions(
                routes=routes,
                rewrite_redirects=get_bool_config("rewrite_redirects", True),
                full_path_redirect=get_bool_config("full_path_redirect", False),
            ),
            endpoints=EndpointOptions(
                api_base_url=get_config_value("api_base_url"),
            ),
            watch_logged_in=get_bool_config("watch_logged_in", True),
            reset_on_error=get_bool_config("reset_on_error", False),
        )

    def validate(self) -> bool:
        """Validate the configuration"""
        if not self.token.prefix:
            raise ConfigurationError("token.prefix is required")
        if not self.refresh_token.prefix:
            raise ConfigurationError("refresh_token.prefix is required")
        if self.token.prefix == self.refresh_token.prefix:
            raise ConfigurationError(
                "token.prefix and refresh_token.prefix must differ",
                {"prefix": self.token.prefix},
            )
        if not self.token.name:
            raise ConfigurationError("token.name is required")
        if not isinstance(self.reset_on_error, bool) and not callable(self.reset_on_error):
            raise ConfigurationError("reset_on_error must be a bool or a callable")
        return True
