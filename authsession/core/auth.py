"""
Authentication session engine for authsession.

Auth owns the session state (user, loggedIn, strategy, busy), delegates
lifecycle calls to the active strategy, and exposes the request pipeline,
token helpers, error bus and redirect handling.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from ..common.utils import get_current_time, get_prop, maybe_await, strip_token_type
from ..errors import StrategyNotFoundError
from ..events.bus import ErrorBus, ErrorListener, ErrorMethod, ErrorPayload
from ..redirect.policy import OAUTH_REDIRECT_COOKIE, RedirectPolicy
from ..request.pipeline import RequestPipeline
from ..storage.store import Storage
from ..strategy.base import Capability, Strategy
from ..strategy.registry import StrategyRegistry
from ..token.manager import Scope, TokenManager
from ..transport.aiohttp_transport import AiohttpTransport
from ..transport.base import Endpoint, Transport
from .config import AuthOptions
from .context import AuthContext, route_option


logger = logging.getLogger(__name__)


class SessionPhase(Enum):
    """Lifecycle phase of the active strategy."""
    UNMOUNTED = "unmounted"
    MOUNTED = "mounted"
    LOGGING_IN = "logging_in"
    LOGGING_OUT = "logging_out"


class Auth:
    """
    Authentication session engine.

    Use Auth.new() to construct a validated instance, register strategies,
    then await init().

    Example:
        auth = Auth.new(AuthContext(), AuthOptions(default_strategy="local"))
        auth.register_strategy("local", LocalStrategy())
        await auth.init()
        await auth.login(username="jane", password="secret")
    """

    def __init__(self,
                 ctx: Optional[AuthContext] = None,
                 options: Optional[AuthOptions] = None,
                 transport: Optional[Transport] = None,
                 clock: Callable[[], float] = get_current_time):
        """
        Initialize the engine.

        Args:
            ctx: Collaborators and environment (defaults to a client context)
            options: Engine configuration
            transport: HTTP transport (defaults to AiohttpTransport)
            clock: Epoch-seconds clock used for token expiry
        """
        self.ctx = ctx or AuthContext()
        self.options = options or AuthOptions()
        self.clock = clock

        self.strategies = StrategyRegistry()
        self.bus = ErrorBus()
        self.storage = Storage(
            self.options.storage,
            cookies=self.ctx.cookies,
            local=self.ctx.local,
            initial_state={"user": None, "loggedIn": False},
            is_server=self.ctx.is_server,
        )
        self.tokens = TokenManager(self.storage, self.options.token, self.options.refresh_token)
        self.redirect_policy = RedirectPolicy(self.options.redirect)
        self.transport = transport or AiohttpTransport()
        self.pipeline = RequestPipeline(self, clock)

        self._phase = SessionPhase.UNMOUNTED
        self._tasks: Set[asyncio.Task] = set()
        self._reset_listener_installed = False
        self._unwatch: Optional[Callable[[], None]] = None

    @classmethod
    def new(cls,
            ctx: Optional[AuthContext] = None,
            options: Optional[AuthOptions] = None,
            transport: Optional[Transport] = None) -> "Auth":
        """
        Create an engine after validating its options.

        Raises:
            ConfigurationError: If options are invalid
        """
        options = options or AuthOptions()
        options.validate()
        return cls(ctx, options, transport)

    async def init(self) -> None:
        """Restore the active strategy, mount it and start watching login state."""
        if self.options.reset_on_error and not self._reset_listener_installed:
            self.on_error(self._reset_on_error)
            self._reset_listener_installed = True

        # Restore strategy
        self.storage.sync_universal("strategy", self.options.default_strategy)

        # Fall back to the default if the stored one is not registered
        if self.strategy is None:
            self.storage.set_universal("strategy", self.options.default_strategy)

            if self.strategy is None:
                logger.warning(
                    f"No registered strategy for {self.options.default_strategy!r}; "
                    "session engine left unmounted"
                )
                return

        await self.mounted()

        if self.ctx.is_client and self.options.watch_logged_in and self._unwatch is None:
            self._unwatch = self.storage.watch_state("loggedIn", self._on_logged_in_change)

        logger.info(f"Session engine initialized with strategy: {self.strategy_name}")

    async def close(self) -> None:
        """Wait for background work, stop watchers and close the transport."""
        await self.wait_pending()
        if self._unwatch is not None:
            self._unwatch()
            self._unwatch = None
        await self.transport.close()

    # ---------------------------------------------------------------
    # State
    # ---------------------------------------------------------------

    @property
    def state(self) -> Dict[str, Any]:
        return self.storage.state

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def user(self) -> Any:
        return self.storage.get_state("user")

    @property
    def logged_in(self) -> bool:
        return bool(self.storage.get_state("loggedIn"))

    @property
    def busy(self) -> bool:
        return bool(self.storage.get_state("busy"))

    @property
    def error(self) -> Optional[BaseException]:
        return self.bus.error

    # ---------------------------------------------------------------
    # Strategy
    # ---------------------------------------------------------------

    @property
    def strategy_name(self) -> Optional[str]:
        return self.storage.get_state("strategy")

    @property
    def strategy(self) -> Optional[Strategy]:
        return self.strategies.get(self.strategy_name)

    def require_strategy(self) -> Strategy:
        strategy = self.strategy
        if strategy is None:
            raise StrategyNotFoundError(self.strategy_name)
        return strategy

    def register_strategy(self, name: str, strategy: Strategy) -> None:
        self.strategies.register(name, strategy)

    async def set_strategy(self, name: str) -> Any:
        """Switch the active strategy and mount it; no-op if already active."""
        if name == self.storage.get_universal("strategy"):
            return None

        self.storage.set_universal("strategy", name)
        logger.info(f"Switched strategy to {name}")

        return await self.mounted()

    async def mounted(self, *args, **kwargs) -> Any:
        strategy = self.require_strategy()

        if not strategy.supports(Capability.MOUNTED):
            result = await self.fetch_user_once()
        else:
            result = await self._call_hook(strategy, Capability.MOUNTED, ErrorMethod.MOUNTED,
                                           *args, **kwargs)

        self._phase = SessionPhase.MOUNTED
        return result

    async def login_with(self, name: str, *args, **kwargs) -> Any:
        await self.set_strategy(name)
        return await self.login(*args, **kwargs)

    async def login(self, *args, **kwargs) -> Any:
        strategy = self.require_strategy()

        if not strategy.supports(Capability.LOGIN):
            return None

        self._phase = SessionPhase.LOGGING_IN
        self.storage.set_state("busy", True)
        self.bus.clear()

        try:
            result = await maybe_await(strategy.login(self, *args, **kwargs))
        except Exception as e:
            self.storage.set_state("busy", False)
            self._phase = SessionPhase.MOUNTED
            self.call_on_error(e, ErrorPayload(method=ErrorMethod.LOGIN))
            raise

        self.storage.set_state("busy", False)
        self._phase = SessionPhase.MOUNTED
        return result

    async def fetch_user(self, *args, **kwargs) -> Any:
        strategy = self.require_strategy()

        if not strategy.supports(Capability.FETCH_USER):
            return None

        return await self._call_hook(strategy, Capability.FETCH_USER, ErrorMethod.FETCH_USER,
                                     *args, **kwargs)

    async def fetch_user_once(self, *args, **kwargs) -> Any:
        """Fetch the user only if none is cached."""
        if not self.user:
            return await self.fetch_user(*args, **kwargs)
        return None

    async def logout(self, *args, **kwargs) -> Any:
        strategy = self.require_strategy()

        if not strategy.supports(Capability.LOGOUT):
            await self.reset()
            return None

        self._phase = SessionPhase.LOGGING_OUT
        try:
            return await self._call_hook(strategy, Capability.LOGOUT, ErrorMethod.LOGOUT,
                                         *args, **kwargs)
        finally:
            self._phase = SessionPhase.MOUNTED

    async def reset(self, *args, **kwargs) -> Any:
        strategy = self.require_strategy()

        if not strategy.supports(Capability.RESET):
            self._clear_session()
            return None

        return await self._call_hook(strategy, Capability.RESET, ErrorMethod.RESET,
                                     *args, **kwargs)

    def _clear_session(self) -> None:
        self.set_user(False)
        self.tokens.clear(self.strategy_name)

    async def _call_hook(self, strategy: Strategy, capability: Capability,
                         method: ErrorMethod, *args, **kwargs) -> Any:
        hook = getattr(strategy, capability.value)
        try:
            return await maybe_await(hook(self, *args, **kwargs))
        except Exception as e:
            self.call_on_error(e, ErrorPayload(method=method))
            raise

    # ---------------------------------------------------------------
    # Token helpers
    # ---------------------------------------------------------------

    def get_token(self, strategy: str) -> Any:
        return self.tokens.get_token(strategy)

    def set_token(self, strategy: str, token: Any) -> Any:
        return self.tokens.set_token(strategy, token)

    def sync_token(self, strategy: str) -> Any:
        return self.tokens.sync_token(strategy)

    def get_refresh_token(self, strategy: str) -> Any:
        return self.tokens.get_refresh_token(strategy)

    def set_refresh_token(self, strategy: str, refresh_token: Any) -> Any:
        return self.tokens.set_refresh_token(strategy, refresh_token)

    def sync_refresh_token(self, strategy: str) -> Any:
        return self.tokens.sync_refresh_token(strategy)

    def get_token_expiration(self, strategy: str) -> Optional[float]:
        return self.tokens.get_expiration(strategy)

    def set_token_expiration(self, strategy: str, expiration: Any) -> Any:
        return self.tokens.set_expiration(strategy, expiration)

    def sync_token_expiration(self, strategy: str) -> Optional[float]:
        return self.tokens.sync_expiration(strategy)

    def get_token_scope(self, strategy: str) -> Optional[Scope]:
        return self.tokens.get_scope(strategy)

    def set_token_scope(self, strategy: str, scope: Any) -> Any:
        return self.tokens.set_scope(strategy, scope)

    def sync_token_scope(self, strategy: str) -> Optional[Scope]:
        return self.tokens.sync_scope(strategy)

    # ---------------------------------------------------------------
    # User helpers
    # ---------------------------------------------------------------

    def set_user(self, user: Any) -> None:
        """Update login state and push the profile to the user service."""
        self.storage.set_state("loggedIn", bool(user))
        self.storage.set_state("user", user)
        self.sync_profile(user)

    def sync_profile(self, user: Any) -> Optional[asyncio.Task]:
        """
        Send the user record and current tokens to the user update endpoint.

        The payload is captured immediately and sent in the background.
        Does nothing when no user service is configured.
        """
        url = self.options.endpoints.user_update_url
        if not url:
            return None

        name = self.strategy_name
        endpoint = {
            "method": "post",
            "url": url,
            "base_url": False,
            "data": {
                "user": user,
                "access_token": strip_token_type(self.tokens.get_token(name)) if name else None,
                "refresh_token": self.tokens.get_refresh_token(name) if name else None,
                "scope": self.tokens.get_scope(name) if name else None,
            },
        }
        return self._spawn(self._send_profile(endpoint))

    async def _send_profile(self, endpoint: Endpoint) -> None:
        try:
            await self.transport.request(endpoint)
        except Exception as e:
            logger.warning(f"Profile sync failed: {e}")

    def has_scope(self, scope: str) -> Optional[bool]:
        """
        Check a scope of the active strategy's token.

        Returns None when no scope is recorded, membership for a scope
        list, and the truthiness of a dotted lookup for a scope mapping.
        """
        name = self.strategy_name
        user_scopes = self.tokens.get_scope(name) if name else None

        if user_scopes is None:
            return None

        if isinstance(user_scopes, list):
            return scope in user_scopes

        return bool(get_prop(user_scopes, scope))

    # ---------------------------------------------------------------
    # Requests
    # ---------------------------------------------------------------

    async def request(self, endpoint: Endpoint, defaults: Optional[Endpoint] = None) -> Any:
        return await self.pipeline.request(endpoint, defaults)

    async def request_with(self, strategy: str, endpoint: Endpoint,
                           defaults: Optional[Endpoint] = None) -> Any:
        return await self.pipeline.request_with(strategy, endpoint, defaults)

    # ---------------------------------------------------------------
    # Errors
    # ---------------------------------------------------------------

    def on_error(self, listener: ErrorListener) -> None:
        self.bus.on_error(listener)

    def call_on_error(self, error: BaseException, payload: Optional[ErrorPayload] = None) -> None:
        self.bus.call_on_error(error, payload)

    def _reset_on_error(self, error: BaseException, payload: ErrorPayload) -> None:
        # A failing reset must not schedule another reset
        if payload.method == ErrorMethod.RESET.value:
            return

        predicate = self.options.reset_on_error
        if callable(predicate) and not predicate(error, payload):
            return

        # Without a reset hook the session is cleared before the error reaches the caller
        strategy = self.strategy
        if strategy is not None and not strategy.supports(Capability.RESET):
            self._clear_session()
            return

        self._spawn(self.reset())

    # ---------------------------------------------------------------
    # Redirects
    # ---------------------------------------------------------------

    def redirect(self, name: str, no_router: bool = False) -> Optional[str]:
        """
        Navigate for a named transition.

        Returns the target navigated to, or None if no navigation happened.
        """
        current = self.redirect_policy.current_location(self.ctx.route)
        decision = self.redirect_policy.decide(
            name,
            current,
            stored_redirect=self.storage.get_universal("redirect"),
            cookie_redirect=self.ctx.cookies.get(OAUTH_REDIRECT_COOKIE),
        )

        if decision.remember:
            self.storage.set_universal("redirect", decision.remember)

        if decision.consume_cookie:
            self.ctx.cookies.remove(OAUTH_REDIRECT_COOKIE)

        if decision.clear_remembered:
            self.storage.set_universal("redirect", None)

        if not decision.navigate:
            return None

        if self.ctx.is_client and no_router:
            self.ctx.navigator.replace(decision.target)
        else:
            self.ctx.navigator.redirect(decision.target)

        logger.debug(f"Redirected for {name} to {decision.target}")
        return decision.target

    def _on_logged_in_change(self, logged_in: Any, _old: Any) -> None:
        if route_option(self.ctx.route, "auth", False):
            return
        self.redirect("home" if logged_in else "logout")

    # ---------------------------------------------------------------
    # Background tasks
    # ---------------------------------------------------------------

    def _spawn(self, coro: Awaitable[Any]) -> Optional[asyncio.Task]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; background task skipped")
            coro.close()
            return None

        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(f"Background task failed: {exc}")

    async def wait_pending(self) -> None:
        """Wait until scheduled profile syncs and resets have finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
