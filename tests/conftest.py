"""
Shared fakes and fixtures for authsession tests.
"""

from typing import Any, Dict, List, Optional

import pytest

from authsession import Auth, AuthContext, AuthOptions, Route, Strategy, StrategyOptions
from authsession.core.config import EndpointOptions
from authsession.core.context import LoadingIndicator, RecordingNavigator
from authsession.errors import HTTPError
from authsession.storage import CookieBackend, MemoryBackend
from authsession.transport import Response, Transport


TOKEN_ENDPOINT = "https://auth.example.com/oauth/token"
API_BASE = "https://api.example.com"
USER_AUTH_URL = API_BASE + "/api/users/get/auth/"
USER_UPDATE_URL = API_BASE + "/api/users/update/"


class FakeTransport(Transport):
    """
    Transport answering from per-URL queues.

    Each queued item is a Response, an exception to raise, or a plain body
    wrapped in a 200 response. The last item of a queue is repeated.
    """

    def __init__(self):
        self.requests: List[Dict[str, Any]] = []
        self.routes: Dict[str, List[Any]] = {}
        self.closed = False

    def add(self, url: str, *results: Any) -> None:
        self.routes.setdefault(url, []).extend(results)

    def calls(self, url: str) -> List[Dict[str, Any]]:
        return [req for req in self.requests if req.get("url") == url]

    @property
    def urls(self) -> List[str]:
        return [req.get("url") for req in self.requests]

    async def request(self, endpoint):
        self.requests.append(endpoint)
        queue = self.routes.get(endpoint.get("url"))
        if not queue:
            raise HTTPError(404, Response(404, {"error": "not found"}))

        result = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(result, BaseException):
            raise result
        if isinstance(result, Response):
            return result
        return Response(200, result)

    async def close(self):
        self.closed = True


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class RecordingLoading(LoadingIndicator):
    def __init__(self):
        self.events: List[str] = []

    def finish(self) -> None:
        self.events.append("finish")

    def fail(self) -> None:
        self.events.append("fail")


class BareStrategy(Strategy):
    """Strategy without any hooks."""


class HookStrategy(Strategy):
    """Strategy implementing every hook and recording the calls."""

    def __init__(self, name: Optional[str] = None, options: Optional[StrategyOptions] = None,
                 user: Any = None, fail: Optional[Dict[str, BaseException]] = None):
        super().__init__(name, options or StrategyOptions(
            client_id="web-client", token_endpoint=TOKEN_ENDPOINT,
        ))
        self.user = user if user is not None else {"user_id": 42, "name": "Jane"}
        self.fail = fail or {}
        self.calls: List[str] = []
        self.busy_during_login: Optional[bool] = None
        self.installed_tokens: List[str] = []

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail:
            raise self.fail[name]

    async def mounted(self, auth, *args, **kwargs):
        self._record("mounted")
        return await auth.fetch_user_once()

    async def login(self, auth, *args, **kwargs):
        self.busy_during_login = auth.busy
        self._record("login")
        auth.set_token(self.name, "Bearer login-token")
        auth.set_user(self.user)
        return "logged-in"

    async def fetch_user(self, auth, *args, **kwargs):
        self._record("fetch_user")
        auth.set_user(self.user)

    async def logout(self, auth, *args, **kwargs):
        self._record("logout")
        await auth.reset()

    def reset(self, auth, *args, **kwargs):
        self._record("reset")
        auth.set_user(False)

    def set_token(self, auth, token):
        self.installed_tokens.append(token)


class FetchOnlyStrategy(Strategy):
    """Strategy with only a fetch_user hook; used to observe default mounting."""

    def __init__(self, name=None, options=None, user=None):
        super().__init__(name, options or StrategyOptions(
            client_id="web-client", token_endpoint=TOKEN_ENDPOINT,
        ))
        self.user = user or {"user_id": 42}
        self.fetches = 0

    async def fetch_user(self, auth, *args, **kwargs):
        self.fetches += 1
        auth.set_user(self.user)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def loading():
    return RecordingLoading()


@pytest.fixture
def navigator():
    return RecordingNavigator()


@pytest.fixture
def ctx(navigator, loading):
    return AuthContext(
        route=Route(path="/dashboard"),
        navigator=navigator,
        cookies=CookieBackend(),
        local=MemoryBackend(),
        loading=loading,
    )


@pytest.fixture
def options():
    return AuthOptions(
        default_strategy="local",
        endpoints=EndpointOptions(api_base_url=API_BASE),
        watch_logged_in=False,
    )


@pytest.fixture
def make_auth(ctx, options, transport, clock):
    """Build an engine with the shared fakes; strategies are registered by name."""

    def factory(**strategies: Strategy) -> Auth:
        auth = Auth(ctx, options, transport=transport, clock=clock)
        for name, strategy in strategies.items():
            auth.register_strategy(name, strategy)
        return auth

    return factory
