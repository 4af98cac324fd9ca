"""
Tests for redirect decisions and their application by the engine.
"""

import pytest

from authsession import Route
from authsession.core.config import RedirectOptions
from authsession.redirect import OAUTH_REDIRECT_COOKIE, RedirectPolicy

from conftest import HookStrategy


@pytest.fixture
def policy():
    return RedirectPolicy(RedirectOptions())


class TestRedirectPolicy:
    """Test the pure decision function."""

    @pytest.mark.parametrize("name,current", [
        ("login", "/login"),
        ("login", "/login/"),
        ("logout", "/"),
        ("home", "/"),
    ])
    def test_no_redirect_to_current_location(self, policy, name, current):
        assert policy.decide(name, current).target is None

    def test_login_remembers_current_location(self, policy):
        decision = policy.decide("login", "/settings")

        assert decision.target == "/login"
        assert decision.remember == "/settings"

    def test_home_uses_remembered_location(self, policy):
        decision = policy.decide("home", "/login", stored_redirect="/settings")

        assert decision.target == "/settings"
        assert decision.clear_remembered
        assert not decision.consume_cookie

    def test_home_falls_back_to_cookie(self, policy):
        decision = policy.decide("home", "/login", cookie_redirect="/welcome")

        assert decision.target == "/welcome"
        assert decision.consume_cookie

    def test_stored_location_beats_cookie(self, policy):
        decision = policy.decide("home", "/login", stored_redirect="/settings",
                                 cookie_redirect="/welcome")

        assert decision.target == "/settings"
        assert not decision.consume_cookie

    def test_absolute_return_location_ignored(self, policy):
        decision = policy.decide("home", "/login", stored_redirect="https://evil.example.com/")

        assert decision.target == "/"

    def test_unmapped_transition(self):
        policy = RedirectPolicy(RedirectOptions(routes={"login": "/login", "logout": None}))

        assert not policy.decide("logout", "/dashboard").navigate
        assert not policy.decide("callback", "/dashboard").navigate

    def test_rewrite_disabled(self):
        policy = RedirectPolicy(RedirectOptions(rewrite_redirects=False))

        assert policy.decide("login", "/settings").remember is None
        assert policy.decide("home", "/login", stored_redirect="/settings").target == "/"

    def test_full_path_comparison(self):
        options = RedirectOptions(routes={"home": "/search"}, full_path_redirect=True)
        policy = RedirectPolicy(options)
        route = Route(path="/search", full_path="/search?q=1")

        current = policy.current_location(route)

        assert current == "/search?q=1"
        assert policy.decide("home", current).target == "/search"
        assert RedirectPolicy(RedirectOptions(routes={"home": "/search"})).decide(
            "home", "/search?q=1").target is None


class TestEngineRedirect:
    """Test side effects applied by Auth.redirect."""

    @pytest.mark.asyncio
    async def test_login_then_home_round_trip(self, make_auth, ctx, navigator):
        auth = make_auth(local=HookStrategy())
        await auth.init()

        assert auth.redirect("login") == "/login"
        assert auth.storage.get_universal("redirect") == "/dashboard"

        ctx.route = Route(path="/login")
        assert auth.redirect("home") == "/dashboard"
        assert auth.storage.get_universal("redirect") is None
        assert navigator.history == ["/login", "/dashboard"]

    @pytest.mark.asyncio
    async def test_cookie_is_consumed(self, make_auth, ctx, navigator):
        ctx.route = Route(path="/callback")
        ctx.cookies.set(OAUTH_REDIRECT_COOKIE, "/welcome")
        auth = make_auth(local=HookStrategy())
        await auth.init()

        assert auth.redirect("home") == "/welcome"
        assert ctx.cookies.get(OAUTH_REDIRECT_COOKIE) is None

    @pytest.mark.asyncio
    async def test_no_router_replaces_location(self, make_auth, navigator):
        auth = make_auth(local=HookStrategy())
        await auth.init()

        auth.redirect("logout", no_router=True)

        assert navigator.replaced == ["/"]
        assert navigator.history == []

    def test_server_always_uses_router(self, make_auth, ctx, navigator):
        ctx.is_server = True
        auth = make_auth()

        auth.redirect("logout", no_router=True)

        assert navigator.history == ["/"]
        assert navigator.replaced == []

    def test_no_navigation_returns_none(self, make_auth, ctx, navigator):
        ctx.route = Route(path="/login")
        auth = make_auth()

        assert auth.redirect("login") is None
        assert navigator.history == []
