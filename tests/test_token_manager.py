"""
Tests for per-strategy token records.
"""

import pytest

from authsession.core.config import RefreshTokenOptions, TokenOptions
from authsession.storage import CookieBackend, MemoryBackend, Storage
from authsession.token import TokenManager


@pytest.fixture
def cookies():
    return CookieBackend()


@pytest.fixture
def tokens(cookies):
    storage = Storage(cookies=cookies, local=MemoryBackend())
    return TokenManager(storage)


class TestTokenKeys:
    """Test key derivation."""

    def test_default_keys(self, tokens):
        assert tokens.token_key("local") == "_token.local"
        assert tokens.refresh_token_key("local") == "_refresh_token.local"
        assert tokens.expiration_key("local") == "_token.expiration.local"
        assert tokens.scope_key("local") == "_token.scope.local"

    def test_custom_prefixes(self):
        tokens = TokenManager(Storage(), TokenOptions(prefix="t:"), RefreshTokenOptions(prefix="r:"))

        assert tokens.token_key("github") == "t:github"
        assert tokens.refresh_token_key("github") == "r:github"
        assert tokens.expiration_key("github") == "t:expiration.github"


class TestTokenRecord:
    """Test reading and writing token records."""

    def test_token_round_trip(self, tokens, cookies):
        tokens.set_token("local", "Bearer abc")

        assert tokens.get_token("local") == "Bearer abc"
        assert cookies.get("auth._token.local") == "Bearer abc"
        assert tokens.has_token("local")

    def test_numeric_looking_refresh_token_kept_as_string(self, cookies):
        TokenManager(Storage(cookies=cookies)).set_refresh_token("local", "123e4")
        restored = TokenManager(Storage(cookies=cookies))

        assert restored.get_refresh_token("local") == "123e4"

    def test_records_are_per_strategy(self, tokens):
        tokens.set_token("local", "Bearer a")
        tokens.set_token("github", "Bearer b")

        assert tokens.get_token("local") == "Bearer a"
        assert tokens.get_token("github") == "Bearer b"

    def test_store_skips_missing_fields(self, tokens):
        tokens.store("local", "Bearer a", refresh_token="r1", expiration=100.0, scope="read")
        tokens.store("local", "Bearer b")

        assert tokens.get_token("local") == "Bearer b"
        assert tokens.get_refresh_token("local") == "r1"
        assert tokens.get_expiration("local") == 100.0
        assert tokens.get_scope("local") == ["read"]

    def test_clear_sets_sentinel(self, tokens):
        tokens.store("local", "Bearer a", refresh_token="r1")
        tokens.clear("local")

        assert tokens.get_token("local") is False
        assert tokens.get_refresh_token("local") is False
        assert not tokens.has_token("local")

    def test_sync_token_restores_state(self, cookies):
        cookies.set("auth._token.local", "Bearer persisted")
        storage = Storage(cookies=cookies)
        tokens = TokenManager(storage)

        assert tokens.sync_token("local") == "Bearer persisted"
        assert storage.get_state("_token.local") == "Bearer persisted"


class TestExpiration:
    """Test expiry coercion."""

    def test_string_from_cookie_is_coerced(self, tokens, cookies):
        cookies.set("auth._token.expiration.local", "1700000000.5")

        assert tokens.get_expiration("local") == 1700000000.5

    @pytest.mark.parametrize("stored", [False, "soon"])
    def test_unusable_values_are_none(self, tokens, stored):
        tokens.set_expiration("local", stored)

        assert tokens.get_expiration("local") is None

    def test_missing_is_none(self, tokens):
        assert tokens.get_expiration("local") is None


class TestScope:
    """Test scope normalization."""

    def test_space_delimited_string(self, tokens):
        tokens.set_scope("local", "read  write")

        assert tokens.get_scope("local") == ["read", "write"]

    def test_list(self, tokens):
        tokens.set_scope("local", ["admin"])

        assert tokens.get_scope("local") == ["admin"]

    def test_mapping(self, tokens):
        tokens.set_scope("local", {"admin": {"users": True}})

        assert tokens.get_scope("local") == {"admin": {"users": True}}

    def test_unset(self, tokens):
        assert tokens.get_scope("local") is None
        tokens.set_scope("local", False)
        assert tokens.get_scope("local") is None
