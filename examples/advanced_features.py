"""
Advanced authsession features example.

This example demonstrates:
- Server rendering with a cookie jar parsed from a request header
- Set-Cookie headers for the response
- A client-side engine persisting its local store to a JSON file
- Credential recovery after a rejected refresh token
- Automatic reset after an unrecovered failure
"""

import asyncio
import logging
import os
import tempfile

from authsession import Auth, AuthContext, AuthOptions, Route, Strategy, StrategyOptions
from authsession.core.config import EndpointOptions
from authsession.errors import HTTPError
from authsession.storage import CookieBackend, FileBackend
from authsession.transport import Response, Transport


class FlakyAuthServer(Transport):
    """Rejects the first refresh token it sees, then recovers."""

    def __init__(self):
        self.rejected = False

    async def request(self, endpoint):
        url = endpoint["url"]
        if url.endswith("/oauth/token"):
            if not self.rejected:
                self.rejected = True
                raise HTTPError(400, Response(400, {"error": "invalid_grant"}))
            return Response(200, {"access_token": "fresh", "refresh_token": "r3", "expires_in": 900})
        if url.endswith("/users/get/auth/"):
            return Response(200, {"access_token": "stored", "refresh_token": "r2"})
        if url.endswith("/users/update/"):
            return Response(204)
        if url.endswith("/me"):
            return Response(200, {"user_id": 7, "name": "Jane"})
        raise HTTPError(503, Response(503))


class CookieStrategy(Strategy):
    async def fetch_user(self, auth):
        if not auth.tokens.has_token(self.name):
            return
        auth.set_user(await auth.request_with(self.name, {"url": "/me"}))


def build_options():
    return AuthOptions(
        default_strategy="cookie",
        endpoints=EndpointOptions(api_base_url="https://api.example.com"),
        reset_on_error=lambda error, payload: payload.method == "completeRequest",
    )


def register(auth):
    auth.register_strategy("cookie", CookieStrategy(options=StrategyOptions(
        client_id="advanced-example-client",
        token_endpoint="https://auth.example.com/oauth/token",
    )))


async def server_render(cookie_header):
    """Resolve the session during server rendering and return Set-Cookie headers."""
    jar = CookieBackend.from_header(cookie_header)
    ctx = AuthContext(route=Route(path="/account"), cookies=jar, is_server=True)
    auth = Auth.new(ctx, build_options(), transport=FlakyAuthServer())
    register(auth)

    await auth.init()
    print(f"✓ Server render: logged_in={auth.logged_in}, user={auth.user}")
    await auth.close()
    return jar.set_cookie_headers()


async def client_session(storage_path):
    """Run the client-side engine with a file-backed local store."""
    local = FileBackend(storage_path)
    await local.load()

    auth = Auth.new(AuthContext(local=local), build_options(), transport=FlakyAuthServer())
    register(auth)
    auth.on_error(lambda error, payload: print(f"! {payload.method}: {error}"))

    try:
        await auth.init()
        auth.set_token("cookie", "Bearer stale")
        auth.set_refresh_token("cookie", "r1")
        auth.set_token_expiration("cookie", auth.clock() - 1)
        auth.set_user({"user_id": 7, "name": "Jane"})

        # Refresh is rejected, stored credentials are recovered, refresh runs once more
        await auth.request_with("cookie", {"url": "/me"})
        print(f"✓ Token after recovery: {auth.get_token('cookie')}")

        # An unrecovered failure resets the session
        try:
            await auth.request({"url": "/unavailable"})
        except HTTPError as e:
            print(f"✓ Request failed with status {e.status}")
        await auth.wait_pending()
        print(f"✓ Session reset: logged_in={auth.logged_in}")
    finally:
        await auth.close()
        await local.flush()

    print(f"✓ Local store persisted to {storage_path}")


async def advanced_example():
    """Demonstrate advanced authsession features"""
    print("Advanced authsession Example")
    print("=" * 30)

    headers = await server_render("auth.strategy=cookie; auth._token.cookie=Bearer%20abc")
    for header in headers:
        print(f"  Set-Cookie: {header}")

    with tempfile.TemporaryDirectory() as directory:
        await client_session(os.path.join(directory, "storage.json"))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(advanced_example())
