"""
Basic authsession usage example.

This example demonstrates the fundamental session operations:
- Creating an Auth engine with a strategy
- Logging in and storing a token record
- Transparent refresh of an expired access token
- Error listeners and logout

It runs offline against an in-process transport that imitates an auth
server.
"""

import asyncio
import logging

from authsession import Auth, AuthContext, AuthOptions, Strategy, StrategyOptions
from authsession.core.config import EndpointOptions
from authsession.errors import HTTPError
from authsession.transport import Response, Transport


class DemoTransport(Transport):
    """Answers the handful of endpoints this example calls."""

    def __init__(self):
        self.issued = 0

    async def request(self, endpoint):
        url = endpoint["url"]
        if url.endswith("/login"):
            return Response(200, {"access_token": "first", "refresh_token": "r1", "expires_in": 0})
        if url.endswith("/oauth/token"):
            self.issued += 1
            return Response(200, {
                "token_type": "Bearer",
                "access_token": f"refreshed-{self.issued}",
                "refresh_token": f"r{self.issued + 1}",
                "expires_in": 3600,
                "scope": "read write",
            })
        if url.endswith("/me"):
            return Response(200, {"user": {"user_id": 7, "name": "Jane"}})
        if url.endswith("/users/update/"):
            return Response(204)
        raise HTTPError(404, Response(404))


class DemoStrategy(Strategy):
    async def login(self, auth, username, password):
        data = await auth.request({"method": "post", "url": "/login",
                                   "data": {"username": username, "password": password}})
        auth.set_token(self.name, f"Bearer {data['access_token']}")
        auth.set_refresh_token(self.name, data["refresh_token"])
        auth.set_token_expiration(self.name, auth.clock() + data["expires_in"])
        await self.fetch_user(auth)

    async def fetch_user(self, auth):
        user = await auth.request_with(self.name, {"url": "/me", "property_name": "user"})
        auth.set_user(user)


async def basic_example():
    """Demonstrate basic authsession usage"""
    print("Basic authsession Example")
    print("=" * 30)

    # 1. Create the engine
    options = AuthOptions(
        default_strategy="demo",
        endpoints=EndpointOptions(api_base_url="https://api.example.com"),
    )
    auth = Auth.new(AuthContext(), options, transport=DemoTransport())
    auth.register_strategy("demo", DemoStrategy(options=StrategyOptions(
        client_id="demo-client",
        token_endpoint="https://auth.example.com/oauth/token",
    )))
    auth.on_error(lambda error, payload: print(f"! {payload.method} failed: {error}"))
    print("✓ Created Auth engine")

    try:
        # 2. Mount the strategy
        await auth.init()
        print(f"✓ Initialized with strategy: {auth.strategy_name}")

        # 3. Log in; the issued token expires immediately
        await auth.login("jane", "secret")
        print(f"✓ Logged in as {auth.user['name']} (logged_in={auth.logged_in})")

        # 4. The next request refreshes the token first
        me = await auth.request_with("demo", {"url": "/me"})
        print(f"✓ Request succeeded: {me}")
        print(f"✓ Token after refresh: {auth.get_token('demo')}")
        print(f"✓ has_scope('write'): {auth.has_scope('write')}")

        # 5. Log out
        await auth.logout()
        print(f"✓ Logged out (logged_in={auth.logged_in})")

    finally:
        # 6. Cleanup
        await auth.close()
        print("✓ Auth engine closed")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(basic_example())
