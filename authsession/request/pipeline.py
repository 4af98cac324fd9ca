"""
Outgoing request pipeline with transparent token refresh.

A request moves through a small state machine:

    DIRECT                         token not expired, dispatch as-is
    REFRESHING -> DISPATCH         expired token refreshed, then dispatch
    REFRESHING -> RECOVERING       refresh rejected with status 400
    RECOVERING -> REFRESHING_AGAIN stored credentials recovered for the user
    REFRESHING_AGAIN -> DISPATCH   second and last refresh attempt
    any failure -> FAILED          reported on the error bus and re-raised

Refresh and recovery each run at most once per request. Token records are
not locked, so concurrent requests past an expired token may each refresh.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional
from urllib.parse import urlencode

from ..common.utils import (
    get_current_time, get_prop, is_token_set, maybe_await, merge_dicts,
)
from ..errors import ConfigurationError, CredentialRecoveryError, get_status
from ..events.bus import ErrorMethod, ErrorPayload
from ..strategy.base import Capability, Strategy
from ..transport.base import Endpoint

if TYPE_CHECKING:
    from ..core.auth import Auth


logger = logging.getLogger(__name__)


class RequestState(Enum):
    """States of a single pipeline run."""
    DIRECT = "direct"
    REFRESHING = "refreshing"
    RECOVERING = "recovering"
    REFRESHING_AGAIN = "refreshing_again"
    DISPATCH = "dispatch"
    FAILED = "failed"


class RequestPipeline:
    """
    Executes requests for an engine, refreshing expired tokens first.

    Args:
        auth: Engine providing the active strategy, token records, user,
            transport and error bus
        clock: Epoch-seconds clock used for expiry checks
    """

    def __init__(self, auth: "Auth", clock: Callable[[], float] = get_current_time):
        self.auth = auth
        self.clock = clock

    # ---------------------------------------------------------------
    # Entry points
    # ---------------------------------------------------------------

    async def request(self, endpoint: Endpoint, defaults: Optional[Endpoint] = None) -> Any:
        """
        Execute endpoint merged over defaults and return the response body.

        If the endpoint sets property_name, only that dotted sub-value of
        the body is returned.
        """
        state = self.initial_state()
        error: Optional[BaseException] = None

        while True:
            logger.debug(f"Request state: {state.value}")

            if state in (RequestState.DIRECT, RequestState.DISPATCH):
                try:
                    return await self.complete_request(endpoint, defaults)
                except Exception as e:
                    error = e
                    state = RequestState.FAILED

            elif state is RequestState.REFRESHING:
                try:
                    await self.refresh_token()
                    state = RequestState.DISPATCH
                except Exception as e:
                    error = e
                    if get_status(e) == 400:
                        logger.info("Refresh token rejected, recovering stored credentials")
                        state = RequestState.RECOVERING
                    else:
                        state = RequestState.FAILED

            elif state is RequestState.RECOVERING:
                try:
                    await self.recover_credentials()
                    state = RequestState.REFRESHING_AGAIN
                except Exception as e:
                    error = e
                    state = RequestState.FAILED

            elif state is RequestState.REFRESHING_AGAIN:
                try:
                    await self.refresh_token()
                    state = RequestState.DISPATCH
                except Exception as e:
                    error = e
                    state = RequestState.FAILED

            else:
                self._report_failure(error)
                raise error

    async def request_with(self, strategy_name: str, endpoint: Endpoint,
                           defaults: Optional[Endpoint] = None) -> Any:
        """Execute a request carrying the stored token of a given strategy."""
        merged = merge_dicts(defaults, endpoint)
        headers = dict(merged.get("headers") or {})

        header_name = self.auth.options.token.name
        token = self.auth.tokens.get_token(strategy_name)
        has_header = any(key.lower() == header_name.lower() for key in headers)

        if not has_header and is_token_set(token):
            headers[header_name] = token

        merged["headers"] = headers
        return await self.request(merged)

    # ---------------------------------------------------------------
    # States
    # ---------------------------------------------------------------

    def initial_state(self) -> RequestState:
        """REFRESHING if the active strategy's token has expired, else DIRECT."""
        name = self.auth.strategy_name
        if self.auth.strategy is None:
            return RequestState.DIRECT

        expiration = self.auth.tokens.get_expiration(name)
        refresh_token = self.auth.tokens.get_refresh_token(name)

        if expiration and is_token_set(refresh_token) and self.clock() >= expiration:
            logger.info(f"Access token for {name} expired, refreshing before request")
            return RequestState.REFRESHING

        return RequestState.DIRECT

    async def complete_request(self, endpoint: Endpoint, defaults: Optional[Endpoint] = None) -> Any:
        if isinstance(defaults, dict):
            merged = merge_dicts(defaults, endpoint)
        else:
            merged = dict(endpoint)

        response = await self.auth.transport.request(merged)

        if self.auth.ctx.is_client:
            self.auth.ctx.loading.finish()

        property_name = merged.get("property_name")
        if property_name:
            return get_prop(response.data, property_name)
        return response.data

    async def refresh_token(self) -> None:
        """Exchange the stored refresh token for a new token record."""
        strategy = self.auth.require_strategy()
        name = self.auth.strategy_name
        token_endpoint = strategy.options.token_endpoint
        if not token_endpoint:
            raise ConfigurationError(f"Strategy {name} has no token_endpoint configured")

        response = await self.auth.transport.request({
            "method": "post",
            "url": token_endpoint,
            "base_url": False,
            "headers": {
                "Content-Type": "application/x-www-form-urlencoded",
            },
            "data": urlencode({
                "client_id": strategy.options.client_id or "",
                "refresh_token": self.auth.tokens.get_refresh_token(name),
                "grant_type": "refresh_token",
            }),
        })

        data: Dict[str, Any] = response.data or {}
        token_type = data.get("token_type") or self.auth.options.token.type
        access_token = f"{token_type} {data['access_token']}"

        expires_in = data.get("expires_in")
        expiration = self.clock() + float(expires_in) if expires_in is not None else False

        self.auth.tokens.store(
            name,
            access_token,
            refresh_token=data.get("refresh_token"),
            expiration=expiration,
            scope=data.get("scope"),
        )
        await self._install_token(strategy, access_token)
        logger.info(f"Refreshed access token for strategy {name}")

        self.auth.sync_profile(self.auth.user)

    async def recover_credentials(self) -> None:
        """
        Fetch the user's stored credentials from the user service.

        Raises:
            CredentialRecoveryError: no user is cached; nothing is requested
        """
        user = self.auth.user
        if not user:
            raise CredentialRecoveryError()

        strategy = self.auth.require_strategy()
        name = self.auth.strategy_name
        user_id = get_prop(user, self.auth.options.user_id_field)

        response = await self.auth.transport.request({
            "method": "get",
            "url": self.auth.options.endpoints.user_auth_url,
            "base_url": False,
            "params": {"user_id": user_id},
        })

        data: Dict[str, Any] = response.data or {}
        token_type = data.get("token_type") or self.auth.options.token.type
        access_token = data["access_token"]
        if not str(access_token).startswith(f"{token_type} "):
            access_token = f"{token_type} {access_token}"

        self.auth.tokens.set_token(name, access_token)
        self.auth.tokens.set_refresh_token(name, data.get("refresh_token"))
        await self._install_token(strategy, access_token)
        logger.info(f"Recovered stored credentials for user {user_id}")

    # ---------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------

    async def _install_token(self, strategy: Strategy, token: str) -> None:
        if strategy.supports(Capability.SET_TOKEN):
            await maybe_await(strategy.set_token(self.auth, token))

    def _report_failure(self, error: BaseException) -> None:
        logger.error(f"Request failed: {error}")
        if self.auth.ctx.is_client:
            self.auth.ctx.loading.fail()
        self.auth.call_on_error(error, ErrorPayload(method=ErrorMethod.COMPLETE_REQUEST))
