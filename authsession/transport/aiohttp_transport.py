"""
aiohttp-based transport for authsession.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp
from aiohttp import ClientSession, ClientTimeout

from ..errors import HTTPError, TransportError
from .base import Endpoint, Response, Transport


logger = logging.getLogger(__name__)


def build_url(endpoint: Endpoint, base_url: Optional[str]) -> str:
    """
    Resolve the absolute URL of an endpoint.

    Absolute URLs and endpoints with base_url=False are used unchanged; an
    endpoint-level base_url string overrides the transport default.
    """
    url = endpoint.get("url") or ""
    if url.startswith("http://") or url.startswith("https://"):
        return url

    endpoint_base = endpoint.get("base_url", None)
    if endpoint_base is False:
        return url

    base = endpoint_base if isinstance(endpoint_base, str) else base_url
    if not base:
        return url

    return base.rstrip("/") + "/" + url.lstrip("/")


def build_request_kwargs(endpoint: Endpoint) -> Dict[str, Any]:
    """Translate an endpoint dictionary into ClientSession.request keyword arguments."""
    kwargs: Dict[str, Any] = {}

    headers = endpoint.get("headers")
    if headers:
        kwargs["headers"] = dict(headers)

    params = endpoint.get("params")
    if params:
        kwargs["params"] = params

    if endpoint.get("json") is not None:
        kwargs["json"] = endpoint["json"]
    elif endpoint.get("data") is not None:
        data = endpoint["data"]
        # Mappings and lists are sent as JSON; strings and bytes as the raw body
        if isinstance(data, (dict, list)):
            kwargs["json"] = data
        else:
            kwargs["data"] = data

    return kwargs


class AiohttpTransport(Transport):
    """
    Transport backed by an aiohttp ClientSession.

    Args:
        base_url: Prefix for relative endpoint URLs
        timeout: Optional aiohttp timeout applied to every request
        session: Existing session to use; it is not closed by close()
    """

    def __init__(self, base_url: Optional[str] = None,
                 timeout: Optional[ClientTimeout] = None,
                 session: Optional[ClientSession] = None):
        self.base_url = base_url
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> ClientSession:
        if self._session is None or self._session.closed:
            if self.timeout is not None:
                self._session = ClientSession(timeout=self.timeout)
            else:
                self._session = ClientSession()
            self._owns_session = True
        return self._session

    async def request(self, endpoint: Endpoint) -> Response:
        method = (endpoint.get("method") or "get").upper()
        url = build_url(endpoint, self.base_url)
        kwargs = build_request_kwargs(endpoint)

        session = self._get_session()
        logger.debug(f"{method} {url}")

        try:
            async with session.request(method, url, **kwargs) as resp:
                data = await self._read_body(resp)
                response = Response(
                    status=resp.status,
                    data=data,
                    headers=dict(resp.headers),
                )
        except aiohttp.ClientError as e:
            raise TransportError(f"{method} {url} failed: {e}", details={"url": url})
        except asyncio.TimeoutError:
            raise TransportError(f"{method} {url} timed out", "TIMEOUT", {"url": url})

        if response.status >= 400:
            raise HTTPError(response.status, response)

        return response

    @staticmethod
    async def _read_body(resp: aiohttp.ClientResponse) -> Any:
        if resp.status == 204:
            return None
        if resp.content_type == "application/json":
            return await resp.json()
        text = await resp.text()
        return text or None

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
            logger.debug("Closed aiohttp session")
