"""
HTTP transports for authsession.
"""

from .base import Endpoint, Response, Transport
from .aiohttp_transport import AiohttpTransport, build_request_kwargs, build_url

__all__ = [
    "Endpoint",
    "Response",
    "Transport",
    "AiohttpTransport",
    "build_request_kwargs",
    "build_url",
]
