"""
HTTP transport interface for authsession.

Endpoints are plain dictionaries so that defaults can be merged under
caller-supplied values:

    {
        "method": "get",
        "url": "/api/me",
        "base_url": False,          # False bypasses the default base URL
        "headers": {...},
        "params": {...},
        "data": {...} or "raw body",
        "json": {...},
        "property_name": "data.user",  # consumed by the request pipeline
    }
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict


Endpoint = Dict[str, Any]


@dataclass
class Response:
    """Decoded HTTP response."""
    status: int
    data: Any = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 400


class Transport(ABC):
    """Executes endpoint dictionaries."""

    @abstractmethod
    async def request(self, endpoint: Endpoint) -> Response:
        """
        Execute a request.

        Raises:
            HTTPError: the server answered with status >= 400
            TransportError: no response was received
        """
        pass

    async def close(self) -> None:
        """Release network resources."""
        pass
