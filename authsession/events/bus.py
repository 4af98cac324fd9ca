"""
Error listener bus for authsession.

Every unrecovered failure of a strategy hook or an outgoing request is
published here before it is re-raised to the caller. Delivery is
synchronous and ordered. Listeners must not raise: an exception from a
listener propagates to the publisher and the remaining listeners are not
called.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


logger = logging.getLogger(__name__)


class ErrorMethod(str, Enum):
    """Operations that publish failures."""

    MOUNTED = "mounted"
    LOGIN = "login"
    FETCH_USER = "fetchUser"
    LOGOUT = "logout"
    RESET = "reset"
    COMPLETE_REQUEST = "completeRequest"


@dataclass
class ErrorPayload:
    """
    Context delivered with a published error.

    Attributes:
        method: Name of the failing operation
        timestamp: When the failure was published
        metadata: Additional operation-specific data
    """

    method: str = ""
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if isinstance(self.method, ErrorMethod):
            self.method = self.method.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ErrorPayload":
        """Build a payload from a plain mapping; unknown keys go to metadata."""
        data = dict(data)
        metadata = dict(data.pop("metadata", None) or {})
        known = {key: data.pop(key) for key in ("method", "timestamp") if key in data}
        metadata.update(data)
        return cls(metadata=metadata, **known)


ErrorListener = Callable[[BaseException, ErrorPayload], Any]


class ErrorBus:
    """Ordered list of error listeners."""

    def __init__(self):
        self._listeners: List[ErrorListener] = []
        self.error: Optional[BaseException] = None

    def on_error(self, listener: ErrorListener) -> None:
        """Append a listener; it is called after all earlier ones."""
        self._listeners.append(listener)

    def remove_listener(self, listener: ErrorListener) -> bool:
        try:
            self._listeners.remove(listener)
            return True
        except ValueError:
            return False

    def call_on_error(self, error: BaseException, payload: Optional[ErrorPayload] = None) -> None:
        """Record error as the current error and deliver it to every listener."""
        if payload is None:
            payload = ErrorPayload()
        elif isinstance(payload, dict):
            payload = ErrorPayload.from_dict(payload)

        self.error = error
        logger.debug(f"Publishing {type(error).__name__} from {payload.method or 'unknown'}")

        for listener in list(self._listeners):
            listener(error, payload)

    def clear(self) -> None:
        self.error = None

    def __len__(self) -> int:
        return len(self._listeners)
