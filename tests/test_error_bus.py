"""
Tests for the error listener bus.
"""

from datetime import datetime

import pytest

from authsession.events import ErrorBus, ErrorMethod, ErrorPayload


class TestErrorBus:
    """Test listener registration and delivery."""

    def test_listeners_called_in_order(self):
        bus = ErrorBus()
        calls = []
        bus.on_error(lambda error, payload: calls.append(("first", payload.method)))
        bus.on_error(lambda error, payload: calls.append(("second", payload.method)))

        bus.call_on_error(ValueError("boom"), ErrorPayload(method=ErrorMethod.LOGIN))

        assert calls == [("first", "login"), ("second", "login")]

    def test_current_error_is_recorded(self):
        bus = ErrorBus()
        error = ValueError("boom")

        bus.call_on_error(error)

        assert bus.error is error
        bus.clear()
        assert bus.error is None

    def test_listener_exception_propagates(self):
        bus = ErrorBus()
        calls = []

        def failing(error, payload):
            raise RuntimeError("listener failed")

        bus.on_error(failing)
        bus.on_error(lambda error, payload: calls.append(error))

        with pytest.raises(RuntimeError, match="listener failed"):
            bus.call_on_error(ValueError("boom"))

        assert calls == []

    def test_remove_listener(self):
        bus = ErrorBus()
        calls = []

        def listener(error, payload):
            calls.append(error)

        bus.on_error(listener)
        assert bus.remove_listener(listener) is True
        assert bus.remove_listener(listener) is False

        bus.call_on_error(ValueError("boom"))

        assert calls == []
        assert len(bus) == 0

    def test_dict_payload(self):
        bus = ErrorBus()
        payloads = []
        bus.on_error(lambda error, payload: payloads.append(payload))

        bus.call_on_error(ValueError("boom"), {"method": "completeRequest", "metadata": {"url": "/me"}})

        assert payloads[0].method == "completeRequest"
        assert payloads[0].metadata == {"url": "/me"}

    def test_dict_payload_extra_keys_become_metadata(self):
        bus = ErrorBus()
        payloads = []
        bus.on_error(lambda error, payload: payloads.append(payload))

        bus.call_on_error(ValueError("boom"), {"method": "login", "url": "/me", "metadata": {"attempt": 2}})

        assert payloads[0].method == "login"
        assert payloads[0].metadata == {"attempt": 2, "url": "/me"}


class TestErrorPayload:
    """Test payload construction."""

    def test_enum_method_becomes_string(self):
        payload = ErrorPayload(method=ErrorMethod.FETCH_USER)

        assert payload.method == "fetchUser"
        assert payload.method == ErrorMethod.FETCH_USER

    def test_to_dict(self):
        timestamp = datetime(2024, 1, 1, 12, 0, 0)
        payload = ErrorPayload(method="logout", timestamp=timestamp)

        assert payload.to_dict() == {
            "method": "logout",
            "timestamp": "2024-01-01T12:00:00",
            "metadata": {},
        }
