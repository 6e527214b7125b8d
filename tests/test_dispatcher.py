"""Tests for EventDispatcher."""

from unittest.mock import Mock

import pytest

from timepod.protocol import BankColor, Brightness, EventDispatcher, MessageType


@pytest.mark.unit
class TestEventDispatcher:
    """Test subscription and delivery."""

    def test_dispatch_to_subscribers_of_type(self):
        dispatcher = EventDispatcher()
        on_brightness = Mock()
        on_bank = Mock()
        dispatcher.subscribe(MessageType.BRIGHTNESS, on_brightness)
        dispatcher.subscribe(MessageType.BANK_COLOR, on_bank)

        msg = Brightness(value=5)
        assert dispatcher.dispatch(msg) == 1
        on_brightness.assert_called_once_with(msg)
        on_bank.assert_not_called()

    def test_multiple_subscribers_in_order(self):
        dispatcher = EventDispatcher()
        calls = []
        dispatcher.subscribe(MessageType.BRIGHTNESS, lambda m: calls.append("first"))
        dispatcher.subscribe(MessageType.BRIGHTNESS, lambda m: calls.append("second"))

        dispatcher.dispatch(Brightness(value=1))
        assert calls == ["first", "second"]

    def test_unsubscribe(self):
        dispatcher = EventDispatcher()
        handler = Mock()
        unsubscribe = dispatcher.subscribe(MessageType.BRIGHTNESS, handler)

        unsubscribe()
        unsubscribe()  # second call is harmless
        assert dispatcher.dispatch(Brightness(value=1)) == 0
        handler.assert_not_called()

    def test_subscribe_all(self):
        dispatcher = EventDispatcher()
        handler = Mock()
        unsubscribe = dispatcher.subscribe_all(handler)

        dispatcher.dispatch(Brightness(value=1))
        dispatcher.dispatch(BankColor(bank=0, color=1))
        assert handler.call_count == 2

        unsubscribe()
        assert dispatcher.handler_count(MessageType.BRIGHTNESS) == 0

    def test_failing_handler_does_not_stop_others(self):
        dispatcher = EventDispatcher()
        failing = Mock(side_effect=RuntimeError("boom"))
        ok = Mock()
        dispatcher.subscribe(MessageType.BRIGHTNESS, failing)
        dispatcher.subscribe(MessageType.BRIGHTNESS, ok)

        assert dispatcher.dispatch(Brightness(value=1)) == 2
        ok.assert_called_once()

    def test_handler_may_unsubscribe_during_dispatch(self):
        dispatcher = EventDispatcher()
        calls = []

        def once(message):
            calls.append(message)
            unsubscribe()

        unsubscribe = dispatcher.subscribe(MessageType.BRIGHTNESS, once)
        dispatcher.dispatch(Brightness(value=1))
        dispatcher.dispatch(Brightness(value=2))
        assert len(calls) == 1

    def test_clear(self):
        dispatcher = EventDispatcher()
        dispatcher.subscribe(MessageType.SYNC, Mock())
        dispatcher.clear()
        assert dispatcher.handler_count(MessageType.SYNC) == 0
