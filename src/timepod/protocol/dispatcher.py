"""Dispatch decoded configuration messages to subscribers by message type.

Any number of handlers may subscribe to the same type. Handlers run in
subscription order on the thread that calls ``dispatch`` (for MIDI input
this is mido's callback thread).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from threading import Lock

from .messages import ConfigMessage, MessageType

logger = logging.getLogger(__name__)

MessageHandler = Callable[[ConfigMessage], None]


class EventDispatcher:
    """
    Thread-safe multi-subscriber dispatcher keyed by MessageType.

    The lock is held only while copying the handler list, never while calling
    handlers, so a handler may subscribe or unsubscribe during dispatch.

    Example:
        ```python
        dispatcher = EventDispatcher()
        unsubscribe = dispatcher.subscribe(MessageType.BRIGHTNESS, on_brightness)
        dispatcher.dispatch(Brightness(value=100))
        unsubscribe()
        ```
    """

    def __init__(self, lock: Lock | None = None):
        self._handlers: dict[MessageType, list[MessageHandler]] = {}
        self._lock = lock or Lock()

    def subscribe(self, message_type: MessageType, handler: MessageHandler) -> Callable[[], None]:
        """
        Subscribe a handler to one message type.

        Args:
            message_type: Type to listen for
            handler: Called with each decoded message of that type

        Returns:
            Callable that removes this subscription (safe to call twice)
        """
        message_type = MessageType(message_type)
        with self._lock:
            self._handlers.setdefault(message_type, []).append(handler)
        logger.debug(f"Subscribed {handler} to {message_type.name}")

        def unsubscribe() -> None:
            with self._lock:
                handlers = self._handlers.get(message_type, [])
                if handler in handlers:
                    handlers.remove(handler)
                    logger.debug(f"Unsubscribed {handler} from {message_type.name}")

        return unsubscribe

    def subscribe_all(self, handler: MessageHandler) -> Callable[[], None]:
        """Subscribe a handler to every message type."""
        unsubscribers = [self.subscribe(message_type, handler) for message_type in MessageType]

        def unsubscribe() -> None:
            for unsub in unsubscribers:
                unsub()

        return unsubscribe

    def dispatch(self, message: ConfigMessage) -> int:
        """
        Deliver a message to every subscriber of its type.

        Exceptions raised by a handler are logged and do not stop delivery to
        the remaining handlers.

        Returns:
            Number of handlers called
        """
        with self._lock:
            handlers = list(self._handlers.get(message.message_type, []))

        for handler in handlers:
            try:
                handler(message)
            except Exception as e:
                logger.error(
                    f"Error in {message.message_type.name} handler {handler}: {e}",
                    exc_info=True,
                )
        return len(handlers)

    def handler_count(self, message_type: MessageType) -> int:
        with self._lock:
            return len(self._handlers.get(message_type, []))

    def clear(self) -> None:
        """Remove all subscriptions."""
        with self._lock:
            self._handlers.clear()
