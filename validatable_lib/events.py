"""Synchronous change notifications for validatable objects."""

from typing import Any, Callable, List, Optional

Callback = Callable[[Any, Optional[str]], None]


class EventHandler:
    """
    Ordered list of observer callbacks.

    Callbacks receive (sender, property_name) and run synchronously, in
    registration order, on the caller's stack. Exceptions raised by a
    callback propagate to whoever fired the event.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._callbacks: List[Callback] = []

    def subscribe(self, callback: Callback) -> Callback:
        """Register a callback. Returns it so it can be used as a decorator."""
        if not callable(callback):
            raise TypeError("Event callback must be callable")
        self._callbacks.append(callback)
        return callback

    def unsubscribe(self, callback: Callback) -> None:
        """Remove the earliest registration of a callback. Unknown callbacks are ignored."""
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    def fire(self, sender: Any, property_name: Optional[str]) -> None:
        # snapshot so callbacks may (un)subscribe while the event is firing
        for callback in list(self._callbacks):
            callback(sender, property_name)

    def __len__(self) -> int:
        return len(self._callbacks)

    def __bool__(self) -> bool:
        return True

    def __repr__(self):
        return f"EventHandler({self.name!r}, {len(self._callbacks)} subscribers)"


class ErrorsChangedStream:
    """
    Push-stream of the property names whose errors changed.

    Each subscription attaches its own callback to the source handler;
    the returned callable detaches it again.
    """

    def __init__(self, sender: Any, handler: EventHandler):
        self._sender = sender
        self._handler = handler

    def subscribe(self, on_next: Callable[[Optional[str]], None]) -> Callable[[], None]:
        """
        Deliver each changed property name to on_next.

        Args:
            on_next: Called with the property name, or None when the whole
                object's errors were recomputed

        Returns:
            Zero-argument callable that ends the subscription
        """
        def forward(sender, property_name):
            if sender is self._sender:
                on_next(property_name)

        self._handler.subscribe(forward)

        def dispose():
            self._handler.unsubscribe(forward)

        return dispose
