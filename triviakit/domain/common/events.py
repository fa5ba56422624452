# triviakit/domain/common/events.py
from __future__ import annotations

"""
Typed event channels.
One channel per event kind; listeners get a Subscription back and cancel it
on teardown instead of juggling numeric callback ids.
"""

from typing import Callable, Generic, List, Optional, TypeVar

T = TypeVar("T")


class Subscription(Generic[T]):
    def __init__(self, channel: "EventChannel[T]", callback: Callable[[T], None]) -> None:
        self._channel: Optional[EventChannel[T]] = channel
        self.callback = callback

    @property
    def active(self) -> bool:
        return self._channel is not None

    def cancel(self) -> None:
        """Detach from the channel. Safe to call more than once."""
        channel, self._channel = self._channel, None
        if channel is not None:
            channel._discard(self)


class EventChannel(Generic[T]):
    def __init__(self, name: str = "") -> None:
        self.name = name
        self._subs: List[Subscription[T]] = []

    def subscribe(self, callback: Callable[[T], None]) -> Subscription[T]:
        sub = Subscription(self, callback)
        self._subs.append(sub)
        return sub

    def emit(self, value: T) -> None:
        # snapshot: a callback may cancel its own (or another) subscription
        for sub in list(self._subs):
            if sub.active:
                sub.callback(value)

    def clear(self) -> None:
        for sub in list(self._subs):
            sub.cancel()

    def _discard(self, sub: Subscription[T]) -> None:
        try:
            self._subs.remove(sub)
        except ValueError:
            pass

    def __len__(self) -> int:
        return len(self._subs)

    def __repr__(self) -> str:
        return f"EventChannel({self.name!r}, subscribers={len(self._subs)})"
