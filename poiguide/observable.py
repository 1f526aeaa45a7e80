"""Observable values for UI-facing state."""

from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class Observable(Generic[T]):
    """A value that notifies subscribers when it changes"""

    def __init__(self, value: Optional[T] = None):
        self._value = value
        self._subscribers: list[Callable[[T], Any]] = []

    @property
    def value(self) -> Optional[T]:
        return self._value

    def set(self, value: T, force: bool = False):
        """Store value; subscribers hear about it if it changed (or always, with force)"""
        if not force and value == self._value:
            return
        self._value = value
        for callback in list(self._subscribers):
            callback(value)

    def subscribe(self, callback: Callable[[T], Any]) -> Callable[[], None]:
        """Register callback; returns a function that unsubscribes it"""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe
