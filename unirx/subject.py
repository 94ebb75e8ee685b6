"""Replay-latest state broadcast."""
from __future__ import annotations
import collections
import enum
import logging
from anyio import Event
from typing import (
    AsyncIterator,
    Callable,
    Deque,
    Generic,
    List,
    Optional,
    Tuple,
    TypeVar,
)

from .errors import StoreClosedError

log = logging.getLogger(__name__)

ValueT = TypeVar("ValueT")

Unsubscribe = Callable[[], None]


class SubscriptionStrategy(str, enum.Enum):
    """Message strategy to use for a subscription.

    Props:
        EVERY: Receive every state change. Guarantees that you will be notified
            of every state transition, but the store's state may have
            transitioned again by the time the notification is handled.
        LATEST: Receive the latest state. Guarantees that the store's state
            will match the state in the notification, but may miss transitions.
    """

    EVERY = "every"
    LATEST = "latest"


class _Listener(Generic[ValueT]):
    def __init__(
        self,
        on_next: Callable[[ValueT], None],
        on_complete: Optional[Callable[[], None]],
        since: int,
    ) -> None:
        self.on_next = on_next
        self.on_complete = on_complete
        self.since = since
        self.active = True


class BehaviorSubject(Generic[ValueT]):
    """Holds the latest value and replays it to every new listener.

    Values are delivered to listeners in publish order. A value published
    from inside a listener is queued until the current delivery finishes,
    so all listeners observe one linear sequence.

    Args:
        seed: Initial value.
    """

    def __init__(self, seed: ValueT) -> None:
        self._value = seed
        self._version = 0
        self._closed = False
        self._delivering = False
        self._pending: Deque[Tuple[int, ValueT]] = collections.deque()
        self._listeners: List[_Listener[ValueT]] = []

    @property
    def value(self) -> ValueT:
        """The most recently published value."""
        return self._value

    @property
    def closed(self) -> bool:
        return self._closed

    def listen(
        self,
        on_next: Callable[[ValueT], None],
        on_complete: Optional[Callable[[], None]] = None,
    ) -> Unsubscribe:
        """Call `on_next` with the current value, then with every new value.

        Args:
            on_next: Called with each value.
            on_complete: Called once when the subject closes.

        Returns:
            A function that detaches the listener.
        """
        if self._closed:
            raise StoreClosedError("Cannot subscribe to a closed store.")

        listener = _Listener(on_next, on_complete, since=self._version)
        on_next(self._value)
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            listener.active = False
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def publish(self, value: ValueT) -> None:
        """Set the current value and deliver it to every listener."""
        if self._closed:
            raise StoreClosedError("Cannot publish to a closed store.")

        self._version += 1
        self._value = value
        self._pending.append((self._version, value))

        if self._delivering:
            return

        self._delivering = True
        try:
            while self._pending and not self._closed:
                version, next_value = self._pending.popleft()
                for listener in list(self._listeners):
                    if listener.active and version > listener.since:
                        self._deliver(listener, next_value)
        finally:
            self._delivering = False
            if self._closed:
                self._pending.clear()

    def close(self) -> None:
        """Complete every listener. Closing twice does nothing."""
        if self._closed:
            return

        self._closed = True
        listeners, self._listeners = self._listeners, []

        for listener in listeners:
            listener.active = False

        for listener in listeners:
            if listener.on_complete is not None:
                listener.on_complete()

    def _deliver(self, listener: _Listener[ValueT], value: ValueT) -> None:
        try:
            listener.on_next(value)
        except Exception:
            log.exception("Subscriber %r failed to handle state", listener.on_next)


class Subscription(AsyncIterator[ValueT]):
    """An asynchronous iterator of state change events."""

    def __init__(self, strategy: SubscriptionStrategy) -> None:
        self._strategy = strategy
        self._notification_event = Event()
        self._complete = False
        self._queue: Deque[ValueT] = collections.deque(
            maxlen=1 if strategy == SubscriptionStrategy.LATEST else None
        )

    def _notify(self, next_state: ValueT) -> None:
        self._queue.append(next_state)
        self._notification_event.set()

    def _finish(self) -> None:
        self._complete = True
        self._notification_event.set()

    def _detach(self) -> None:
        self._queue.clear()
        self._finish()

    async def __anext__(self) -> ValueT:
        while len(self._queue) == 0:
            if self._complete:
                raise StopAsyncIteration
            await self._notification_event.wait()
            self._notification_event = Event()

        return self._queue.popleft()

    def __aiter__(self) -> AsyncIterator[ValueT]:
        return self
