"""Unirx stores."""
from __future__ import annotations
import contextlib
import logging
from anyio import create_task_group
from anyio.abc import TaskGroup
from types import TracebackType
from typing import (
    Any,
    AsyncIterator,
    Callable,
    Generator,
    Generic,
    List,
    Optional,
    Sequence,
    Type,
    TypeVar,
)

from .action import ActionKind
from .errors import StoreClosedError, StoreError
from .middleware import Middleware
from .subject import BehaviorSubject, Subscription, SubscriptionStrategy, Unsubscribe

log = logging.getLogger(__name__)

StateT = TypeVar("StateT")
MappedT = TypeVar("MappedT")

ErrorHandler = Callable[[Any, Exception], None]


def _log_error(action: Any, error: Exception) -> None:
    log.error("Async action %s failed", action, exc_info=error)


class Store(Generic[StateT]):
    """A state store.

    State only changes by dispatching actions. Each dispatch folds the state
    through every middleware's `before_action`, reduces it with the action,
    folds the result through every `after_action`, then commits it.

    Async actions commit when their reduction resolves, so two async actions
    in flight at once race: the one that resolves last wins.

    Args:
        initial_state: Initial state to use in the store.
        on_error: Called with the action and the error when a dispatched
            async action fails. Defaults to logging the error.
    """

    def __init__(
        self,
        initial_state: StateT,
        *,
        on_error: Optional[ErrorHandler] = None,
    ) -> None:
        self._subject = BehaviorSubject(initial_state)
        self._middleware: List[Middleware[StateT]] = []
        self._on_error = on_error if on_error is not None else _log_error
        self._task_group: Optional[TaskGroup] = None

    async def __aenter__(self) -> Store[StateT]:
        task_group = create_task_group()
        await task_group.__aenter__()
        self._task_group = task_group
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> Optional[bool]:
        task_group = self._task_group
        if task_group is None:
            raise StoreError("Store context was not entered")

        try:
            return await task_group.__aexit__(exc_type, exc_val, exc_tb)
        finally:
            self._task_group = None
            self.close()

    @property
    def state(self) -> StateT:
        """The latest committed state."""
        return self._subject.value

    @property
    def closed(self) -> bool:
        return self._subject.closed

    @property
    def stream(self) -> StateStream[StateT, StateT]:
        """Every committed state, starting with the current one."""
        return StateStream(self, _identity)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "state":
            raise TypeError("Cannot overwrite state attribute.")
        super().__setattr__(name, value)

    def add(self, middleware: Middleware[StateT]) -> Store[StateT]:
        """Append a middleware to the pipeline."""
        self._middleware.append(middleware)
        return self

    def dispatch(self, action: Any) -> Store[StateT]:
        """Dispatch an action into the store.

        Sync actions are committed before this method returns. Async actions
        run their before-middleware now and commit later; they require the
        store's async context.
        """
        self._check_open()
        kind = getattr(action, "kind", None)

        if kind == ActionKind.SYNC:
            middleware = tuple(self._middleware)
            state = action.reduce(self._before(action, middleware))
            self._commit(self._after(action, middleware, state))

        elif kind == ActionKind.ASYNC:
            if self._task_group is None:
                raise StoreError(
                    "Async actions need the store context; use `async with store`"
                    " or `await store.dispatch_and_wait(action)`."
                )

            middleware = tuple(self._middleware)
            state = self._before(action, middleware)
            log.debug("Scheduling async action %s", action)
            self._task_group.start_soon(self._settle, action, middleware, state)

        else:
            log.debug("Ignoring dispatch of non-action %r", action)

        return self

    async def dispatch_and_wait(self, action: Any) -> StateT:
        """Dispatch an action and wait for it to commit.

        Errors from the action's reduction are raised to the caller.

        Returns:
            The state committed by this action.
        """
        self._check_open()
        kind = getattr(action, "kind", None)

        if kind == ActionKind.ASYNC:
            middleware = tuple(self._middleware)
            state = await action.reduce(self._before(action, middleware))
            self._commit(self._after(action, middleware, state))
        else:
            self.dispatch(action)

        return self.state

    def close(self) -> None:
        """Close the store, completing every subscription."""
        self._subject.close()

    def listen(
        self,
        on_next: Callable[[StateT], None],
        on_complete: Optional[Callable[[], None]] = None,
    ) -> Unsubscribe:
        """Call `on_next` with the current state and every committed state.

        Returns:
            A function that stops the notifications.
        """
        return self._subject.listen(on_next, on_complete)

    @contextlib.contextmanager
    def subscribe(
        self,
        strategy: SubscriptionStrategy = SubscriptionStrategy.EVERY,
    ) -> Generator[Subscription[StateT], None, None]:
        """Create a subscription to receive notifications of state changes.

        The subscription starts with the current state, and finishes when
        the store is closed.

        Args:
            strategy: whether to receive every state change (default)
                or only the latest one.

        Returns:
            A context manager wrapping a subscription.
        """
        sub: Subscription[StateT] = Subscription(strategy=strategy)
        unsubscribe = self._subject.listen(sub._notify, sub._finish)
        try:
            yield sub
        finally:
            unsubscribe()
            sub._detach()

    def map(self, convert: Callable[[StateT], MappedT]) -> StateStream[StateT, MappedT]:
        """Create a stream of converted states."""
        return StateStream(self, convert)

    def _check_open(self) -> None:
        if self.closed:
            raise StoreClosedError("Cannot dispatch to a closed store.")

    def _before(self, action: Any, middleware: Sequence[Middleware[StateT]]) -> StateT:
        state = self.state
        for m in middleware:
            state = m.before_action(action, self, state)
        return state

    def _after(
        self,
        action: Any,
        middleware: Sequence[Middleware[StateT]],
        state: StateT,
    ) -> StateT:
        for m in middleware:
            state = m.after_action(action, self, state)
        return state

    def _commit(self, state: StateT) -> None:
        if self.closed:
            log.debug("Dropping commit to closed store")
            raise StoreClosedError("Store closed before the action committed.")
        self._subject.publish(state)

    async def _settle(
        self,
        action: Any,
        middleware: Sequence[Middleware[StateT]],
        state: StateT,
    ) -> None:
        try:
            state = await action.reduce(state)
            self._commit(self._after(action, middleware, state))
        except Exception as e:
            self._on_error(action, e)


class StateStream(Generic[StateT, MappedT]):
    """Restartable async iterable of converted store states.

    Each iteration subscribes to the store anew, receiving the current
    state followed by every commit until the store closes.
    """

    def __init__(
        self,
        store: Store[StateT],
        convert: Callable[[StateT], MappedT],
    ) -> None:
        self._store = store
        self._convert = convert

    def __aiter__(self) -> AsyncIterator[MappedT]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[MappedT]:
        with self._store.subscribe() as states:
            async for state in states:
                yield self._convert(state)


def _identity(state: StateT) -> StateT:
    return state
