"""Unirx actions."""
from __future__ import annotations
import abc
import dataclasses
import enum
import functools
import inspect
from typing import (
    Any,
    Awaitable,
    Callable,
    ClassVar,
    Generic,
    Optional,
    Tuple,
    TypeVar,
    Union,
)

StateT = TypeVar("StateT")


class ActionKind(str, enum.Enum):
    """How an action produces its next state.

    Props:
        SYNC: `reduce` returns the next state immediately.
        ASYNC: `reduce` is a coroutine that eventually returns the next state.
    """

    SYNC = "sync"
    ASYNC = "async"


class BaseAction(abc.ABC):
    """Base of every action the store can dispatch.

    Objects whose `kind` is not an `ActionKind` are ignored by the store.
    """

    kind: ClassVar[Optional[ActionKind]] = None


class Action(BaseAction, Generic[StateT]):
    """Action that computes the next state synchronously.

    Example:
        ```python
        @dataclass(frozen=True)
        class Increment(Action[int]):
            by: int = 1

            def reduce(self, state: int) -> int:
                return state + self.by
        ```
    """

    kind: ClassVar[Optional[ActionKind]] = ActionKind.SYNC

    @abc.abstractmethod
    def reduce(self, state: StateT) -> StateT:
        """Compute the next state from the current one."""


class AsyncAction(BaseAction, Generic[StateT]):
    """Action that computes the next state asynchronously."""

    kind: ClassVar[Optional[ActionKind]] = ActionKind.ASYNC

    @abc.abstractmethod
    async def reduce(self, state: StateT) -> StateT:
        """Compute the next state from the current one."""


ReduceFuncT = Callable[..., Any]


def _format_call(
    name: str, args: Tuple[Any, ...], kwargs: Tuple[Tuple[str, Any], ...]
) -> str:
    params = [repr(arg) for arg in args]
    params.extend(f"{key}={value!r}" for key, value in kwargs)
    return f"{name}({', '.join(params)})"


@dataclasses.dataclass(frozen=True)
class FunctionAction(Action[Any]):
    """Sync action created by calling a `@reducer` factory."""

    func: Callable[..., Any]
    args: Tuple[Any, ...] = ()
    kwargs: Tuple[Tuple[str, Any], ...] = ()

    def reduce(self, state: Any) -> Any:
        return self.func(state, *self.args, **dict(self.kwargs))

    def __str__(self) -> str:
        return _format_call(self.func.__name__, self.args, self.kwargs)


@dataclasses.dataclass(frozen=True)
class FunctionAsyncAction(AsyncAction[Any]):
    """Async action created by calling a `@reducer` factory."""

    func: Callable[..., Awaitable[Any]]
    args: Tuple[Any, ...] = ()
    kwargs: Tuple[Tuple[str, Any], ...] = ()

    async def reduce(self, state: Any) -> Any:
        return await self.func(state, *self.args, **dict(self.kwargs))

    def __str__(self) -> str:
        return _format_call(self.func.__name__, self.args, self.kwargs)


def reducer(
    func: ReduceFuncT,
) -> Callable[..., Union[FunctionAction, FunctionAsyncAction]]:
    '''Turn a reducing function into an action factory.

    The decorated function receives the current state followed by the
    parameters passed to the factory. Coroutine functions produce async
    actions.

    Example:
        ```python
        @reducer
        def increment(state: int, by: int = 1) -> int:
            """Add `by` to the counter."""
            return state + by

        store.dispatch(increment(2))
        ```
    '''
    is_async = inspect.iscoroutinefunction(func)

    @functools.wraps(func)
    def _factory(
        *args: Any, **kwargs: Any
    ) -> Union[FunctionAction, FunctionAsyncAction]:
        params = tuple(sorted(kwargs.items()))

        if is_async:
            return FunctionAsyncAction(func=func, args=args, kwargs=params)

        return FunctionAction(func=func, args=args, kwargs=params)

    return _factory
