"""Unirx middleware."""
from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Any, Generic, Optional, TypeVar

if TYPE_CHECKING:
    from .store import Store

log = logging.getLogger(__name__)

StateT = TypeVar("StateT")


class Middleware(Generic[StateT]):
    """Interceptor run around every dispatch.

    Both hooks return the state unchanged unless overridden. A hook may
    dispatch its own actions through `store`, but the store's state is not
    updated with the current action's result until every after-hook returns.
    """

    def before_action(self, action: Any, store: Store[StateT], state: StateT) -> StateT:
        """Called with the committed state before the action reduces it."""
        return state

    def after_action(self, action: Any, store: Store[StateT], state: StateT) -> StateT:
        """Called with the reduced state before it is committed."""
        return state


class LogMiddleware(Middleware[StateT]):
    """Middleware that logs each action with the state around its reduction.

    Args:
        logger: Logger to write to. Defaults to this module's logger.
        level: Log level of the records.
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        level: int = logging.INFO,
    ) -> None:
        self._logger = logger if logger is not None else log
        self._level = level

    def before_action(self, action: Any, store: Store[StateT], state: StateT) -> StateT:
        self._logger.log(self._level, "Before action: %s: %s", action, state)
        return state

    def after_action(self, action: Any, store: Store[StateT], state: StateT) -> StateT:
        self._logger.log(self._level, "After action: %s: %s", action, state)
        return state
