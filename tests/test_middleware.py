"""Tests store middleware."""
from __future__ import annotations

import logging
import pytest
from dataclasses import dataclass
from typing import Any, List
from unirx import Action, LogMiddleware, Middleware, Store


@dataclass(frozen=True)
class Increment(Action[int]):
    """Action to increment the counter."""

    by: int = 1

    def reduce(self, state: int) -> int:
        return state + self.by


@dataclass(frozen=True)
class Append(Action[str]):
    """Action to append a marker to the state."""

    marker: str

    def reduce(self, state: str) -> str:
        return state + self.marker


class Marker(Middleware[str]):
    """Middleware that appends markers around each reduction."""

    def __init__(self, before: str, after: str) -> None:
        self.before = before
        self.after = after

    def before_action(self, action: Any, store: Store[str], state: str) -> str:
        return state + self.before

    def after_action(self, action: Any, store: Store[str], state: str) -> str:
        return state + self.after


def test_default_hooks_are_identity() -> None:
    subject = Store(0).add(Middleware())

    subject.dispatch(Increment(by=2))

    assert subject.state == 2


def test_middleware_runs_in_registration_order() -> None:
    subject = Store("").add(Marker("a", "c")).add(Marker("b", "d"))

    subject.dispatch(Append("r"))

    assert subject.state == "abrcd"


def test_middleware_sees_state_at_each_phase() -> None:
    seen: List[Any] = []

    class Spy(Middleware[int]):
        def before_action(self, action: Any, store: Store[int], state: int) -> int:
            seen.append(("before", action, state, store.state))
            return state + 100

        def after_action(self, action: Any, store: Store[int], state: int) -> int:
            seen.append(("after", action, state, store.state))
            return state

    subject = Store(1)
    subject.add(Spy())
    subject.dispatch(Increment())

    assert seen == [
        ("before", Increment(), 1, 1),
        ("after", Increment(), 102, 1),
    ]
    assert subject.state == 102


def test_middleware_added_mid_dispatch_applies_to_next_dispatch() -> None:
    class AddsMarker(Middleware[str]):
        def before_action(self, action: Any, store: Store[str], state: str) -> str:
            store.add(Marker("<", ">"))
            return state

    subject = Store("").add(AddsMarker())

    subject.dispatch(Append("x"))
    assert subject.state == "x"

    subject.dispatch(Append("y"))
    assert subject.state == "x<y>"


def test_middleware_dispatch_is_overwritten_by_outer_commit() -> None:
    class Echo(Middleware[int]):
        def before_action(self, action: Any, store: Store[int], state: int) -> int:
            if action == Increment():
                store.dispatch(Increment(by=100))
            return state

    subject = Store(0).add(Echo())
    states: List[int] = []
    subject.listen(states.append)

    subject.dispatch(Increment())

    assert states == [0, 100, 1]
    assert subject.state == 1


def test_log_middleware(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="unirx")
    subject = Store(0).add(LogMiddleware())

    assert subject.state == 0

    subject.dispatch(Increment())
    assert subject.state == 1

    subject.dispatch(Increment(2))
    assert subject.state == 3

    assert [r.getMessage() for r in caplog.records] == [
        "Before action: Increment(by=1): 0",
        "After action: Increment(by=1): 1",
        "Before action: Increment(by=2): 1",
        "After action: Increment(by=2): 3",
    ]


def test_log_middleware_custom_logger(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("app.counter")
    caplog.set_level(logging.DEBUG, logger="app.counter")
    subject = Store(0).add(LogMiddleware(logger=logger, level=logging.DEBUG))

    subject.dispatch(Increment())

    assert [(r.name, r.levelno) for r in caplog.records] == [
        ("app.counter", logging.DEBUG),
        ("app.counter", logging.DEBUG),
    ]
