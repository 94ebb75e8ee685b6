"""Unirx - unidirectional state management with middleware for Python."""
from .action import Action, ActionKind, AsyncAction, BaseAction, reducer
from .errors import StoreClosedError, StoreError
from .middleware import LogMiddleware, Middleware
from .store import StateStream, Store
from .subject import BehaviorSubject, Subscription, SubscriptionStrategy

__all__ = [
    "Action",
    "ActionKind",
    "AsyncAction",
    "BaseAction",
    "BehaviorSubject",
    "LogMiddleware",
    "Middleware",
    "StateStream",
    "Store",
    "StoreClosedError",
    "StoreError",
    "Subscription",
    "SubscriptionStrategy",
    "reducer",
]
