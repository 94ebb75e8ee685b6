"""Unirx errors."""


class StoreError(Exception):
    """A store was used in a way it does not support."""


class StoreClosedError(StoreError):
    """The store (or its state subject) has been closed."""

    def __init__(self, message: str = "Store is closed.") -> None:
        super().__init__(message)
