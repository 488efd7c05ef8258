from __future__ import annotations

from typing import Hashable, Sequence, Tuple, TypeVar, Union

E = TypeVar("E", bound=Hashable)


class _Unknown:
    """Marker for a context slot whose value is not known."""

    _instance = None

    def __new__(cls) -> "_Unknown":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNKNOWN"

    def __reduce__(self):
        return (_Unknown, ())


UNKNOWN = _Unknown()

Slot = Union[E, _Unknown]
ContextKey = Tuple[Hashable, ...]


class WindowTooShortError(ValueError):
    pass


def is_known(slot: object) -> bool:
    return slot is not UNKNOWN


def _tail(order: int, window: Sequence) -> ContextKey:
    items = tuple(window)
    if len(items) < order:
        raise WindowTooShortError(
            f"context window is shorter than the model order "
            f"(window_len={len(items)}, order={order})"
        )
    # items[-0:] would keep everything, so slice from an explicit start.
    return items[len(items) - order :]


def full_key(order: int, window: Sequence[E]) -> ContextKey:
    """Key for a fully-known window: the last ``order`` elements."""
    key = _tail(order, window)
    for slot in key:
        if slot is UNKNOWN:
            raise ValueError(
                "full context window contains UNKNOWN; use the *_partial variant"
            )
    return key


def partial_key(order: int, window: Sequence[Slot]) -> ContextKey:
    """Key for a window whose slots may be ``UNKNOWN``."""
    return _tail(order, window)
