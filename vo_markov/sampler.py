from __future__ import annotations

import bisect
import math
import operator
from dataclasses import dataclass
from typing import Dict, Generic, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from .elements import UNKNOWN, E
from .random_source import MissingRandomSourceError, RandomLike, RandomSource, as_random_source

# A single weight edit is a signed 32-bit quantity; totals are unsigned 64-bit.
MAX_WEIGHT_DELTA = 2**31 - 1
MAX_TOTAL_WEIGHT = 2**64 - 1


class WeightOverflowError(OverflowError):
    pass


@dataclass(frozen=True)
class WeightedItem(Generic[E]):
    element: E
    weight: int


def _as_int(value: object, name: str) -> int:
    if isinstance(value, bool):
        raise TypeError(f"{name} must be an integer, got bool.")
    try:
        return operator.index(value)
    except TypeError:
        raise TypeError(
            f"{name} must be an integer, got {type(value).__name__}."
        ) from None


def check_weight_delta(weight_delta: object) -> int:
    delta = _as_int(weight_delta, "weight_delta")
    if abs(delta) > MAX_WEIGHT_DELTA:
        raise WeightOverflowError(
            f"weight delta out of range (delta={delta}, limit=+/-{MAX_WEIGHT_DELTA})"
        )
    return delta


class WeightedSampler(Generic[E]):
    """Weighted multiset over unique elements with O(log n) draws.

    Items keep their insertion order and a parallel list of running
    weights, ``cumulative[i] == sum(weight of items[0..i])``. A draw picks a
    position in ``[0, total_weight)`` and binary-searches the running
    weights for the first entry above it. Weight edits are O(n) because the
    running weights after the edited item must be rebuilt.

    Zero-weight items are never stored, so ``total_weight == 0`` exactly
    when the sampler is empty.
    """

    def __init__(
        self,
        items: Optional[
            Union[Mapping[E, int], Iterable[Union[Tuple[E, int], WeightedItem[E]]]]
        ] = None,
        rng: Optional[RandomLike] = None,
    ) -> None:
        self._items: List[WeightedItem[E]] = []
        self._cumulative: List[int] = []
        self._index: Dict[E, int] = {}
        self.rng: Optional[RandomSource] = as_random_source(rng)
        if items is None:
            return
        if isinstance(items, Mapping):
            items = items.items()
        for entry in items:
            if isinstance(entry, WeightedItem):
                element, weight = entry.element, entry.weight
            else:
                element, weight = entry
            weight = _as_int(weight, "weight")
            if weight < 0:
                raise ValueError(f"Negative weight {weight} for element {element!r}.")
            _check_element(element)
            if element in self._index:
                raise ValueError(
                    f"Duplicate element {element!r}; use modify() to accumulate weight."
                )
            if weight == 0:
                continue
            self._index[element] = len(self._items)
            self._items.append(WeightedItem(element, weight))
        self._recompute()

    @property
    def total_weight(self) -> int:
        return self._cumulative[-1] if self._cumulative else 0

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[WeightedItem[E]]:
        return iter(list(self._items))

    def __contains__(self, element: object) -> bool:
        return element in self._index

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WeightedSampler):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"WeightedSampler({self.as_dict()!r})"

    def as_dict(self) -> Dict[E, int]:
        return {item.element: item.weight for item in self._items}

    def elements(self) -> List[E]:
        return [item.element for item in self._items]

    def weight_of(self, element: E) -> int:
        idx = self._index.get(element)
        if idx is None:
            return 0
        return self._items[idx].weight

    def copy(self) -> "WeightedSampler[E]":
        return WeightedSampler(self._items, rng=self.rng)

    def modify(self, element: E, weight_delta: int) -> None:
        """Add ``weight_delta`` to ``element``'s weight.

        Unknown elements are added when the delta is positive and ignored
        otherwise. A negative delta that reaches or passes zero removes the
        element instead of leaving a zero or negative weight.
        """
        delta = check_weight_delta(weight_delta)
        _check_element(element)
        idx = self._index.get(element)
        if idx is None:
            if delta <= 0:
                return
            self._check_total(delta)
            self._index[element] = len(self._items)
            self._items.append(WeightedItem(element, delta))
        elif delta == 0:
            return
        elif delta < 0 and -delta >= self._items[idx].weight:
            self._remove_at(idx)
            return
        else:
            if delta > 0:
                self._check_total(delta)
            current = self._items[idx]
            self._items[idx] = WeightedItem(element, current.weight + delta)
        self._recompute()

    def remove(self, element: E) -> Optional[WeightedItem[E]]:
        idx = self._index.get(element)
        if idx is None:
            return None
        return self._remove_at(idx)

    def probability_of(self, element: E) -> float:
        """Probability of drawing ``element``.

        Weight and total are reduced by their gcd before the float division.
        """
        total = self.total_weight
        weight = self.weight_of(element)
        if total == 0 or weight == 0:
            return 0.0
        divisor = math.gcd(weight, total)
        return (weight // divisor) / (total // divisor)

    def draw(
        self, value: Optional[int] = None, rng: Optional[RandomLike] = None
    ) -> Optional[E]:
        """Select an element without removing it.

        ``value`` makes the draw deterministic: it is reduced modulo the
        total weight, so any integer is accepted. Without it, ``rng`` (or
        the sampler's own ``rng``) supplies the position.
        """
        total = self.total_weight
        if not self._items or total == 0:
            return None
        if value is None:
            source = as_random_source(rng) if rng is not None else self.rng
            if source is None:
                raise MissingRandomSourceError(
                    "draw() needs an explicit value or a random source; none was configured."
                )
            position = _as_int(source.randbelow(total), "random draw")
            if not 0 <= position < total:
                raise ValueError(
                    f"Random source returned {position}, outside [0, {total})."
                )
        else:
            position = _as_int(value, "value") % total
        # First running weight strictly above the position.
        return self._items[bisect.bisect_right(self._cumulative, position)].element

    def _check_total(self, delta: int) -> None:
        if self.total_weight + delta > MAX_TOTAL_WEIGHT:
            raise WeightOverflowError(
                f"total weight would exceed {MAX_TOTAL_WEIGHT} "
                f"(total={self.total_weight}, delta={delta})"
            )

    def _remove_at(self, idx: int) -> WeightedItem[E]:
        removed = self._items.pop(idx)
        self._index = {item.element: i for i, item in enumerate(self._items)}
        self._recompute()
        return removed

    def _recompute(self) -> None:
        cumulative: List[int] = []
        running = 0
        for item in self._items:
            running += item.weight
            cumulative.append(running)
        if running > MAX_TOTAL_WEIGHT:
            raise WeightOverflowError(
                f"total weight {running} exceeds {MAX_TOTAL_WEIGHT}"
            )
        self._cumulative = cumulative


def _check_element(element: object) -> None:
    if element is UNKNOWN:
        raise ValueError("UNKNOWN is a context marker and cannot be a sampler element.")
