from __future__ import annotations

import operator
from typing import (
    Dict,
    Generic,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
)

from .elements import UNKNOWN, ContextKey, E, Slot, full_key, partial_key
from .random_source import MissingRandomSourceError, RandomLike, RandomSource, as_random_source
from .sampler import MAX_TOTAL_WEIGHT, WeightedSampler, WeightOverflowError, check_weight_delta

_NO_STOP = object()


class SequenceModel(Generic[E]):
    """Variable-order Markov model over hashable elements.

    ``order`` is how many trailing elements select the next-element
    distribution. Order 1 is the usual Markov chain; order 0 has a single
    empty context and behaves like one freestanding ``WeightedSampler``.

    ``optional_positions`` lists context indices that may be ``UNKNOWN`` at
    query time. Every training call is recorded under the exact context and
    under each of the 2**k variants with some of those positions replaced
    by ``UNKNOWN``, so memory grows with 2**len(optional_positions).
    Positions outside ``[0, order)`` are ignored.
    """

    def __init__(
        self,
        order: int,
        optional_positions: Iterable[int] = (),
        rng: Optional[RandomLike] = None,
    ) -> None:
        order = operator.index(order)
        if order < 0:
            raise ValueError(f"order must be non-negative, got {order}.")
        self._order = order
        self._optional_positions: Tuple[int, ...] = tuple(
            sorted({p for p in map(operator.index, optional_positions) if 0 <= p < order})
        )
        self._samplers: Dict[ContextKey, WeightedSampler[E]] = {}
        self.rng: Optional[RandomSource] = as_random_source(rng)

    @property
    def order(self) -> int:
        return self._order

    @property
    def optional_positions(self) -> Tuple[int, ...]:
        return self._optional_positions

    def __len__(self) -> int:
        return len(self._samplers)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SequenceModel):
            return NotImplemented
        return (
            self._order == other._order
            and self._optional_positions == other._optional_positions
            and self._content() == other._content()
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"SequenceModel(order={self._order}, "
            f"optional_positions={list(self._optional_positions)}, "
            f"contexts={len(self._samplers)})"
        )

    def contexts(self) -> List[ContextKey]:
        return list(self._samplers)

    def sampler_for(self, window: Sequence[Slot]) -> Optional[WeightedSampler[E]]:
        """Copy of the distribution stored for ``window``, or ``None``."""
        sampler = self._samplers.get(partial_key(self._order, window))
        return sampler.copy() if sampler is not None else None

    def wildcard_keys(self, key: ContextKey) -> List[ContextKey]:
        """All variants of ``key`` with optional positions blanked out.

        Bit ``i`` of the mask decides whether the ``i``-th optional position
        becomes ``UNKNOWN``; mask 0 is the exact key.
        """
        positions = self._optional_positions
        variants: List[ContextKey] = []
        for mask in range(1 << len(positions)):
            slots = list(key)
            for bit, pos in enumerate(positions):
                if mask >> bit & 1:
                    slots[pos] = UNKNOWN
            variants.append(tuple(slots))
        return variants

    def train(self, window: Sequence[E], observed_next: E, weight_delta: int = 1) -> None:
        """Record that ``observed_next`` followed ``window``.

        Only the last ``order`` elements of ``window`` are used.
        ``weight_delta`` is usually 1; negative values unlearn.
        """
        delta = check_weight_delta(weight_delta)
        if observed_next is UNKNOWN:
            raise ValueError("observed_next cannot be UNKNOWN.")
        hash(observed_next)
        key = full_key(self._order, window)
        variants = self.wildcard_keys(key)
        if delta > 0:
            # Check every variant first so a failure leaves the model untouched.
            for variant in variants:
                sampler = self._samplers.get(variant)
                total = sampler.total_weight if sampler is not None else 0
                if total + delta > MAX_TOTAL_WEIGHT:
                    raise WeightOverflowError(
                        f"total weight would exceed {MAX_TOTAL_WEIGHT} "
                        f"(key={variant!r}, total={total}, delta={delta})"
                    )
        for variant in variants:
            sampler = self._samplers.get(variant)
            if sampler is None:
                sampler = self._samplers[variant] = WeightedSampler()
            sampler.modify(observed_next, delta)

    def train_sequence(self, sequence: Sequence[E], weight_delta: int = 1) -> int:
        """Train every transition of ``sequence``; returns how many were seen."""
        items = tuple(sequence)
        count = 0
        for i in range(self._order, len(items)):
            self.train(items[i - self._order : i], items[i], weight_delta)
            count += 1
        return count

    def generate(self, window: Sequence[E]) -> Optional[E]:
        self._require_rng()
        return self._draw(full_key(self._order, window), None)

    def generate_partial(self, window: Sequence[Slot]) -> Optional[E]:
        self._require_rng()
        return self._draw(partial_key(self._order, window), None)

    def generate_deterministic(self, window: Sequence[E], value: int) -> Optional[E]:
        return self._draw(full_key(self._order, window), value)

    def generate_deterministic_partial(
        self, window: Sequence[Slot], value: int
    ) -> Optional[E]:
        return self._draw(partial_key(self._order, window), value)

    def probability_of(self, window: Sequence[Slot], candidate: E) -> float:
        sampler = self._samplers.get(partial_key(self._order, window))
        if sampler is None:
            return 0.0
        return sampler.probability_of(candidate)

    def walk(
        self,
        window: Sequence[Slot],
        max_steps: Optional[int] = None,
        stop: object = _NO_STOP,
        values: Optional[Iterable[int]] = None,
    ) -> Iterator[E]:
        """Yield successive generated elements starting from ``window``.

        Each generated element is appended to the window before the next
        lookup. Stops at an unseen context, at ``stop`` (not yielded), after
        ``max_steps`` elements, or when ``values`` is exhausted. With
        ``values`` the walk is deterministic; otherwise the model's random
        source is used. A cyclic chain with no ``max_steps`` never ends.
        """
        history = list(partial_key(self._order, window))
        draws = iter(values) if values is not None else None
        if draws is None:
            self._require_rng()
        steps = 0
        while max_steps is None or steps < max_steps:
            key = tuple(history)
            if draws is None:
                value = None
            else:
                try:
                    value = next(draws)
                except StopIteration:
                    return
            element = self._draw(key, value)
            if element is None or (stop is not _NO_STOP and element == stop):
                return
            yield element
            history.append(element)
            del history[: len(history) - self._order]
            steps += 1

    def state(self) -> Dict[str, object]:
        """Plain-data snapshot: order, optional positions, per-context weights."""
        return {
            "order": self._order,
            "optional_positions": list(self._optional_positions),
            "contexts": {key: sampler.as_dict() for key, sampler in self._samplers.items()},
        }

    @classmethod
    def from_state(
        cls,
        order: int,
        optional_positions: Iterable[int],
        contexts: Mapping[Sequence[Slot], Mapping[E, int]],
        rng: Optional[RandomLike] = None,
    ) -> "SequenceModel[E]":
        model: SequenceModel[E] = cls(order, optional_positions, rng=rng)
        for key, weights in contexts.items():
            key = tuple(key)
            if len(key) != model._order:
                raise ValueError(
                    f"context key has the wrong length (key_len={len(key)}, order={model._order})"
                )
            model._samplers[key] = WeightedSampler(weights)
        return model

    def _content(self) -> Dict[ContextKey, Dict[E, int]]:
        # Contexts whose weight was fully unlearned carry no (key, item) pairs.
        return {
            key: sampler.as_dict()
            for key, sampler in self._samplers.items()
            if len(sampler)
        }

    def _require_rng(self) -> None:
        if self.rng is None:
            raise MissingRandomSourceError(
                "SequenceModel has no random source; pass rng= or use generate_deterministic*."
            )

    def _draw(self, key: ContextKey, value: Optional[int]) -> Optional[E]:
        sampler = self._samplers.get(key)
        if sampler is None:
            return None
        if value is None:
            return sampler.draw(rng=self.rng)
        return sampler.draw(value)
