from __future__ import annotations

import random
from typing import Optional, Union


class MissingRandomSourceError(RuntimeError):
    pass


class RandomSource:
    """Minimal uniform integer interface used for implicit draws."""

    def randbelow(self, n: int) -> int:
        """Return a uniformly distributed integer in ``[0, n)``."""
        raise NotImplementedError

    def _check_bound(self, n: int) -> int:
        n = int(n)
        if n <= 0:
            raise ValueError(f"Upper bound must be positive, got {n}.")
        return n


class PythonRandomSource(RandomSource):
    """Random source backed by ``random.Random``."""

    def __init__(self, seed: Optional[int] = None, rng: Optional[random.Random] = None) -> None:
        if rng is not None and seed is not None:
            raise ValueError("Pass either seed or rng, not both.")
        self._rng = rng if rng is not None else random.Random(seed)

    def randbelow(self, n: int) -> int:
        return self._rng.randrange(self._check_bound(n))


RandomLike = Union[RandomSource, random.Random]


def as_random_source(rng: Optional[RandomLike]) -> Optional[RandomSource]:
    if rng is None or isinstance(rng, RandomSource):
        return rng
    if isinstance(rng, random.Random):
        return PythonRandomSource(rng=rng)
    raise TypeError(
        f"Expected a RandomSource or random.Random, got {type(rng).__name__}."
    )
