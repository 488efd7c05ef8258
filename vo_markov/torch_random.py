from __future__ import annotations

from typing import Optional

import torch

from .random_source import RandomSource

# torch.randint draws int64 values, so the exclusive bound must fit there.
_MAX_BOUND = 2**63 - 1


class TorchRandomSource(RandomSource):
    """Random source backed by a dedicated ``torch.Generator``."""

    def __init__(self, seed: Optional[int] = None, device: str = "cpu") -> None:
        self.device = device
        self._generator = torch.Generator(device=device)
        if seed is None:
            self._generator.seed()
        else:
            self._generator.manual_seed(int(seed))

    def randbelow(self, n: int) -> int:
        n = self._check_bound(n)
        if n > _MAX_BOUND:
            raise ValueError(
                f"Upper bound {n} exceeds the int64 range supported by torch.randint."
            )
        value = torch.randint(
            0, n, (1,), generator=self._generator, device=self.device
        )
        return int(value.item())
