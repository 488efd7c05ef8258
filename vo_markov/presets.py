from __future__ import annotations

import json
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .chain import SequenceModel
from .random_source import PythonRandomSource, RandomSource

RANDOM_BACKENDS = {"python", "torch"}


@dataclass
class ModelConfig:
    name: str
    order: int = 1
    optional_positions: List[int] = field(default_factory=list)
    seed: Optional[int] = None
    backend: str = "python"

    def random_source(self) -> RandomSource:
        if self.backend == "torch":
            from .torch_random import TorchRandomSource

            return TorchRandomSource(seed=self.seed)
        if self.backend != "python":
            raise ValueError(
                f"Unknown random backend '{self.backend}'. Allowed: {sorted(RANDOM_BACKENDS)}."
            )
        return PythonRandomSource(seed=self.seed)

    def build(self) -> SequenceModel:
        dropped = [p for p in self.optional_positions if not 0 <= p < self.order]
        if dropped:
            warnings.warn(
                f"Preset '{self.name}': optional positions {dropped} are outside "
                f"[0, {self.order}) and will be ignored.",
                RuntimeWarning,
            )
        return SequenceModel(
            self.order, self.optional_positions, rng=self.random_source()
        )


def _load_json(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    if not isinstance(payload, dict):
        raise ValueError(f"Expected JSON object in {path}")
    return payload


def _parse_preset(name: str, preset: Dict[str, Any], path: Path) -> ModelConfig:
    if not isinstance(preset, dict):
        raise ValueError(f"Preset '{name}' in {path} must be an object.")
    order = preset.get("order", 1)
    if not isinstance(order, int) or isinstance(order, bool) or order < 0:
        raise ValueError(f"models.{name}: order must be a non-negative integer.")
    positions = preset.get("optional_positions", [])
    if not isinstance(positions, list) or not all(
        isinstance(p, int) and not isinstance(p, bool) for p in positions
    ):
        raise ValueError(f"models.{name}: optional_positions must be a list of integers.")
    seed = preset.get("seed")
    if seed is not None and (not isinstance(seed, int) or isinstance(seed, bool)):
        raise ValueError(f"models.{name}: seed must be an integer or null.")
    backend = preset.get("backend", "python")
    if backend not in RANDOM_BACKENDS:
        raise ValueError(
            f"models.{name}: unsupported backend '{backend}'. Allowed: {sorted(RANDOM_BACKENDS)}."
        )
    return ModelConfig(
        name=name,
        order=order,
        optional_positions=list(positions),
        seed=seed,
        backend=backend,
    )


def load_presets(config_dir: Path) -> Dict[str, ModelConfig]:
    """Read ``models.json`` from ``config_dir``; a missing file means no presets."""
    path = Path(config_dir) / "models.json"
    if not path.exists():
        return {}
    table = _load_json(path).get("models", {})
    if not isinstance(table, dict):
        raise ValueError(f"Expected 'models' to be an object in {path}")
    return {str(name): _parse_preset(str(name), preset, path) for name, preset in table.items()}
