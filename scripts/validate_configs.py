from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Tuple

RANDOM_BACKENDS = {"python", "torch"}
# Each optional position doubles the number of contexts stored per observation.
MAX_SENSIBLE_OPTIONAL = 8


def _load_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file does not exist: {path}")
    with path.open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    if not isinstance(payload, dict):
        raise ValueError(f"Expected JSON object in {path}")
    return payload


def _get_table(payload: Dict[str, Any], key: str, path: Path) -> Dict[str, Dict[str, Any]]:
    table = payload.get(key, {})
    if not isinstance(table, dict):
        raise ValueError(f"Expected '{key}' to be an object in {path}")
    output: Dict[str, Dict[str, Any]] = {}
    for name, preset in table.items():
        if not isinstance(preset, dict):
            raise ValueError(f"Preset '{name}' in {path} must be an object.")
        output[str(name)] = preset
    return output


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_config_dir(config_dir: Path) -> Tuple[List[str], List[str], Dict[str, int]]:
    errors: List[str] = []
    warnings: List[str] = []

    models_path = config_dir / "models.json"
    models = _get_table(_load_json(models_path), "models", models_path)

    for name, preset in models.items():
        order = preset.get("order", 1)
        if not _is_int(order) or order < 0:
            errors.append(f"models.{name}: order must be a non-negative integer, got {order!r}.")
            continue

        positions = preset.get("optional_positions", [])
        if not isinstance(positions, list) or not all(_is_int(p) for p in positions):
            errors.append(f"models.{name}: optional_positions must be a list of integers.")
            continue
        out_of_range = sorted({p for p in positions if not 0 <= p < order})
        if out_of_range:
            warnings.append(
                f"models.{name}: optional positions {out_of_range} are outside "
                f"[0, {order}) and will be ignored."
            )
        if len(positions) != len(set(positions)):
            warnings.append(f"models.{name}: optional_positions contains duplicates.")
        in_range = {p for p in positions if 0 <= p < order}
        if len(in_range) > MAX_SENSIBLE_OPTIONAL:
            warnings.append(
                f"models.{name}: {len(in_range)} optional positions store "
                f"{2 ** len(in_range)} contexts per observation."
            )

        seed = preset.get("seed")
        if seed is not None and not _is_int(seed):
            errors.append(f"models.{name}: seed must be an integer or null.")

        backend = preset.get("backend", "python")
        if backend not in RANDOM_BACKENDS:
            errors.append(
                f"models.{name}: unsupported backend '{backend}'. "
                f"Allowed: {sorted(RANDOM_BACKENDS)}."
            )
        if seed is None:
            warnings.append(f"models.{name}: no seed set; generation is not reproducible.")

    stats = {"models": len(models)}
    return errors, warnings, stats


def main() -> int:
    parser = argparse.ArgumentParser(description="Validate model preset consistency.")
    parser.add_argument("--config-dir", type=str, default="configs")
    args = parser.parse_args()

    config_dir = Path(args.config_dir)
    try:
        errors, warnings, stats = validate_config_dir(config_dir)
    except (FileNotFoundError, ValueError, json.JSONDecodeError) as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 2

    print(f"Validated presets: models={stats['models']}")
    for warning in warnings:
        print(f"[WARN] {warning}")
    for error in errors:
        print(f"[ERROR] {error}", file=sys.stderr)

    if errors:
        print(f"Validation failed with {len(errors)} error(s).", file=sys.stderr)
        return 1

    print("Validation passed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
