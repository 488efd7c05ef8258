from __future__ import annotations

import argparse
import json
import platform
import random
import socket
import statistics
import subprocess
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

try:
    import torch
except ModuleNotFoundError:
    torch = None

from vo_markov.chain import SequenceModel
from vo_markov.random_source import PythonRandomSource, RandomSource
from vo_markov.sampler import WeightedSampler

TorchRandomSource = None
if torch is not None:
    from vo_markov.torch_random import TorchRandomSource


def _resolve_out_path(path: Optional[str]) -> Path:
    if path is None:
        return Path("benchmarks") / "results.jsonl"
    out_path = Path(path)
    if out_path.is_dir():
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return out_path / f"results_{timestamp}.jsonl"
    return out_path


def _append_result(path: Path, record: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as fh:
        fh.write(json.dumps(record, ensure_ascii=False) + "\n")


def _run_cmd(cmd: List[str]) -> Optional[str]:
    try:
        out = subprocess.check_output(cmd, stderr=subprocess.DEVNULL, text=True)
    except (OSError, subprocess.CalledProcessError):
        return None
    return out.strip()


def _collect_system_metadata() -> Dict[str, Optional[str]]:
    return {
        "git_sha": _run_cmd(["git", "rev-parse", "HEAD"]),
        "hostname": socket.gethostname(),
        "python_version": platform.python_version(),
        "torch_version": getattr(torch, "__version__", None) if torch is not None else None,
    }


def _make_source(backend: str, seed: int) -> RandomSource:
    if backend == "torch":
        if TorchRandomSource is None:
            raise SystemExit("The torch backend was requested but torch is not installed.")
        return TorchRandomSource(seed=seed)
    return PythonRandomSource(seed=seed)


def _bench_draws(items: int, draws: int, backend: str, seed: int) -> Dict[str, float]:
    weights = random.Random(seed)
    sampler = WeightedSampler(
        [(i, weights.randint(1, 100)) for i in range(items)],
        rng=_make_source(backend, seed),
    )
    start = time.perf_counter()
    for _ in range(draws):
        sampler.draw()
    elapsed = time.perf_counter() - start
    return {"seconds": elapsed, "ops_per_sec": draws / elapsed if elapsed else 0.0}


def _bench_train(
    order: int, optional: int, alphabet: int, length: int, seed: int
) -> Dict[str, float]:
    rng = random.Random(seed)
    sequence = [rng.randrange(alphabet) for _ in range(length)]
    model = SequenceModel(order, range(optional))
    start = time.perf_counter()
    transitions = model.train_sequence(sequence)
    elapsed = time.perf_counter() - start
    return {
        "seconds": elapsed,
        "ops_per_sec": transitions / elapsed if elapsed else 0.0,
        "contexts": float(len(model)),
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Weighted sampler / sequence model benchmark.")
    parser.add_argument("--items", type=int, default=1000, help="Sampler size for draw timing.")
    parser.add_argument("--draws", type=int, default=100000)
    parser.add_argument("--order", type=int, default=3)
    parser.add_argument("--optional", type=int, default=2, help="Number of optional positions.")
    parser.add_argument("--alphabet", type=int, default=26)
    parser.add_argument("--length", type=int, default=50000, help="Training sequence length.")
    parser.add_argument("--runs", type=int, default=3)
    parser.add_argument("--seed", type=int, default=123)
    parser.add_argument("--backend", type=str, default="python", choices=["python", "torch"])
    parser.add_argument("--out", type=str, default=None, help="Path to JSONL metrics file.")
    return parser


def run_with_args(args: argparse.Namespace) -> None:
    out_path = _resolve_out_path(args.out)
    metadata = _collect_system_metadata()
    benches = {
        "draw": lambda run: _bench_draws(args.items, args.draws, args.backend, args.seed + run),
        "train": lambda run: _bench_train(
            args.order, args.optional, args.alphabet, args.length, args.seed + run
        ),
    }
    for name, bench in benches.items():
        rates: List[float] = []
        for run in range(args.runs):
            result = bench(run)
            rates.append(result["ops_per_sec"])
            record = {
                "timestamp": datetime.now().isoformat(timespec="seconds"),
                "bench": name,
                "run": run,
                "backend": args.backend,
                "items": args.items,
                "draws": args.draws,
                "order": args.order,
                "optional": args.optional,
                "length": args.length,
                **result,
                **metadata,
            }
            _append_result(out_path, record)
        mean = statistics.mean(rates) if rates else 0.0
        print(f"{name}: {mean:,.0f} ops/sec over {len(rates)} run(s)")
    print(f"Results appended to {out_path}")


def main() -> None:
    run_with_args(build_parser().parse_args())


if __name__ == "__main__":
    main()
