from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .codec import JsonCodec
from .presets import RANDOM_BACKENDS, ModelConfig, load_presets
from .demos import (
    default_tilemap,
    default_words,
    generate_tilemap,
    generate_words,
    train_tilemap,
    train_words,
)


def _read_lines(path: Path) -> List[str]:
    with path.open("r", encoding="utf-8") as fh:
        return [line.rstrip("\n") for line in fh]


def _apply_preset(args: argparse.Namespace, preset: ModelConfig) -> None:
    # Explicit flags win over preset values.
    if args.order is None:
        args.order = preset.order
    if args.optional is None:
        args.optional = list(preset.optional_positions)
    if args.seed is None:
        args.seed = preset.seed
    if args.backend is None:
        args.backend = preset.backend


def _add_model_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config-dir", type=str, default="configs")
    parser.add_argument("--preset", type=str, default=None, help="Model preset name.")
    parser.add_argument("--order", type=int, default=None, help="Context length.")
    parser.add_argument(
        "--optional",
        type=int,
        nargs="*",
        default=None,
        help="Context positions that may be unknown at generation time.",
    )
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--backend", type=str, default=None, choices=sorted(RANDOM_BACKENDS))
    parser.add_argument("--save", type=str, default=None, help="Write the trained model as JSON.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Variable-order Markov model demos.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    names_parser = subparsers.add_parser("names", help="Generate words from a word list.")
    _add_model_args(names_parser)
    names_parser.add_argument("--words", type=str, default=None, help="One word per line.")
    names_parser.add_argument("--count", type=int, default=5)
    names_parser.add_argument("--min-length", type=int, default=4)
    names_parser.add_argument("--max-length", type=int, default=12)

    tiles_parser = subparsers.add_parser("tiles", help="Synthesize a tile map from a sample map.")
    _add_model_args(tiles_parser)
    tiles_parser.add_argument("--map", type=str, default=None, help="Text file with the sample map.")
    tiles_parser.add_argument("--rows", type=int, default=6)
    tiles_parser.add_argument("--cols", type=int, default=30)

    list_parser = subparsers.add_parser("list-presets", help="List available presets.")
    list_parser.add_argument("--config-dir", type=str, default="configs")

    return parser


def _handle_list_presets(config_dir: Path) -> int:
    try:
        presets = load_presets(config_dir)
    except (ValueError, json.JSONDecodeError) as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 2
    print("Models:")
    for name in sorted(presets):
        preset = presets[name]
        print(
            f"  {name}: order={preset.order} optional={preset.optional_positions} "
            f"seed={preset.seed} backend={preset.backend}"
        )
    return 0


def _resolve_config(args: argparse.Namespace, default_order: int) -> Optional[ModelConfig]:
    presets = load_presets(Path(args.config_dir))
    if args.preset:
        if args.preset not in presets:
            print(f"Unknown model preset: {args.preset}", file=sys.stderr)
            return None
        _apply_preset(args, presets[args.preset])
    return ModelConfig(
        name=args.preset or args.command,
        order=default_order if args.order is None else args.order,
        optional_positions=list(args.optional or []),
        seed=args.seed,
        backend=args.backend or "python",
    )


def _save_model(model, path: str) -> None:
    with Path(path).open("w", encoding="utf-8") as fh:
        fh.write(JsonCodec(indent=2).encode(model))


def _handle_names(args: argparse.Namespace) -> int:
    try:
        config = _resolve_config(args, default_order=2)
        if config is None:
            return 2
        words = _read_lines(Path(args.words)) if args.words else default_words()
        model = config.build()
        transitions = train_words(model, words)
        if transitions == 0:
            print("[ERROR] No training words found.", file=sys.stderr)
            return 2
        for word in generate_words(
            model, args.count, min_length=args.min_length, max_length=args.max_length
        ):
            print(word)
        if args.save:
            _save_model(model, args.save)
    except ImportError as exc:
        print(
            "The torch backend needs the optional dependency "
            "(for example, `pip install vo-markov[torch]`).",
            file=sys.stderr,
        )
        print(f"Import error: {exc}", file=sys.stderr)
        return 2
    except (FileNotFoundError, ValueError, json.JSONDecodeError) as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 2
    return 0


def _handle_tiles(args: argparse.Namespace) -> int:
    try:
        config = _resolve_config(args, default_order=3)
        if config is None:
            return 2
        if config.order != 3:
            print(f"[WARN] tiles always use order 3; ignoring order={config.order}.")
            config.order = 3
        if not config.optional_positions:
            config.optional_positions = [0, 1, 2]
        rows = _read_lines(Path(args.map)) if args.map else default_tilemap()
        model = config.build()
        if train_tilemap(model, rows) == 0:
            print("[ERROR] Sample map needs at least two rows and two columns.", file=sys.stderr)
            return 2
        for line in generate_tilemap(model, args.rows, args.cols):
            print(line)
        if args.save:
            _save_model(model, args.save)
    except ImportError as exc:
        print(
            "The torch backend needs the optional dependency "
            "(for example, `pip install vo-markov[torch]`).",
            file=sys.stderr,
        )
        print(f"Import error: {exc}", file=sys.stderr)
        return 2
    except (FileNotFoundError, ValueError, json.JSONDecodeError) as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 2
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command == "list-presets":
        return _handle_list_presets(Path(args.config_dir))
    if args.command == "names":
        return _handle_names(args)
    if args.command == "tiles":
        return _handle_tiles(args)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
