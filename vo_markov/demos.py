from __future__ import annotations

import itertools
from typing import Iterable, Iterator, List, Optional, Sequence

from .chain import SequenceModel
from .elements import UNKNOWN, partial_key

WORD_END = "\n"
WORD_START = "^"


def default_words() -> List[str]:
    return [
        "january", "february", "march", "april", "may", "june", "july",
        "august", "september", "october", "november", "december",
        "nisan", "iyar", "sivan", "tammuz", "elul", "tishri", "kislev",
        "tevet", "shevat", "adar", "muharram", "safar", "rajab", "shaban",
        "ramadan", "shawwal", "caitra", "jyestha", "ashada", "sravana",
        "bhadrapada", "kartika", "pausa", "magha", "vendemiaire", "brumaire",
        "frimaire", "nivose", "pluviose", "ventose", "germinal", "floreal",
        "prairial", "messidor", "thermidor", "fructidor",
    ]


def default_tilemap() -> List[str]:
    return [
        "┏━━━━┳━━━━━━┓ ┏━┳━━┳━━━━━━━━┓",
        "┃    ┃ ┏━┓  ┃ ┃ ┃  ┃        ┃",
        "┣━━━━╋━╋━╋━━╋━┫ ┃ ┏╋━━━━┓   ┃",
        "┃    ┃ ┗━┛  ┃ ┃ ┃ ┗╋━━━━┛   ┃",
        "┗━━━━┻━━━━━━┛ ┗━┻━━┻━━━━━━━━┛",
    ]


def _cycle_values(values: Optional[Iterable[int]]) -> Optional[Iterator[int]]:
    if values is None:
        return None
    values = list(values)
    if not values:
        raise ValueError("values must contain at least one draw value.")
    return itertools.cycle(values)


def generate_with_backoff(
    model: SequenceModel, window: Sequence, value: Optional[int] = None
) -> Optional[object]:
    """Generate from ``window``, blanking optional positions until a context matches.

    Optional positions are blanked one at a time in ascending order, so the
    oldest context entries are given up first.
    """
    slots = list(partial_key(model.order, window))
    for pos in (None,) + model.optional_positions:
        if pos is not None:
            if slots[pos] is UNKNOWN:
                continue
            slots[pos] = UNKNOWN
        if value is None:
            element = model.generate_partial(slots)
        else:
            element = model.generate_deterministic_partial(slots, value)
        if element is not None:
            return element
    return None


def train_words(model: SequenceModel, words: Iterable[str]) -> int:
    """Train on each word padded with start markers and an end marker."""
    padding = [WORD_START] * model.order
    count = 0
    for word in words:
        word = word.strip().lower()
        if not word:
            continue
        count += model.train_sequence(padding + list(word) + [WORD_END])
    return count


def generate_words(
    model: SequenceModel,
    count: int,
    min_length: int = 4,
    max_length: int = 20,
    max_attempts: int = 1000,
    values: Optional[Iterable[int]] = None,
) -> List[str]:
    """Draw ``count`` words, discarding ones shorter than ``min_length``.

    Words that hit ``max_length`` before the end marker are discarded too.
    """
    if count < 0:
        raise ValueError("count must be non-negative.")
    if min_length > max_length:
        raise ValueError("min_length must not exceed max_length.")
    draws = _cycle_values(values)
    start = [WORD_START] * model.order
    words: List[str] = []
    attempts = 0
    while len(words) < count and attempts < max_attempts:
        attempts += 1
        letters = list(
            model.walk(start, max_steps=max_length + 1, stop=WORD_END, values=draws)
        )
        if min_length <= len(letters) <= max_length:
            words.append("".join(letters))
    return words


def _grid_window(grid: Sequence[Sequence[object]], r: int, c: int) -> List[object]:
    up_left = grid[r - 1][c - 1] if r > 0 and c > 0 else UNKNOWN
    up = grid[r - 1][c] if r > 0 else UNKNOWN
    left = grid[r][c - 1] if c > 0 else UNKNOWN
    return [up_left, up, left]


def train_tilemap(model: SequenceModel, rows: Sequence[str]) -> int:
    """Train an order-3 model on each cell's up-left, up and left neighbours.

    Only cells with all three neighbours inside the map are trained; edge
    contexts come from the wildcard variants.
    """
    if model.order != 3:
        raise ValueError(f"tile models use order 3, got order={model.order}.")
    width = max((len(row) for row in rows), default=0)
    grid = [list(row.ljust(width)) for row in rows]
    count = 0
    for r in range(1, len(grid)):
        for c in range(1, width):
            model.train(_grid_window(grid, r, c), grid[r][c])
            count += 1
    return count


def generate_tilemap(
    model: SequenceModel,
    rows: int,
    cols: int,
    values: Optional[Iterable[int]] = None,
) -> List[str]:
    if rows < 0 or cols < 0:
        raise ValueError("rows and cols must be non-negative.")
    draws = _cycle_values(values)
    grid: List[List[object]] = []
    for r in range(rows):
        grid.append([])
        for c in range(cols):
            value = next(draws) if draws is not None else None
            tile = generate_with_backoff(model, _grid_window(grid, r, c), value)
            if tile is None:
                raise ValueError(
                    f"no tile can be generated at row={r}, col={c}; is the model trained?"
                )
            grid[r].append(tile)
    return ["".join(str(t) for t in row) for row in grid]
