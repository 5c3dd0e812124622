from __future__ import annotations

import random
from collections import Counter
from typing import List, Optional, Sequence

from match3.config import BoardConfig
from match3.engine import BoardEngine
from match3.systems.board_ops import apply_layout

# Tile ids left out of checker_layout so tests can plant them freely.
A = 0
Z = 1


def make_engine(
    rows: int = 8,
    cols: int = 8,
    tile_types: int = 6,
    move_budget: int = 30,
    target_score: int = 500,
    seed: int = 1234,
) -> BoardEngine:
    config = BoardConfig(rows=rows, cols=cols, tile_types=tile_types, move_budget=move_budget, target_score=target_score)
    return BoardEngine(config, rng=random.Random(seed))


def checker_layout(rows: int, cols: int) -> List[List[Optional[int]]]:
    """Match-free layout using only tile ids 2..5.

    Neighbours in a row differ by one step and neighbours in a column by two, so
    no run ever reaches two cells.
    """
    return [[(row * 2 + col) % 4 + 2 for col in range(cols)] for row in range(rows)]


def stripe_layout(rows: int, cols: int) -> List[List[Optional[int]]]:
    """Diagonal stripes of three types: no matches and no valid moves."""
    return [[(row + col) % 3 for col in range(cols)] for row in range(rows)]


def force_layout(engine: BoardEngine, layout: Sequence[Sequence[Optional[int]]]) -> None:
    apply_layout(engine.world, layout)


def tile_counts(board: Sequence[Sequence[Optional[int]]]) -> Counter:
    return Counter(value for row in board for value in row if value is not None)


def row_three_scenario(engine: BoardEngine) -> List[List[Optional[int]]]:
    """Row 3 reads A, A, B and (4, 2) holds A; swapping (4, 2) up completes the run."""
    layout = checker_layout(engine.config.rows, engine.config.cols)
    layout[3][0] = A
    layout[3][1] = A
    layout[4][2] = A
    force_layout(engine, layout)
    return layout
