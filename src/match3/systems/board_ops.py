from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from esper import World

from match3.components.active_switch import ActiveSwitch
from match3.components.board import Board
from match3.components.board_position import BoardPosition
from match3.components.tile import TileType
from match3.constants import (
    FALLBACK_CLUSTER_ANCHOR,
    FALLBACK_CLUSTER_OFFSETS,
    FALLBACK_CLUSTER_TYPE,
    GENERATION_MAX_ATTEMPTS,
    MIN_MATCH_LENGTH,
    SHUFFLE_MAX_ATTEMPTS,
)

logger = logging.getLogger(__name__)

Position = Tuple[int, int]
TypeMap = Dict[Position, int]
TypeEntry = Tuple[int, int, int]
Layout = Sequence[Sequence[Optional[int]]]

HORIZONTAL = "horizontal"
VERTICAL = "vertical"


@dataclass(slots=True)
class GravityMove:
    source: Position
    target: Position
    type_id: int


@dataclass(slots=True, frozen=True)
class Match:
    """A maximal straight run of same-typed tiles."""
    positions: Tuple[Position, ...]
    tile_type: int
    orientation: str

    @property
    def length(self) -> int:
        return len(self.positions)


def get_board(world: World) -> Board:
    for _, board in world.get_component(Board):
        return board
    raise RuntimeError("Board component not found")


def board_dimensions(world: World) -> Tuple[int, int] | None:
    for _, board in world.get_component(Board):
        return board.rows, board.cols
    return None


def cell_index(world: World) -> Dict[Position, int]:
    """Map every board position to its cell entity."""
    return {(pos.row, pos.col): entity for entity, pos in world.get_component(BoardPosition)}


def in_bounds(rows: int, cols: int, pos: Position) -> bool:
    row, col = pos
    return 0 <= row < rows and 0 <= col < cols


def is_adjacent(a: Position, b: Position) -> bool:
    ar, ac = a
    br, bc = b
    return abs(ar - br) + abs(ac - bc) == 1


def active_tile_type_map(world: World) -> TypeMap:
    """Return mapping of active tile positions to their type ids."""
    mapping: TypeMap = {}
    for entity, (position, switch, tile) in world.get_components(BoardPosition, ActiveSwitch, TileType):
        if not switch.active:
            continue
        mapping[(position.row, position.col)] = tile.type_id
    return mapping


def board_snapshot(world: World) -> List[List[Optional[int]]]:
    """Return a detached rows x cols copy of the board, None marking empty cells."""
    dims = board_dimensions(world)
    if not dims:
        return []
    rows, cols = dims
    types = active_tile_type_map(world)
    return [[types.get((row, col)) for col in range(cols)] for row in range(rows)]


def apply_layout(world: World, layout: Layout) -> None:
    """Write a full layout into the cell entities; None entries become empty cells."""
    index = cell_index(world)
    for row, values in enumerate(layout):
        for col, type_id in enumerate(values):
            entity = index.get((row, col))
            if entity is None:
                continue
            switch: ActiveSwitch = world.component_for_entity(entity, ActiveSwitch)
            if type_id is None:
                switch.active = False
                continue
            world.component_for_entity(entity, TileType).type_id = type_id
            switch.active = True


def apply_type_map(world: World, types: TypeMap) -> None:
    index = cell_index(world)
    for pos, entity in index.items():
        switch: ActiveSwitch = world.component_for_entity(entity, ActiveSwitch)
        type_id = types.get(pos)
        if type_id is None:
            switch.active = False
            continue
        world.component_for_entity(entity, TileType).type_id = type_id
        switch.active = True


def _run_length(types: TypeMap, pos: Position, type_id: int, step: Position) -> int:
    """Count same-typed cells beyond pos in both directions along step."""
    dr, dc = step
    count = 0
    for sign in (1, -1):
        r, c = pos[0] + dr * sign, pos[1] + dc * sign
        while types.get((r, c)) == type_id:
            count += 1
            r += dr * sign
            c += dc * sign
    return count


def would_create_match(types: TypeMap, pos: Position, type_id: int) -> bool:
    """Return True if placing type_id at pos completes a run with placed neighbours."""
    if _run_length(types, pos, type_id, (0, 1)) + 1 >= MIN_MATCH_LENGTH:
        return True
    return _run_length(types, pos, type_id, (1, 0)) + 1 >= MIN_MATCH_LENGTH


def pick_tile_type(types: TypeMap, pos: Position, tile_types: int, rng: random.Random) -> int:
    available = [t for t in range(tile_types) if not would_create_match(types, pos, t)]
    if not available:
        return rng.randrange(tile_types)
    return rng.choice(available)


def random_layout(rows: int, cols: int, tile_types: int, rng: random.Random) -> TypeMap:
    """Fill a board in row-major order, avoiding runs with the cells placed so far."""
    types: TypeMap = {}
    for row in range(rows):
        for col in range(cols):
            types[(row, col)] = pick_tile_type(types, (row, col), tile_types, rng)
    return types


def fallback_layout(rows: int, cols: int, tile_types: int) -> TypeMap:
    """Diagonal stripes plus a forced L of identical tiles that always leaves a move."""
    types: TypeMap = {
        (row, col): (row + col) % tile_types
        for row in range(rows)
        for col in range(cols)
    }
    anchor_row = min(FALLBACK_CLUSTER_ANCHOR[0], rows - 2)
    anchor_col = min(FALLBACK_CLUSTER_ANCHOR[1], cols - 2)
    for dr, dc in FALLBACK_CLUSTER_OFFSETS:
        types[(anchor_row + dr, anchor_col + dc)] = FALLBACK_CLUSTER_TYPE
    return types


def generate_layout(
    rows: int,
    cols: int,
    tile_types: int,
    rng: random.Random,
    *,
    max_attempts: int = GENERATION_MAX_ATTEMPTS,
) -> Tuple[TypeMap, int, bool]:
    """Return (layout, attempts, used_fallback) for a match-free board with a valid move."""
    for attempt in range(1, max_attempts + 1):
        types = random_layout(rows, cols, tile_types, rng)
        if scan_matches(types, rows, cols):
            continue
        if not has_valid_moves_in(types, rows, cols):
            continue
        logger.debug("Generated %dx%d board after %d attempt(s)", rows, cols, attempt)
        return types, attempt, False
    logger.warning("No playable %dx%d board after %d attempts; using fallback layout", rows, cols, max_attempts)
    return fallback_layout(rows, cols, tile_types), max_attempts, True


def scan_matches(types: TypeMap, rows: int, cols: int) -> List[Match]:
    """Detect every maximal horizontal and vertical run of length >= 3.

    Rows and columns are scanned independently and never merged, so a tile in an
    L or T shape shows up in one horizontal and one vertical match.
    """
    matches: List[Match] = []
    lines: List[Tuple[str, List[Position]]] = []
    for r in range(rows):
        lines.append((HORIZONTAL, [(r, c) for c in range(cols)]))
    for c in range(cols):
        lines.append((VERTICAL, [(r, c) for r in range(rows)]))
    for orientation, line in lines:
        run: List[Position] = []
        last_type = None
        for pos in line:
            tval = types.get(pos)
            if tval is not None and tval == last_type:
                run.append(pos)
                continue
            if len(run) >= MIN_MATCH_LENGTH:
                matches.append(Match(tuple(run), last_type, orientation))
            run = [pos] if tval is not None else []
            last_type = tval
        if len(run) >= MIN_MATCH_LENGTH:
            matches.append(Match(tuple(run), last_type, orientation))
    return matches


def find_all_matches(world: World) -> List[Match]:
    types = active_tile_type_map(world)
    dims = board_dimensions(world)
    if not dims or not types:
        return []
    rows, cols = dims
    return scan_matches(types, rows, cols)


def matched_positions(matches: Iterable[Match]) -> List[Position]:
    """De-duplicated, sorted union of all matched cells."""
    return sorted({pos for match in matches for pos in match.positions})


def _has_line_match(types: TypeMap, pos: Position) -> bool:
    """Return True if a horizontal or vertical run of 3+ passes through pos."""
    tval = types.get(pos)
    if tval is None:
        return False
    if _run_length(types, pos, tval, (0, 1)) + 1 >= MIN_MATCH_LENGTH:
        return True
    return _run_length(types, pos, tval, (1, 0)) + 1 >= MIN_MATCH_LENGTH


def predict_swap_creates_match(types: TypeMap, src: Position, dst: Position) -> bool:
    """Return True if swapping src/dst would create a match.

    Swaps in place and always swaps back, so types is unchanged afterwards.
    """
    if src not in types or dst not in types:
        return False
    types[src], types[dst] = types[dst], types[src]
    try:
        return _has_line_match(types, src) or _has_line_match(types, dst)
    finally:
        types[src], types[dst] = types[dst], types[src]


def _neighbour_pairs(rows: int, cols: int) -> Iterable[Tuple[Position, Position]]:
    for row in range(rows):
        for col in range(cols):
            if col + 1 < cols:
                yield (row, col), (row, col + 1)
            if row + 1 < rows:
                yield (row, col), (row + 1, col)


def has_valid_moves_in(types: TypeMap, rows: int, cols: int) -> bool:
    return any(predict_swap_creates_match(types, a, b) for a, b in _neighbour_pairs(rows, cols))


def has_valid_moves(world: World) -> bool:
    dims = board_dimensions(world)
    if not dims:
        return False
    rows, cols = dims
    return has_valid_moves_in(active_tile_type_map(world), rows, cols)


def find_valid_swaps(world: World) -> List[Tuple[Position, Position]]:
    """Enumerate adjacent swaps that would produce a match."""
    dims = board_dimensions(world)
    if not dims:
        return []
    rows, cols = dims
    tile_map = active_tile_type_map(world)
    return [(a, b) for a, b in _neighbour_pairs(rows, cols) if predict_swap_creates_match(tile_map, a, b)]


def swap_tile_types(world: World, src: Position, dst: Position) -> bool:
    """Swap the TileType values for two active tile entities."""
    index = cell_index(world)
    src_entity = index.get(src)
    dst_entity = index.get(dst)
    if src_entity is None or dst_entity is None:
        return False
    src_switch: ActiveSwitch = world.component_for_entity(src_entity, ActiveSwitch)
    dst_switch: ActiveSwitch = world.component_for_entity(dst_entity, ActiveSwitch)
    if not (src_switch.active and dst_switch.active):
        return False
    src_tile: TileType = world.component_for_entity(src_entity, TileType)
    dst_tile: TileType = world.component_for_entity(dst_entity, TileType)
    src_tile.type_id, dst_tile.type_id = dst_tile.type_id, src_tile.type_id
    return True


def clear_tiles(world: World, positions: Iterable[Position]) -> List[TypeEntry]:
    """Deactivate tiles at positions and return what was removed."""
    index = cell_index(world)
    typed: List[TypeEntry] = []
    for row, col in positions:
        entity = index.get((row, col))
        if entity is None:
            continue
        tile_switch: ActiveSwitch = world.component_for_entity(entity, ActiveSwitch)
        if not tile_switch.active:
            continue
        tile_type: TileType = world.component_for_entity(entity, TileType)
        typed.append((row, col, tile_type.type_id))
        tile_switch.active = False
    return typed


def compute_gravity_moves(world: World) -> Tuple[List[GravityMove], int]:
    """Plan how tiles drop to close gaps; moves are ordered bottom-up per column."""
    dims = board_dimensions(world)
    if not dims:
        return [], 0
    rows, cols = dims
    types = active_tile_type_map(world)
    moves: List[GravityMove] = []
    cascades = 0
    for col in range(cols):
        filled_rows = [row for row in range(rows - 1, -1, -1) if (row, col) in types]
        column_moved = False
        for offset, original_row in enumerate(filled_rows):
            target_row = rows - 1 - offset
            if original_row == target_row:
                continue
            moves.append(GravityMove(source=(original_row, col), target=(target_row, col), type_id=types[(original_row, col)]))
            column_moved = True
        if column_moved:
            cascades += 1
    return moves, cascades


def apply_gravity_moves(world: World, moves: List[GravityMove]) -> None:
    index = cell_index(world)
    for move in moves:
        src_entity = index.get(move.source)
        dst_entity = index.get(move.target)
        if src_entity is None or dst_entity is None:
            continue
        src_switch: ActiveSwitch = world.component_for_entity(src_entity, ActiveSwitch)
        dst_switch: ActiveSwitch = world.component_for_entity(dst_entity, ActiveSwitch)
        if not src_switch.active:
            continue
        world.component_for_entity(dst_entity, TileType).type_id = move.type_id
        dst_switch.active = True
        src_switch.active = False


def refill_empty_tiles(world: World, rng: random.Random | None = None) -> List[Position]:
    """Fill every empty cell in row-major order with a constrained random type."""
    board = get_board(world)
    rng = rng or getattr(world, "random", None) or random.Random()
    types = active_tile_type_map(world)
    index = cell_index(world)
    spawned: List[Position] = []
    for row in range(board.rows):
        for col in range(board.cols):
            pos = (row, col)
            if pos in types or pos not in index:
                continue
            type_id = pick_tile_type(types, pos, board.tile_types, rng)
            types[pos] = type_id
            entity = index[pos]
            world.component_for_entity(entity, TileType).type_id = type_id
            world.component_for_entity(entity, ActiveSwitch).active = True
            spawned.append(pos)
    return spawned


def shuffle_tiles(
    world: World,
    rng: random.Random | None = None,
    *,
    max_attempts: int = SHUFFLE_MAX_ATTEMPTS,
) -> Tuple[List[Position], int, bool]:
    """Permute the existing tiles among the occupied cells.

    Retries until the permutation has no standing match and at least one valid
    move. Returns (positions, attempts, settled); when no attempt settles, the
    last permutation is kept. The multiset of tile types never changes.
    """
    dims = board_dimensions(world)
    if not dims:
        return [], 0, False
    rows, cols = dims
    rng = rng or getattr(world, "random", None) or random.Random()
    original = active_tile_type_map(world)
    positions = sorted(original)
    values = [original[pos] for pos in positions]
    shuffled: TypeMap = dict(original)
    attempts = 0
    settled = False
    while attempts < max_attempts:
        attempts += 1
        rng.shuffle(values)
        shuffled = dict(zip(positions, values))
        if not scan_matches(shuffled, rows, cols) and has_valid_moves_in(shuffled, rows, cols):
            settled = True
            break
    apply_type_map(world, shuffled)
    logger.debug("Reshuffled %d tiles in %d attempt(s), settled=%s", len(positions), attempts, settled)
    return positions, attempts, settled
