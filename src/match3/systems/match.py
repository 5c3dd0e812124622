from typing import Any, Optional, Tuple
from esper import World
from match3.events.bus import (EventBus, EVENT_TILE_SWAP_REQUEST, EVENT_TILE_SWAP_VALID, EVENT_TILE_SWAP_INVALID,
                               EVENT_MOVE_ACCEPTED, EVENT_MOVE_REJECTED)
from match3.systems.board_ops import (active_tile_type_map, find_all_matches, get_board, in_bounds, is_adjacent,
                                      swap_tile_types)
from match3.world import get_session_state

Position = Tuple[int, int]


def as_position(value: Any) -> Optional[Position]:
    """Accept (row, col) pairs or {'row': r, 'col': c} mappings."""
    if isinstance(value, dict):
        value = (value.get('row'), value.get('col'))
    try:
        row, col = value
    except (TypeError, ValueError):
        return None
    if isinstance(row, bool) or isinstance(col, bool):
        return None
    if not isinstance(row, int) or not isinstance(col, int):
        return None
    return row, col


class MatchSystem:
    """Validates swap requests and applies the ones that produce a match.

    Rejections never raise: they return False and emit EVENT_MOVE_REJECTED with a
    reason so callers can probe moves speculatively.
    """
    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        event_bus.subscribe(EVENT_TILE_SWAP_REQUEST, self.on_swap_request)

    def on_swap_request(self, sender, **kwargs):
        src = kwargs.get('src')
        dst = kwargs.get('dst')
        if src is None or dst is None:
            return
        self.try_swap(src, dst)

    def rejection_reason(self, src: Optional[Position], dst: Optional[Position]) -> Optional[str]:
        state = get_session_state(self.world)
        if state.moves_remaining <= 0:
            return 'no_moves_left'
        if state.cascade_active:
            return 'cascade_active'
        board = get_board(self.world)
        if src is None or dst is None:
            return 'out_of_bounds'
        if not in_bounds(board.rows, board.cols, src) or not in_bounds(board.rows, board.cols, dst):
            return 'out_of_bounds'
        if not is_adjacent(src, dst):
            return 'not_adjacent'
        types = active_tile_type_map(self.world)
        if src not in types or dst not in types:
            return 'empty_cell'
        return None

    def try_swap(self, src: Any, dst: Any) -> bool:
        src_pos = as_position(src)
        dst_pos = as_position(dst)
        reason = self.rejection_reason(src_pos, dst_pos)
        if reason is not None:
            self.event_bus.emit(EVENT_MOVE_REJECTED, src=src_pos, dst=dst_pos, reason=reason)
            return False
        swap_tile_types(self.world, src_pos, dst_pos)
        matches = find_all_matches(self.world)
        if not matches:
            # Swapping the same pair again restores the exact previous types.
            swap_tile_types(self.world, src_pos, dst_pos)
            self.event_bus.emit(EVENT_TILE_SWAP_INVALID, src=src_pos, dst=dst_pos)
            self.event_bus.emit(EVENT_MOVE_REJECTED, src=src_pos, dst=dst_pos, reason='no_match')
            return False
        state = get_session_state(self.world)
        state.moves_remaining -= 1
        self.event_bus.emit(EVENT_MOVE_ACCEPTED, src=src_pos, dst=dst_pos, moves_remaining=state.moves_remaining)
        # Resolution runs synchronously inside this emit.
        self.event_bus.emit(EVENT_TILE_SWAP_VALID, src=src_pos, dst=dst_pos)
        return True
