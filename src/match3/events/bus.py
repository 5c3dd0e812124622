from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # Use weak=False to retain strong reference to bound methods so systems not kept in a variable still receive events.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn):
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# SELECTION & INPUT
# ============================================================================
EVENT_TILE_CLICK = "tile_click"                    # payload: row, col
EVENT_TILE_SELECTED = "tile_selected"              # payload: row, col
EVENT_TILE_DESELECTED = "tile_deselected"          # payload: reason=str, prev_row, prev_col


# ============================================================================
# MOVES
# ============================================================================
EVENT_TILE_SWAP_REQUEST = "tile_swap_request"      # payload: src=(r,c), dst=(r,c)
EVENT_TILE_SWAP_VALID = "tile_swap_valid"          # payload: src=(r,c), dst=(r,c)
EVENT_TILE_SWAP_INVALID = "tile_swap_invalid"      # payload: src=(r,c), dst=(r,c)
EVENT_MOVE_ACCEPTED = "move_accepted"              # payload: src, dst, moves_remaining=int
EVENT_MOVE_REJECTED = "move_rejected"              # payload: src, dst, reason=str


# ============================================================================
# MATCHES & CASCADES
# ============================================================================
EVENT_MATCH_FOUND = "match_found"                  # payload: positions=[(r,c),...], tile_type=int, length=int, orientation=str, depth=int
EVENT_MATCH_CLEARED = "match_cleared"              # payload: positions=[(r,c),...], types=[(r,c,type),...], depth=int
EVENT_GRAVITY_APPLIED = "gravity_applied"          # payload: moves=[GravityMove,...], cascades=int
EVENT_REFILL_COMPLETED = "refill_completed"        # payload: new_tiles=[(r,c),...]
EVENT_CASCADE_STEP = "cascade_step"                # payload: depth=int, positions=[(r,c),...], reason=str
EVENT_CASCADE_COMPLETE = "cascade_complete"        # payload: depth=int, reason=str
EVENT_BOARD_SHUFFLED = "board_shuffled"            # payload: positions=[(r,c),...], attempts=int, settled=bool


# ============================================================================
# SESSION
# ============================================================================
EVENT_BOARD_GENERATED = "board_generated"          # payload: attempts=int, fallback=bool
EVENT_SCORE_CHANGED = "score_changed"              # payload: score=int, delta=int
EVENT_TARGET_SCORE_REACHED = "target_score_reached"  # payload: score=int, target=int
EVENT_MOVES_EXHAUSTED = "moves_exhausted"          # payload: score=int
EVENT_DEADLOCK = "deadlock"                        # payload: score=int
EVENT_GAME_RESET = "game_reset"                    # payload: (none)
