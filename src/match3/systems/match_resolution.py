import logging
from typing import List

from esper import World
from match3.constants import MAX_CASCADE_DEPTH
from match3.events.bus import (EventBus, EVENT_TILE_SWAP_VALID, EVENT_MATCH_FOUND, EVENT_MATCH_CLEARED,
                               EVENT_GRAVITY_APPLIED, EVENT_REFILL_COMPLETED, EVENT_CASCADE_STEP,
                               EVENT_CASCADE_COMPLETE, EVENT_BOARD_SHUFFLED, EVENT_DEADLOCK, EVENT_MOVES_EXHAUSTED)
from match3.systems.board_ops import (Match, apply_gravity_moves, clear_tiles, compute_gravity_moves,
                                      find_all_matches, has_valid_moves, matched_positions, refill_empty_tiles,
                                      shuffle_tiles)
from match3.world import get_session_state

logger = logging.getLogger(__name__)


class MatchResolutionSystem:
    """Runs the remove -> fall -> refill -> rescan loop after an accepted swap.

    The whole chain resolves synchronously inside one call. Each step is announced
    on the event bus so a presentation layer can replay it with animations; the
    board state is already settled by the time the triggering call returns.
    """
    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.event_bus.subscribe(EVENT_TILE_SWAP_VALID, self.on_swap_valid)

    def on_swap_valid(self, sender, **kwargs):
        self.resolve(reason="swap")

    def resolve(self, reason: str = "swap") -> int:
        """Resolve every standing match, then settle the board. Returns the cascade depth."""
        state = get_session_state(self.world)
        state.cascade_active = True
        state.cascade_depth = 0
        try:
            matches = find_all_matches(self.world)
            while matches:
                if state.cascade_depth >= MAX_CASCADE_DEPTH:
                    logger.warning("Cascade stopped at depth %d with %d match(es) standing", state.cascade_depth, len(matches))
                    break
                state.cascade_depth += 1
                self._resolve_step(matches, reason)
                matches = find_all_matches(self.world)
            depth = state.cascade_depth
            self._settle(reason)
        finally:
            state.cascade_active = False
        return depth

    def _resolve_step(self, matches: List[Match], reason: str) -> None:
        state = get_session_state(self.world)
        depth = state.cascade_depth
        positions = matched_positions(matches)
        self.event_bus.emit(EVENT_CASCADE_STEP, depth=depth, positions=positions, matches=matches, reason=reason)
        for match in matches:
            self.event_bus.emit(
                EVENT_MATCH_FOUND,
                positions=list(match.positions),
                tile_type=match.tile_type,
                length=match.length,
                orientation=match.orientation,
                depth=depth,
            )
        typed = clear_tiles(self.world, positions)
        self.event_bus.emit(EVENT_MATCH_CLEARED, positions=positions, types=sorted(typed), depth=depth)
        moves, cascades = compute_gravity_moves(self.world)
        if moves:
            apply_gravity_moves(self.world, moves)
        self.event_bus.emit(EVENT_GRAVITY_APPLIED, moves=moves, cascades=cascades)
        new_tiles = refill_empty_tiles(self.world, getattr(self.world, "random", None))
        if new_tiles:
            self.event_bus.emit(EVENT_REFILL_COMPLETED, new_tiles=new_tiles)
        logger.debug("Cascade step %d cleared %d tile(s), refilled %d", depth, len(positions), len(new_tiles))

    def _settle(self, reason: str) -> None:
        """Reshuffle or flag a deadlock, then announce the settled board.

        EVENT_CASCADE_COMPLETE is always the last emission, so a handler may chain
        the next move from it without this call emitting anything afterwards.
        """
        state = get_session_state(self.world)
        depth = state.cascade_depth
        if not has_valid_moves(self.world):
            if state.moves_remaining > 0:
                positions, attempts, settled = shuffle_tiles(self.world, getattr(self.world, "random", None))
                if not settled:
                    logger.warning("Reshuffle kept an unsettled board after %d attempts", attempts)
                self.event_bus.emit(EVENT_BOARD_SHUFFLED, positions=positions, attempts=attempts, settled=settled)
            else:
                state.deadlocked = True
                self.event_bus.emit(EVENT_DEADLOCK, score=state.score)
        if state.moves_remaining <= 0 and reason == "swap":
            self.event_bus.emit(EVENT_MOVES_EXHAUSTED, score=state.score)
        state.cascade_active = False
        self.event_bus.emit(EVENT_CASCADE_COMPLETE, depth=depth, reason=reason)
