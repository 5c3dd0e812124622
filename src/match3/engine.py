"""Board engine facade.

Wires the ECS world, event bus and board systems together and exposes the
request/response surface the presentation layer talks to. Rendering code keeps
a reference to the engine but only ever reads copies of its state.
"""
from __future__ import annotations

import logging
import random
from typing import Any, Callable, List, Mapping, Optional, Tuple

from match3.config import BoardConfig
from match3.events.bus import EventBus, EVENT_GAME_RESET, EVENT_TILE_CLICK
from match3.systems.board import BoardSystem
from match3.systems.board_ops import Match, board_snapshot, find_all_matches, find_valid_swaps, has_valid_moves
from match3.systems.match import MatchSystem
from match3.systems.match_resolution import MatchResolutionSystem
from match3.systems.score_system import ScoreSystem
from match3.world import create_world, get_session_state

logger = logging.getLogger(__name__)

Position = Tuple[int, int]


class BoardEngine:
    def __init__(
        self,
        config: BoardConfig | None = None,
        *,
        rng: random.Random | None = None,
        event_bus: EventBus | None = None,
    ):
        self.config = (config or BoardConfig()).validate()
        self.event_bus = event_bus or EventBus()
        self.world = create_world(self.config, rng=rng)
        self.score_system = ScoreSystem(self.world, self.event_bus)
        self.match_resolution_system = MatchResolutionSystem(self.world, self.event_bus)
        self.match_system = MatchSystem(self.world, self.event_bus)
        self.board_system = BoardSystem(self.world, self.event_bus, self.config)
        logger.debug(
            "Initialized %dx%d board with %d tile types, %d moves, target %d",
            self.config.rows, self.config.cols, self.config.tile_types,
            self.config.move_budget, self.config.target_score,
        )

    @classmethod
    def initialize(cls, config: BoardConfig | Mapping[str, Any] | None = None, **kwargs) -> "BoardEngine":
        if config is not None and not isinstance(config, BoardConfig):
            config = BoardConfig.from_mapping(config)
        return cls(config, **kwargs)

    def subscribe(self, event: str, handler: Callable[..., Any]) -> None:
        self.event_bus.subscribe(event, handler)

    # Moves ---------------------------------------------------------------

    def try_move(self, src: Any, dst: Any) -> bool:
        return self.match_system.try_swap(src, dst)

    def tap(self, row: int, col: int) -> None:
        """Select a tile, or swap with the selection when the tapped tile is its neighbour."""
        self.event_bus.emit(EVENT_TILE_CLICK, row=row, col=col)

    def clear_selection(self) -> Optional[Position]:
        return self.board_system.clear_selection()

    def get_selected(self) -> Optional[Position]:
        return get_session_state(self.world).selected

    # Queries -------------------------------------------------------------

    def get_board(self) -> List[List[Optional[int]]]:
        return board_snapshot(self.world)

    def get_score(self) -> int:
        return get_session_state(self.world).score

    def get_move_budget(self) -> int:
        return get_session_state(self.world).moves_remaining

    def get_target_score(self) -> int:
        return get_session_state(self.world).target_score

    def is_cascading(self) -> bool:
        return get_session_state(self.world).cascade_active

    def has_valid_moves(self) -> bool:
        return has_valid_moves(self.world)

    def find_all_matches(self) -> List[Match]:
        return find_all_matches(self.world)

    def get_hint(self) -> Optional[Tuple[Position, Position]]:
        swaps = find_valid_swaps(self.world)
        return swaps[0] if swaps else None

    def is_deadlocked(self) -> bool:
        return get_session_state(self.world).deadlocked

    def is_game_over(self) -> bool:
        state = get_session_state(self.world)
        return state.moves_remaining <= 0 or state.deadlocked

    def is_level_complete(self) -> bool:
        state = get_session_state(self.world)
        return state.score >= state.target_score

    # Session -------------------------------------------------------------

    def restart(self) -> None:
        """Reset score, budget and flags, then lay out a fresh board."""
        state = get_session_state(self.world)
        state.score = 0
        state.moves_remaining = self.config.move_budget
        state.target_score = self.config.target_score
        state.target_reached = False
        state.cascade_active = False
        state.cascade_depth = 0
        state.deadlocked = False
        self.event_bus.emit(EVENT_GAME_RESET)
