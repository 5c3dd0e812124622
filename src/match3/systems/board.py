from typing import Optional, Tuple
from esper import World
from match3.events.bus import (EventBus, EVENT_TILE_CLICK, EVENT_TILE_SELECTED, EVENT_TILE_DESELECTED,
                               EVENT_TILE_SWAP_REQUEST, EVENT_BOARD_GENERATED, EVENT_GAME_RESET)
from match3.components.active_switch import ActiveSwitch
from match3.components.board import Board
from match3.components.board_position import BoardPosition
from match3.components.tile import TileType
from match3.config import BoardConfig
from match3.systems.board_ops import apply_type_map, generate_layout, in_bounds, is_adjacent
from match3.world import get_session_state


class BoardSystem:
    """Owns the board entity, its cells, initial generation and tap selection."""

    def __init__(self, world: World, event_bus: EventBus, config: BoardConfig | None = None):
        self.world = world
        self.event_bus = event_bus
        self.config = (config or getattr(world, "config", None) or BoardConfig()).validate()
        # Create a single board entity with Board component
        self.board_entity = self.world.create_entity(
            Board(rows=self.config.rows, cols=self.config.cols, tile_types=self.config.tile_types)
        )
        self.event_bus.subscribe(EVENT_TILE_CLICK, self.on_tile_click)
        self.event_bus.subscribe(EVENT_GAME_RESET, self.on_game_reset)
        self._init_cells()
        self.generate()

    def _init_cells(self):
        for r in range(self.config.rows):
            for c in range(self.config.cols):
                # Cells start empty until generate() lays out the first board.
                self.world.create_entity(BoardPosition(row=r, col=c), TileType(type_id=0), ActiveSwitch(active=False))

    def generate(self) -> bool:
        """Lay out a fresh match-free board with a valid move. Returns True if the fallback was used."""
        rng = getattr(self.world, "random")
        layout, attempts, fallback = generate_layout(
            self.config.rows, self.config.cols, self.config.tile_types, rng
        )
        apply_type_map(self.world, layout)
        self.event_bus.emit(EVENT_BOARD_GENERATED, attempts=attempts, fallback=fallback)
        return fallback

    def on_game_reset(self, sender, **kwargs):
        self.clear_selection(reason="reset")
        self.generate()

    def on_tile_click(self, sender, **kwargs):
        row = kwargs.get('row')
        col = kwargs.get('col')
        if row is None or col is None:
            return
        if not in_bounds(self.config.rows, self.config.cols, (row, col)):
            return
        state = get_session_state(self.world)
        # Ignore taps while a cascade is still resolving
        if state.cascade_active:
            return
        if state.selected is None:
            self.select(row, col)
            return
        if state.selected == (row, col):
            self.clear_selection(reason='same_tile')
            return
        if is_adjacent(state.selected, (row, col)):
            src = state.selected
            dst = (row, col)
            state.selected = None
            self.event_bus.emit(EVENT_TILE_DESELECTED, reason='swap', prev_row=src[0], prev_col=src[1])
            self.event_bus.emit(EVENT_TILE_SWAP_REQUEST, src=src, dst=dst)
        else:
            # Change selection to new tile
            self.select(row, col)

    def select(self, row: int, col: int):
        state = get_session_state(self.world)
        state.selected = (row, col)
        self.event_bus.emit(EVENT_TILE_SELECTED, row=row, col=col)

    def clear_selection(self, reason: str = 'cleared') -> Optional[Tuple[int, int]]:
        state = get_session_state(self.world)
        prev = state.selected
        if prev is None:
            return None
        state.selected = None
        self.event_bus.emit(EVENT_TILE_DESELECTED, reason=reason, prev_row=prev[0], prev_col=prev[1])
        return prev
