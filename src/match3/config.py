"""Board engine configuration.

Everything the engine needs is passed in through ``BoardConfig``; the only
values baked into the engine are the documented fallback constants in
``match3.constants``.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping

from match3.constants import GRID_COLS, GRID_ROWS, INITIAL_MOVES, MIN_MATCH_LENGTH, TARGET_SCORE, TILE_TYPE_COUNT


class InvalidBoardConfig(ValueError):
    """Raised when a configuration cannot produce a playable board."""


@dataclass(slots=True, frozen=True)
class BoardConfig:
    rows: int = GRID_ROWS
    cols: int = GRID_COLS
    tile_types: int = TILE_TYPE_COUNT
    move_budget: int = INITIAL_MOVES
    target_score: int = TARGET_SCORE

    def validate(self) -> "BoardConfig":
        for item in fields(self):
            value = getattr(self, item.name)
            # bool is an int subclass but never a sensible board setting
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidBoardConfig(f"{item.name} must be an integer, got {value!r}")
        if self.tile_types < MIN_MATCH_LENGTH:
            raise InvalidBoardConfig(
                f"tile_types must be at least {MIN_MATCH_LENGTH} to avoid forced matches, got {self.tile_types}"
            )
        if self.rows < MIN_MATCH_LENGTH or self.cols < MIN_MATCH_LENGTH:
            raise InvalidBoardConfig(
                f"board must be at least {MIN_MATCH_LENGTH}x{MIN_MATCH_LENGTH}, got {self.rows}x{self.cols}"
            )
        if self.move_budget < 0:
            raise InvalidBoardConfig(f"move_budget must not be negative, got {self.move_budget}")
        if self.target_score < 1:
            raise InvalidBoardConfig(f"target_score must be at least 1, got {self.target_score}")
        return self

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BoardConfig":
        """Build a validated config from a plain mapping, e.g. parsed JSON.

        Missing keys take the module defaults; unknown keys are rejected.
        """
        known = {item.name for item in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise InvalidBoardConfig(f"unknown config keys: {', '.join(unknown)}")
        return cls(**dict(data)).validate()
