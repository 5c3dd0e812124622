from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(slots=True)
class SessionState:
    """Singleton component tracking score, move budget and cascade progress."""

    score: int = 0
    moves_remaining: int = 0
    target_score: int = 0
    target_reached: bool = False
    cascade_active: bool = False
    cascade_depth: int = 0
    # Terminal: no valid moves left and no budget to earn a reshuffle.
    deadlocked: bool = False
    selected: Optional[Tuple[int, int]] = None
