from typing import Iterable

from esper import World
from match3.constants import BASE_TILE_POINTS, LENGTH_BONUS_POINTS, MIN_MATCH_LENGTH
from match3.events.bus import EventBus, EVENT_CASCADE_STEP, EVENT_SCORE_CHANGED, EVENT_TARGET_SCORE_REACHED
from match3.systems.board_ops import Match, matched_positions
from match3.world import get_session_state


def score_matches(matches: Iterable[Match]) -> int:
    """Points for one cascade step.

    Each distinct matched tile pays BASE_TILE_POINTS once; each run pays a bonus
    for every tile beyond the minimum length, so a tile shared by a horizontal and
    a vertical run contributes to both bonuses but only one base award.
    """
    matches = list(matches)
    base = len(matched_positions(matches)) * BASE_TILE_POINTS
    bonus = sum((match.length - MIN_MATCH_LENGTH) * LENGTH_BONUS_POINTS for match in matches)
    return base + bonus


class ScoreSystem:
    """Adds points for every cascade step and flags when the target is reached."""

    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.event_bus.subscribe(EVENT_CASCADE_STEP, self.on_cascade_step)

    def on_cascade_step(self, sender, **kwargs):
        matches = kwargs.get('matches') or []
        delta = score_matches(matches)
        if delta <= 0:
            return
        state = get_session_state(self.world)
        state.score += delta
        self.event_bus.emit(EVENT_SCORE_CHANGED, score=state.score, delta=delta)
        if not state.target_reached and state.score >= state.target_score:
            state.target_reached = True
            self.event_bus.emit(EVENT_TARGET_SCORE_REACHED, score=state.score, target=state.target_score)
