import random

from esper import World
from match3.config import BoardConfig
from match3.components.session_state import SessionState


def create_world(
    config: BoardConfig | None = None,
    *,
    rng: random.Random | None = None,
) -> World:
    config = (config or BoardConfig()).validate()
    world = World()
    setattr(world, "random", rng or random.Random())
    setattr(world, "config", config)

    # Register the global session resource; the board itself is created by BoardSystem.
    world.create_entity(
        SessionState(
            moves_remaining=config.move_budget,
            target_score=config.target_score,
        )
    )
    return world


def get_session_state(world: World) -> SessionState:
    """Return the shared SessionState component created by create_world."""
    for _, state in world.get_component(SessionState):
        return state
    raise RuntimeError("SessionState component not found")
