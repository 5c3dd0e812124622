from dataclasses import dataclass

@dataclass(slots=True)
class TileType:
    """Per-cell tile type assignment.

    Stores only the integer type id. Active/empty state is handled by ActiveSwitch,
    so a cleared cell keeps its last type_id until it is refilled.
    """
    type_id: int
