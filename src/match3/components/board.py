from dataclasses import dataclass

@dataclass(slots=True)
class Board:
    rows: int
    cols: int
    # Size of the tile alphabet; tile types are ints in range(tile_types).
    tile_types: int
