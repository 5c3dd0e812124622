import pytest

from match3.config import BoardConfig, InvalidBoardConfig
from match3.constants import GRID_COLS, GRID_ROWS, INITIAL_MOVES, TARGET_SCORE, TILE_TYPE_COUNT
from match3.engine import BoardEngine


def test_defaults_match_constants():
    config = BoardConfig().validate()
    assert (config.rows, config.cols) == (GRID_ROWS, GRID_COLS)
    assert config.tile_types == TILE_TYPE_COUNT
    assert config.move_budget == INITIAL_MOVES
    assert config.target_score == TARGET_SCORE


@pytest.mark.parametrize(
    "kwargs",
    [
        {"tile_types": 2},
        {"rows": 2},
        {"cols": 1},
        {"move_budget": -1},
        {"target_score": -10},
        {"target_score": 0},
        {"rows": 8.0},
        {"tile_types": True},
    ],
)
def test_degenerate_configs_are_rejected(kwargs):
    with pytest.raises(InvalidBoardConfig):
        BoardConfig(**kwargs).validate()


def test_invalid_config_is_a_value_error():
    with pytest.raises(ValueError):
        BoardEngine(BoardConfig(tile_types=1))


def test_from_mapping_fills_defaults():
    config = BoardConfig.from_mapping({"rows": 7, "cols": 8, "tile_types": 7})
    assert (config.rows, config.cols, config.tile_types) == (7, 8, 7)
    assert config.move_budget == INITIAL_MOVES


def test_from_mapping_rejects_unknown_keys():
    with pytest.raises(InvalidBoardConfig, match="boardSize"):
        BoardConfig.from_mapping({"boardSize": 8})


def test_initialize_accepts_plain_mapping():
    engine = BoardEngine.initialize({"rows": 7, "cols": 8, "tile_types": 6, "move_budget": 12, "target_score": 100})
    board = engine.get_board()
    assert len(board) == 7
    assert all(len(row) == 8 for row in board)
    assert engine.get_move_budget() == 12
    assert engine.get_target_score() == 100


def test_zero_target_is_rejected_so_no_level_starts_complete():
    with pytest.raises(InvalidBoardConfig, match="target_score"):
        BoardEngine.initialize({"target_score": 0})
