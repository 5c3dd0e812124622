import random

from match3.events.bus import EVENT_BOARD_SHUFFLED, EVENT_CASCADE_COMPLETE, EVENT_DEADLOCK, EVENT_MOVES_EXHAUSTED
from match3.systems import match_resolution
from match3.systems.board_ops import active_tile_type_map, apply_type_map, cell_index, shuffle_tiles
from match3.world import get_session_state
from helpers import checker_layout, force_layout, make_engine, stripe_layout, tile_counts


def test_stripe_pattern_is_a_deadlock():
    engine = make_engine()
    force_layout(engine, stripe_layout(8, 8))
    assert not engine.find_all_matches(), "Setup should not contain initial matches"
    assert not engine.has_valid_moves(), "Pattern should eliminate all valid moves"
    assert engine.get_hint() is None


def test_has_valid_moves_never_mutates_board():
    engine = make_engine()
    for layout in (stripe_layout(8, 8), checker_layout(8, 8), None):
        if layout is not None:
            force_layout(engine, layout)
        else:
            engine.restart()
        before = engine.get_board()
        results = {engine.has_valid_moves() for _ in range(5)}
        assert len(results) == 1
        assert engine.get_board() == before


def test_deadlock_with_budget_reshuffles_same_tiles():
    engine = make_engine()
    force_layout(engine, stripe_layout(8, 8))
    before = engine.get_board()
    shuffled = []
    deadlocks = []
    engine.subscribe(EVENT_BOARD_SHUFFLED, lambda sender, **payload: shuffled.append(payload))
    engine.subscribe(EVENT_DEADLOCK, lambda sender, **payload: deadlocks.append(payload))

    engine.match_resolution_system.resolve(reason="test_stalemate")

    assert len(shuffled) == 1
    assert shuffled[0]["attempts"] >= 1
    assert tile_counts(engine.get_board()) == tile_counts(before)
    assert not deadlocks
    assert not engine.is_deadlocked()
    assert not engine.is_cascading()
    assert engine.get_move_budget() == 30


def test_deadlock_without_budget_is_terminal():
    engine = make_engine()
    force_layout(engine, stripe_layout(8, 8))
    get_session_state(engine.world).moves_remaining = 0
    before = engine.get_board()
    events = []
    engine.subscribe(EVENT_DEADLOCK, lambda sender, **payload: events.append(("deadlock", payload)))
    engine.subscribe(EVENT_BOARD_SHUFFLED, lambda sender, **payload: events.append(("shuffled", payload)))
    engine.subscribe(EVENT_CASCADE_COMPLETE, lambda sender, **payload: events.append(("complete", payload)))

    engine.match_resolution_system.resolve(reason="test_stalemate")

    assert [name for name, _ in events] == ["deadlock", "complete"]
    assert events[0][1] == {"score": 0}
    assert engine.get_board() == before
    assert engine.is_deadlocked()
    assert engine.is_game_over()
    assert not engine.is_cascading()


def test_shuffle_settles_when_possible():
    engine = make_engine(tile_types=6, seed=21)
    world = engine.world
    before = dict(active_tile_type_map(world))
    positions, attempts, settled = shuffle_tiles(world, random.Random(4))
    after = active_tile_type_map(world)
    assert sorted(positions) == sorted(before)
    assert sorted(after.values()) == sorted(before.values())
    assert settled
    assert not engine.find_all_matches()
    assert engine.has_valid_moves()


def test_shuffle_keeps_last_permutation_when_attempts_run_out():
    engine = make_engine()
    force_layout(engine, stripe_layout(8, 8))
    before = engine.get_board()
    positions, attempts, settled = shuffle_tiles(engine.world, random.Random(0), max_attempts=1)
    assert attempts == 1
    assert len(positions) == 64
    assert tile_counts(engine.get_board()) == tile_counts(before)
    if not settled:
        assert engine.find_all_matches() or not engine.has_valid_moves()


def refill_from(layout):
    def refill(world, rng=None):
        types = active_tile_type_map(world)
        empty = sorted(pos for pos in cell_index(world) if pos not in types)
        for row, col in empty:
            types[(row, col)] = layout[row][col]
        apply_type_map(world, types)
        return empty
    return refill


def stripe_move_scenario(engine, monkeypatch):
    """Swapping (2, 1) into (2, 0) clears the top of column 0; the refill restores the stripes."""
    stripes = stripe_layout(8, 8)
    layout = [list(row) for row in stripes]
    layout[0][0] = 2
    layout[1][0] = 2
    layout[2][0] = 0
    layout[2][1] = 2
    force_layout(engine, layout)
    monkeypatch.setattr(match_resolution, "refill_empty_tiles", refill_from(stripes))
    return stripes


def test_accepted_move_into_deadlock_reshuffles_same_tiles(monkeypatch):
    engine = make_engine()
    stripes = stripe_move_scenario(engine, monkeypatch)
    assert not engine.find_all_matches()
    shuffled = []
    engine.subscribe(EVENT_BOARD_SHUFFLED, lambda sender, **payload: shuffled.append(payload))

    assert engine.try_move((2, 1), (2, 0)) is True

    assert len(shuffled) == 1
    assert tile_counts(engine.get_board()) == tile_counts(stripes)
    if shuffled[0]["settled"]:
        assert not engine.find_all_matches()
        assert engine.has_valid_moves()
    assert not engine.is_deadlocked()
    assert engine.get_move_budget() == 29


def test_last_move_into_deadlock_ends_the_session(monkeypatch):
    engine = make_engine(move_budget=1)
    stripes = stripe_move_scenario(engine, monkeypatch)
    events = []
    engine.subscribe(EVENT_DEADLOCK, lambda sender, **payload: events.append("deadlock"))
    engine.subscribe(EVENT_MOVES_EXHAUSTED, lambda sender, **payload: events.append("exhausted"))
    engine.subscribe(EVENT_BOARD_SHUFFLED, lambda sender, **payload: events.append("shuffled"))
    engine.subscribe(EVENT_CASCADE_COMPLETE, lambda sender, **payload: events.append("complete"))

    assert engine.try_move((2, 1), (2, 0)) is True

    assert events == ["deadlock", "exhausted", "complete"]
    assert engine.get_board() == stripes
    assert engine.get_score() == 30
    assert engine.is_deadlocked()
    assert engine.is_game_over()
    assert engine.try_move((0, 0), (0, 1)) is False
