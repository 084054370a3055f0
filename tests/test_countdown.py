"""
Tests for CountdownGame: solution caching and round lifecycle.
"""

import json

import pytest

from games import countdown
from games.countdown import RoundState, SolutionRecord, Submission


# ========== Solution cache ==========

def test_solve_puzzle_stores_record(game, redis_client):
    record = game.solve_puzzle([1, 2], 3)
    assert record.value == 3
    assert record.exact
    assert record.distance == 0
    assert record.trace == "1 2 +"
    assert record.infix == "(1 + 2)"
    assert (record.generated, record.visited) == (9, 6)

    key = "countdown:solution:3:1,2"
    assert json.loads(redis_client.redis.store[key])['trace'] == "1 2 +"
    assert redis_client.redis.ttls[key] == 60


def test_solve_puzzle_uses_cache(game, monkeypatch):
    first = game.solve_puzzle([2, 3], 100)

    def fail(*args):
        raise AssertionError("solver should not run on a cache hit")

    monkeypatch.setattr(countdown, "solve", fail)
    second = game.solve_puzzle([2, 3], 100)
    assert second == first
    assert second.value == 6
    assert not second.exact
    assert second.distance == 94


def test_cache_key_keeps_tile_order(redis_client):
    assert redis_client._solution_key([3, 2], 5) != redis_client._solution_key([2, 3], 5)


def test_clear_solutions(game, redis_client):
    game.solve_puzzle([1, 2], 3)
    game.solve_puzzle([5], 5)
    assert redis_client.clear_solutions() == 2
    assert redis_client.get_solution([5], 5) is None


@pytest.mark.parametrize("tiles, message", [
    ([], "Give at least one number to use"),
    ([1, 2, 3, 4, 5, 6, 7], "At most 6 numbers are allowed"),
    ([3, -1], "Numbers must not be negative"),
])
def test_check_puzzle_rejects(game, tiles, message):
    with pytest.raises(ValueError, match=message):
        game.solve_puzzle(tiles, 10)


def test_solution_record_round_trips_through_json():
    record = SolutionRecord(tiles=[4, 4], target=8, value=8, trace="4 4 +",
                            infix="(4 + 4)", generated=12, visited=9, solved_at=1.0)
    assert SolutionRecord.from_json(record.to_json()) == record


# ========== Rounds ==========

def test_generate_numbers_uses_settings(game):
    numbers, large, small = game.generate_numbers()
    assert large == [100]
    assert small == [5, 5]
    assert numbers == [100, 5, 5]
    assert game.generate_target() == 110


def test_start_round_and_get_active(game):
    state = game.start_round("s", "c", "host")
    assert state.numbers == [100, 5, 5]
    assert state.target == 110
    assert game.get_active_round("s", "c") == state
    assert game.get_active_round("s", "other") is None

    with pytest.raises(ValueError, match="already active"):
        game.start_round("s", "c", "host")


def test_submit_answer_valid_and_invalid(game):
    game.start_round("s", "c", "host")

    good = game.submit_answer("s", "c", "alice", "5 + 5 + 100")
    assert good.valid
    assert good.result == 110
    assert good.distance == 0

    bad = game.submit_answer("s", "c", "bob", "100 * 7")
    assert not bad.valid
    assert bad.error == "Number **7** is not available"
    assert bad.distance == countdown.INVALID_DISTANCE

    with pytest.raises(ValueError, match="already submitted"):
        game.submit_answer("s", "c", "alice", "100 + 5")


def test_submit_answer_without_round(game):
    with pytest.raises(ValueError, match="No active round"):
        game.submit_answer("s", "c", "alice", "1 + 1")


def test_submit_answer_after_time_is_up(redis_client, settings):
    settings.round_duration = 0
    game = countdown.CountdownGame(redis_client, settings)
    game.start_round("s", "c", "host")
    with pytest.raises(ValueError, match="Time's up"):
        game.submit_answer("s", "c", "alice", "100 + 5 + 5")


def test_determine_winners_orders_by_distance_then_time(game):
    subs = [
        Submission("a", "100", 100, 10, True, None, 3.0),
        Submission("b", "100 + 5", 105, 5, True, None, 2.0),
        Submission("c", "100 + 5 + 5", 105, 5, True, None, 1.0),
        Submission("d", "7", None, countdown.INVALID_DISTANCE, False, "nope", 0.5),
    ]
    assert [s.user_id for s in game.determine_winners(subs)] == ["c", "b", "a"]


def test_reveal_ranks_answers_and_solves(game):
    game.start_round("s", "c", "host")
    game.submit_answer("s", "c", "alice", "100 + 5")
    game.submit_answer("s", "c", "bob", "100 + 5 + 5")

    state, ranked, solution = game.reveal("s", "c")
    assert isinstance(state, RoundState)
    assert state.status == countdown.RoundStatus.ENDED.value
    assert [s.user_id for s in ranked] == ["bob", "alice"]
    assert solution.value == 110
    assert solution.exact

    assert game.get_active_round("s", "c") is None
    with pytest.raises(ValueError, match="No active round to reveal"):
        game.reveal("s", "c")


def test_cancel_round(game):
    assert not game.cancel_round("s", "c")
    game.start_round("s", "c", "host")
    game.submit_answer("s", "c", "alice", "100")
    assert game.cancel_round("s", "c")
    assert game.get_active_round("s", "c") is None
    assert game._get_all_submissions("s", "c") == []


def test_reveal_keeps_round_when_solving_fails(game):
    game.start_round("s", "c", "host")
    game.submit_answer("s", "c", "alice", "100 + 5")
    game.settings.max_tiles = 2

    with pytest.raises(ValueError, match="At most 2 numbers"):
        game.reveal("s", "c")

    assert game.get_active_round("s", "c") is not None
    assert [s.user_id for s in game._get_all_submissions("s", "c")] == ["alice"]

    game.settings.max_tiles = 6
    _, ranked, solution = game.reveal("s", "c")
    assert [s.user_id for s in ranked] == ["alice"]
    assert solution.exact
