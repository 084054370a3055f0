from games.countdown import RoundState, SolutionRecord, Submission
from utils.helpers import format_results, format_round, format_solution, split_message


def make_record(value, target=110):
    return SolutionRecord(tiles=[100, 5, 5], target=target, value=value,
                          trace="5 5 + 100 +", infix="((5 + 5) + 100)",
                          generated=40, visited=30)


def test_split_message_short():
    assert split_message("hello") == ["hello"]


def test_split_message_on_lines():
    message = "\n".join(["x" * 30] * 10)
    chunks = split_message(message, max_length=100)
    assert len(chunks) == 4
    assert all(len(c) <= 100 for c in chunks)
    assert "".join(chunks).split() == message.split()


def test_format_solution_exact():
    text = format_solution(make_record(110))
    assert "**((5 + 5) + 100) = 110** (exact)" in text
    assert "RPN: `5 5 + 100 +`" in text
    assert "Stats: 40 expanded, 30 visited" in text


def test_format_solution_closest():
    assert "(10 away from 120)" in format_solution(make_record(110, target=120))


def test_format_solution_without_value():
    record = SolutionRecord(tiles=[], target=5, value=None, trace="", infix="")
    assert format_solution(record) == "No numbers to work with."


def test_format_round_and_results():
    state = RoundState(target=110, numbers=[100, 5, 5], large_numbers=[100],
                       small_numbers=[5, 5], start_time=0.0, end_time=0.0,
                       status="ended", channel_id="c", started_by="host")
    assert "Target: **110**" in format_round(state)

    ranked = [Submission("42", "100 + 5", 105, 5, True, None, 1.0)]
    text = format_results(state, ranked, make_record(110))
    assert "1. <@42>: `100 + 5` = 105 (5 away)" in text
    assert "Solver: **((5 + 5) + 100) = 110** (exact)" in text
    assert "No valid answers" in format_results(state, [], make_record(110))
