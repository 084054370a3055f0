"""
Countdown Numbers Game - round management and the cached solver entry point.

Players race to reach a target number using arithmetic on a set of dealt
numbers. When the round is revealed the solver's best answer is shown next to
the players' answers.
"""

import json
import logging
import random
import time
from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from config.config import GameSettings
from .expression_parser import ExpressionParser
from .solver import SolveStats, State, solve

logger = logging.getLogger(__name__)

INVALID_DISTANCE = 999999


class RoundStatus(Enum):
    """Status of a round."""
    ACTIVE = "active"
    ENDED = "ended"


@dataclass
class RoundState:
    """Represents one Numbers round in a channel."""
    target: int
    numbers: List[int]
    large_numbers: List[int]
    small_numbers: List[int]
    start_time: float
    end_time: float
    status: str
    channel_id: str
    started_by: str

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, data: str) -> 'RoundState':
        """Deserialize from JSON string."""
        return cls(**json.loads(data))

    def time_remaining(self) -> float:
        """Get seconds remaining in the round."""
        return max(0, self.end_time - time.time())

    def is_expired(self) -> bool:
        return time.time() >= self.end_time


@dataclass
class Submission:
    """Represents a player's answer submission."""
    user_id: str
    expression: str
    result: Optional[int]
    distance: int
    valid: bool
    error: Optional[str]
    submitted_at: float

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, data: str) -> 'Submission':
        return cls(**json.loads(data))


@dataclass
class SolutionRecord:
    """The solver's answer to a puzzle, in a form that can be cached."""
    tiles: List[int]
    target: int
    value: Optional[int]
    trace: str
    infix: str
    generated: int = 0
    visited: int = 0
    solved_at: float = field(default_factory=time.time)

    @property
    def exact(self) -> bool:
        return self.value == self.target

    @property
    def distance(self) -> Optional[int]:
        return None if self.value is None else abs(self.target - self.value)

    @classmethod
    def from_state(cls, state: State, tiles: Sequence[int], target: int,
                   stats: SolveStats) -> 'SolutionRecord':
        return cls(
            tiles=list(tiles),
            target=target,
            value=state.value() if state.has_value() else None,
            trace=state.trace(),
            infix=state.infix(),
            generated=stats.generated,
            visited=stats.visited,
        )

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, data: str) -> 'SolutionRecord':
        return cls(**json.loads(data))


class CountdownGame:
    """
    Game manager for the Countdown Numbers Game.

    Handles dealing rounds, answer submission, ranking and the solver reveal.
    Uses Redis for round state and for caching solved puzzles.
    """

    SUBMISSIONS_TTL = 120

    def __init__(self, redis_client, settings: Optional[GameSettings] = None):
        """
        Initialize the game manager.

        Args:
            redis_client: RedisClient instance for state persistence
            settings: Numbers round settings, defaults if omitted
        """
        self.redis = redis_client
        self.settings = settings or GameSettings()
        self.parser = ExpressionParser()

    def generate_numbers(self) -> Tuple[List[int], List[int], List[int]]:
        """
        Generate the numbers for a round.

        Returns:
            Tuple of (all_numbers, large_numbers, small_numbers)
        """
        large = random.sample(self.settings.large_numbers, self.settings.num_large)
        small = random.choices(self.settings.small_numbers, k=self.settings.num_small)  # Can repeat
        return large + small, large, small

    def generate_target(self) -> int:
        return random.randint(self.settings.target_min, self.settings.target_max)

    def _round_key(self, server_id: str, channel_id: str) -> str:
        return f"countdown:round:{server_id}:{channel_id}"

    def _submissions_key(self, server_id: str, channel_id: str) -> str:
        return f"countdown:submissions:{server_id}:{channel_id}"

    # ==================== SOLVER ====================

    def check_puzzle(self, tiles: Sequence[int]) -> None:
        """
        Reject puzzles the solver should not be asked to search.

        Raises:
            ValueError: If there are no tiles, too many, or a negative one
        """
        if not tiles:
            raise ValueError("Give at least one number to use")
        if len(tiles) > self.settings.max_tiles:
            raise ValueError(f"At most {self.settings.max_tiles} numbers are allowed")
        if any(t < 0 for t in tiles):
            raise ValueError("Numbers must not be negative")

    def solve_puzzle(self, tiles: Sequence[int], target: int) -> SolutionRecord:
        """
        Solve a puzzle, reusing a cached answer when one exists.

        Args:
            tiles: Numbers available, each usable once
            target: Target number

        Returns:
            SolutionRecord for the closest answer found

        Raises:
            ValueError: If the puzzle fails check_puzzle
        """
        self.check_puzzle(tiles)

        cached = self.redis.get_solution(tiles, target)
        if cached:
            logger.info("Solution cache hit for %s -> %d", list(tiles), target)
            return SolutionRecord.from_json(cached)

        stats = SolveStats()
        start = time.perf_counter()
        state = solve(tiles, target, stats)
        elapsed = time.perf_counter() - start
        logger.info("Solved %s -> %d in %.3fs (%d expanded, %d visited)",
                    list(tiles), target, elapsed, stats.generated, stats.visited)

        record = SolutionRecord.from_state(state, tiles, target, stats)
        self.redis.set_solution(tiles, target, record.to_json())
        return record

    # ==================== ROUNDS ====================

    def _save_round(self, server_id: str, channel_id: str, state: RoundState) -> None:
        """Save round state to Redis."""
        key = self._round_key(server_id, channel_id)
        self.redis.redis.set(key, state.to_json())
        self.redis.redis.expire(key, self.settings.round_duration + self.SUBMISSIONS_TTL)

    def get_active_round(self, server_id: str, channel_id: str) -> Optional[RoundState]:
        """
        Get the active round for a channel, if any.

        Returns:
            RoundState if an active round exists, None otherwise
        """
        data = self.redis.redis.get(self._round_key(server_id, channel_id))
        if data:
            state = RoundState.from_json(data)
            if state.status == RoundStatus.ACTIVE.value:
                return state
        return None

    def start_round(self, server_id: str, channel_id: str, started_by: str) -> RoundState:
        """
        Deal a new round in a channel.

        Raises:
            ValueError: If a round is already active in the channel
        """
        if self.get_active_round(server_id, channel_id):
            raise ValueError("A round is already active in this channel! Use `!reveal` to finish it.")

        numbers, large, small = self.generate_numbers()
        target = self.generate_target()
        now = time.time()

        state = RoundState(
            target=target,
            numbers=numbers,
            large_numbers=large,
            small_numbers=small,
            start_time=now,
            end_time=now + self.settings.round_duration,
            status=RoundStatus.ACTIVE.value,
            channel_id=channel_id,
            started_by=started_by,
        )
        self._save_round(server_id, channel_id, state)
        logger.info("Round started in %s: %s -> %d", channel_id, numbers, target)
        return state

    def _get_submission(self, server_id: str, channel_id: str,
                        user_id: str) -> Optional[Submission]:
        data = self.redis.redis.hget(self._submissions_key(server_id, channel_id), user_id)
        return Submission.from_json(data) if data else None

    def _get_all_submissions(self, server_id: str, channel_id: str) -> List[Submission]:
        all_data = self.redis.redis.hgetall(self._submissions_key(server_id, channel_id))
        return [Submission.from_json(v) for v in all_data.values()]

    def _clear_round(self, server_id: str, channel_id: str) -> None:
        self.redis.redis.delete(self._round_key(server_id, channel_id))
        self.redis.redis.delete(self._submissions_key(server_id, channel_id))

    def submit_answer(self, server_id: str, channel_id: str,
                      user_id: str, expression: str) -> Submission:
        """
        Process a player's answer submission.

        Returns:
            The Submission object with validation results

        Raises:
            ValueError: If no round active, time expired, or already submitted
        """
        state = self.get_active_round(server_id, channel_id)
        if not state:
            raise ValueError("No active round in this channel! Start one with `!countdown`")

        if state.is_expired():
            raise ValueError("Time's up! Use `!reveal` to see the results.")

        if self._get_submission(server_id, channel_id, user_id):
            raise ValueError("You already submitted an answer! Wait for results.")

        parsed = self.parser.parse_and_validate(expression, state.numbers)
        if parsed.valid:
            submission = Submission(
                user_id=user_id,
                expression=expression,
                result=parsed.result,
                distance=abs(state.target - parsed.result),
                valid=True,
                error=None,
                submitted_at=time.time(),
            )
        else:
            submission = Submission(
                user_id=user_id,
                expression=expression,
                result=None,
                distance=INVALID_DISTANCE,
                valid=False,
                error=parsed.error,
                submitted_at=time.time(),
            )

        key = self._submissions_key(server_id, channel_id)
        self.redis.redis.hset(key, user_id, submission.to_json())
        self.redis.redis.expire(key, self.settings.round_duration + self.SUBMISSIONS_TTL)
        return submission

    def determine_winners(self, submissions: List[Submission]) -> List[Submission]:
        """
        Rank valid submissions, best first.

        Smallest distance to target wins; ties go to the earlier submission.
        """
        valid_subs = [s for s in submissions if s.valid]
        return sorted(valid_subs, key=lambda s: (s.distance, s.submitted_at))

    def reveal(self, server_id: str, channel_id: str) -> Tuple[RoundState, List[Submission], SolutionRecord]:
        """
        End the round and solve it.

        Returns:
            Tuple of (RoundState, ranked valid Submissions, SolutionRecord)

        Raises:
            ValueError: If no round is active
        """
        state = self.get_active_round(server_id, channel_id)
        if not state:
            raise ValueError("No active round to reveal")

        # The round and its answers are cleared only once it has been solved
        solution = self.solve_puzzle(state.numbers, state.target)

        ranked = self.determine_winners(self._get_all_submissions(server_id, channel_id))
        self._clear_round(server_id, channel_id)
        state.status = RoundStatus.ENDED.value
        return state, ranked, solution

    def cancel_round(self, server_id: str, channel_id: str) -> bool:
        """
        Cancel an active round.

        Returns:
            True if a round was cancelled, False if none existed
        """
        if not self.get_active_round(server_id, channel_id):
            return False
        self._clear_round(server_id, channel_id)
        return True
