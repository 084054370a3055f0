"""
Command-line solver for the Numbers round.

    countdown-solve -t 952 25 50 75 100 3 6
"""

import argparse
import logging
import sys
import time
from typing import List, Optional

from dotenv import load_dotenv

from config.config import Config
from games.solver import SolveStats, solve

logger = logging.getLogger(__name__)

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='countdown-solve',
        description='Solves the Numbers round from the Countdown game show',
    )
    parser.add_argument('-t', '--target', type=int, required=True, help='Target number')
    parser.add_argument('numbers', metavar='NUMBER', type=int, nargs='+', help='Numbers to use')
    parser.add_argument('--log-level', default=None, type=str.upper, choices=LOG_LEVELS,
                        help='Logging level (defaults to LOG_LEVEL or INFO)')
    return parser


def run_solve(numbers: List[int], target: int) -> int:
    stats = SolveStats()

    print(f"Numbers: {numbers}")
    print(f"Target: {target}")

    start = time.perf_counter()
    solution = solve(numbers, target, stats)
    elapsed = time.perf_counter() - start

    print(f"Solution: {solution} = {solution.value()}")
    print(f"Elapsed: {int(elapsed * 1000)} ms")
    print(f"Stats: {stats.expanded} expanded, {stats.visited} visited")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = Config(require_discord=False)
    except ValueError as e:
        parser.error(str(e))
    if config.log_level not in LOG_LEVELS and not args.log_level:
        parser.error(f"invalid LOG_LEVEL {config.log_level!r}, choose from {', '.join(LOG_LEVELS)}")

    logging.basicConfig(
        level=args.log_level or config.log_level,
        format='%(asctime)s %(levelname)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if len(args.numbers) > config.game.max_tiles:
        parser.error(f"at most {config.game.max_tiles} numbers are allowed")
    if any(n < 0 for n in args.numbers):
        parser.error("numbers must not be negative")

    logger.debug("Loaded settings from %s", config.settings_path)
    return run_solve(args.numbers, args.target)


if __name__ == "__main__":
    sys.exit(main())
