"""
Solver for the Countdown Numbers Game.

Searches breadth-first over partial postfix computations. Each search node is
an immutable State holding the operand stack, the unused tiles and a link to
the state it was derived from, so siblings in the frontier share their history.
"""

import logging
import operator
from collections import deque
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)


class Operator(Enum):
    """Binary arithmetic operators, valued by their display symbol."""
    ADD = '+'
    SUBTRACT = '-'
    MULTIPLY = '*'
    DIVIDE = '/'

    @property
    def symbol(self) -> str:
        return self.value

    def apply(self, left: int, right: int) -> int:
        """Apply the operator. Divide is integer division, callers check the remainder."""
        return _OPS[self](left, right)


_OPS = {
    Operator.ADD: operator.add,
    Operator.SUBTRACT: operator.sub,
    Operator.MULTIPLY: operator.mul,
    Operator.DIVIDE: operator.floordiv,
}


@dataclass(frozen=True)
class Push:
    """Move a tile from the pool onto the stack."""
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Combine:
    """Replace the top two stack values with the operator's result."""
    operator: Operator

    def __str__(self) -> str:
        return self.operator.symbol


Operation = Union[Push, Combine]


def _combine_results(left: int, right: int) -> List[Tuple[Operator, int]]:
    # Emission order is Add, Subtract, Multiply, Divide.
    results = []
    if left <= right:
        results.append((Operator.ADD, left + right))
    if left - right >= 0:
        results.append((Operator.SUBTRACT, left - right))
    if left <= right:
        results.append((Operator.MULTIPLY, left * right))
    if right != 0 and left % right == 0:
        results.append((Operator.DIVIDE, left // right))
    return results


@dataclass(frozen=True, eq=False)
class State:
    """
    One step in building an expression.

    States are never mutated. Equality is identity: two states holding the
    same stack and pool in different branches of the tree stay distinct.
    """
    parent: Optional['State'] = field(repr=False)
    operation: Optional[Operation]
    stack: Tuple[int, ...]
    pool: Tuple[int, ...]

    @classmethod
    def root(cls, tiles: Sequence[int]) -> 'State':
        """Initial state: nothing computed yet, every tile available."""
        return cls(parent=None, operation=None, stack=(), pool=tuple(tiles))

    def has_value(self) -> bool:
        return len(self.stack) == 1

    def value(self) -> int:
        """
        The single value this state computes.

        Raises:
            ValueError: If the stack does not hold exactly one value
        """
        if not self.has_value():
            raise ValueError(f"State has no single value (stack: {list(self.stack)})")
        return self.stack[0]

    def expand(self) -> List['State']:
        """
        Generate every legal child state.

        Combine children come first (Add, Subtract, Multiply, Divide), then one
        push child per pool position in pool order. Add and Multiply require
        left <= right, Subtract requires a non-negative result and Divide an
        exact, non-zero divisor.
        """
        children = []

        if len(self.stack) >= 2:
            right = self.stack[-1]
            left = self.stack[-2]
            rest = self.stack[:-2]
            for op, result in _combine_results(left, right):
                children.append(State(
                    parent=self,
                    operation=Combine(op),
                    stack=rest + (result,),
                    pool=self.pool,
                ))

        for i, tile in enumerate(self.pool):
            children.append(State(
                parent=self,
                operation=Push(tile),
                stack=self.stack + (tile,),
                pool=self.pool[:i] + self.pool[i + 1:],
            ))

        return children

    def operations(self) -> List[Operation]:
        """Operations applied from the root to this state, in order."""
        ops = []
        node = self
        while node.parent is not None:
            ops.append(node.operation)
            node = node.parent
        ops.reverse()
        return ops

    @property
    def depth(self) -> int:
        return len(self.operations())

    def trace(self) -> str:
        """Postfix rendering, e.g. '1 2 +'. The root renders as ''."""
        return ' '.join(str(op) for op in self.operations())

    def infix(self) -> str:
        """
        Infix rendering of the computation, e.g. '(1 + 2)'.

        When the stack holds more than one value the expressions are joined
        with ', ' in stack order.
        """
        exprs: List[str] = []
        for op in self.operations():
            if isinstance(op, Push):
                exprs.append(str(op.value))
            else:
                right = exprs.pop()
                left = exprs.pop()
                exprs.append(f"({left} {op.operator.symbol} {right})")
        return ', '.join(exprs)

    def __str__(self) -> str:
        return self.trace()


@dataclass
class SolveStats:
    """Counters for a search: states generated and states visited."""
    generated: int = 0
    visited: int = 0

    @property
    def expanded(self) -> int:
        """Alias of `generated`."""
        return self.generated

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def solve(tiles: Sequence[int], target: int, stats: SolveStats) -> State:
    """
    Find the state whose value is closest to the target.

    Breadth-first over State.expand(). Returns the first exact match found;
    otherwise the first state reaching the smallest distance. With no tiles
    the root state is returned, which has no value.

    Args:
        tiles: Numbers available, each usable at most once
        target: The number to reach
        stats: Counters updated in place

    Returns:
        The best State found
    """
    logger.debug("Solving target=%d tiles=%s", target, list(tiles))

    root = State.root(tiles)
    frontier = deque([root])
    stats.generated += 1

    best_state = root
    best_value: Optional[int] = None

    while frontier:
        node = frontier.popleft()
        stats.visited += 1

        if node.has_value():
            value = node.value()
            if best_value is None or abs(value - target) < abs(best_value - target):
                best_state = node
                best_value = value
            if value == target:
                logger.debug("Exact match %s after %d visited", node, stats.visited)
                return node

        children = node.expand()
        frontier.extend(children)
        stats.generated += len(children)

    logger.debug("Search exhausted, best %s = %s", best_state, best_value)
    return best_state
