"""
Safe expression parser for Countdown answers.
Uses Python's ast module to evaluate expressions without eval(), applying the
same rules as the solver: integers only, exact division, no negative steps.
"""

import ast
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .solver import Operator


@dataclass
class ParseResult:
    """Outcome of validating a player's expression."""
    valid: bool = False
    result: Optional[int] = None
    error: Optional[str] = None
    numbers_used: List[int] = field(default_factory=list)


class ExpressionParser:
    """
    Parses and evaluates arithmetic answers.
    Only allows: +, -, *, / operators, integers, and parentheses.
    """

    # Mapping of AST operators to solver operators
    SAFE_OPERATORS = {
        ast.Add: Operator.ADD,
        ast.Sub: Operator.SUBTRACT,
        ast.Mult: Operator.MULTIPLY,
        ast.Div: Operator.DIVIDE,
    }

    # Characters allowed in expressions
    ALLOWED_CHARS = set('0123456789+-*/() ')

    def sanitize(self, expression: str) -> str:
        """Remove any characters not in the allowed set."""
        return ''.join(c for c in expression if c in self.ALLOWED_CHARS)

    def extract_numbers(self, expression: str) -> List[int]:
        """Return every integer literal in the expression, in order."""
        return [int(n) for n in re.findall(r'\d+', expression)]

    def validate_numbers(self, expression: str, available: List[int]) -> Tuple[bool, Optional[str]]:
        """
        Check if expression only uses available numbers (each once max).

        Returns:
            Tuple of (is_valid, error_message or None)
        """
        available_counter = Counter(available)
        used_counter = Counter(self.extract_numbers(expression))

        for num, count in used_counter.items():
            if num not in available_counter:
                return False, f"Number **{num}** is not available"
            if count > available_counter[num]:
                return False, f"Number **{num}** used more times than available"

        return True, None

    def _safe_eval(self, node: ast.AST) -> int:
        """
        Recursively evaluate AST node with only allowed operations.

        Raises:
            ValueError: If an unsupported operation or illegal step is encountered
        """
        if isinstance(node, ast.Expression):
            return self._safe_eval(node.body)

        if isinstance(node, ast.Constant):
            if isinstance(node.value, int) and not isinstance(node.value, bool):
                return node.value
            raise ValueError("Only whole numbers allowed")

        if isinstance(node, ast.BinOp):
            op = self.SAFE_OPERATORS.get(type(node.op))
            if op is None:
                raise ValueError(f"Operator not allowed: {type(node.op).__name__}")

            left = self._safe_eval(node.left)
            right = self._safe_eval(node.right)

            if op is Operator.DIVIDE:
                if right == 0:
                    raise ValueError("Division by zero")
                if left % right != 0:
                    raise ValueError(f"{left} / {right} is not a whole number")
            elif op is Operator.SUBTRACT and left < right:
                raise ValueError(f"{left} - {right} goes negative")

            return op.apply(left, right)

        if isinstance(node, ast.UnaryOp) and isinstance(node.op, ast.UAdd):
            return self._safe_eval(node.operand)

        raise ValueError("Invalid expression structure")

    def evaluate(self, expression: str) -> Tuple[bool, Optional[int], Optional[str]]:
        """
        Safely evaluate expression using AST parsing.

        Returns:
            Tuple of (success, result or None, error_message or None)
        """
        clean_expr = self.sanitize(expression)

        if not clean_expr.strip():
            return False, None, "Empty expression"

        try:
            tree = ast.parse(clean_expr, mode='eval')
            return True, self._safe_eval(tree), None
        except SyntaxError as e:
            return False, None, f"Invalid syntax: {e.msg}"
        except ValueError as e:
            return False, None, str(e)

    def parse_and_validate(self, expression: str, available_numbers: List[int]) -> ParseResult:
        """
        Complete validation and evaluation of an expression.

        Args:
            expression: The arithmetic expression
            available_numbers: List of numbers the player can use

        Returns:
            ParseResult with the value or the reason it was rejected
        """
        result = ParseResult()

        clean_expr = self.sanitize(expression)
        if not clean_expr.strip():
            result.error = "Empty expression"
            return result

        result.numbers_used = self.extract_numbers(clean_expr)

        is_valid, error = self.validate_numbers(clean_expr, available_numbers)
        if not is_valid:
            result.error = error
            return result

        success, value, error = self.evaluate(clean_expr)
        if not success:
            result.error = error
            return result

        result.valid = True
        result.result = value
        return result
