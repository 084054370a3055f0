# Games package for Discord bot
from .solver import Operator, Push, Combine, State, SolveStats, solve
from .expression_parser import ExpressionParser, ParseResult
from .countdown import CountdownGame, RoundState, Submission, SolutionRecord

__all__ = [
    'Operator', 'Push', 'Combine', 'State', 'SolveStats', 'solve',
    'ExpressionParser', 'ParseResult',
    'CountdownGame', 'RoundState', 'Submission', 'SolutionRecord',
]
