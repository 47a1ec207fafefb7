"""
stepcalc - step-by-step expression calculator.

Evaluates plain and LaTeX-flavoured expressions left to right or right to
left, under a truncating or rounding precision policy, and records every
intermediate operation.

Example:
    >>> from stepcalc import Solver
    >>> Solver().solve_to_string(r"\\frac{1}{4} + \\sqrt{16}")
    '4.25'
"""

from .core.errors import (
    CalculatorError,
    DivideByZeroError,
    DomainError,
    MalformedExpressionError,
    RangeError,
    UndefinedVariableError,
    UnknownFunctionError,
)
from .environment import Environment
from .evaluator import Evaluator
from .math import ArithmeticMode, FormattingPolicy, FunctionRegistry, numerical_derivative, taylor_series
from .models import CalculationResult, CalculationStep, Direction
from .parser import Token, TokenKind, Tokenizer, to_postfix, to_prefix
from .solver import Solver

__version__ = "1.0.0"

__all__ = [
    "CalculatorError",
    "DivideByZeroError",
    "DomainError",
    "MalformedExpressionError",
    "RangeError",
    "UndefinedVariableError",
    "UnknownFunctionError",
    "Environment",
    "Evaluator",
    "ArithmeticMode",
    "FormattingPolicy",
    "FunctionRegistry",
    "numerical_derivative",
    "taylor_series",
    "CalculationResult",
    "CalculationStep",
    "Direction",
    "Token",
    "TokenKind",
    "Tokenizer",
    "to_postfix",
    "to_prefix",
    "Solver",
]
