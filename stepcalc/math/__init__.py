"""Numeric building blocks: formatting policy, function registry, derivatives"""

from .formatting import NAN_TEXT, ArithmeticMode, FormattingPolicy, plain_number_text
from .functions import FunctionConfig, FunctionRegistry, factorial
from .derivatives import numerical_derivative, taylor_series

__all__ = [
    "NAN_TEXT",
    "ArithmeticMode",
    "FormattingPolicy",
    "plain_number_text",
    "FunctionConfig",
    "FunctionRegistry",
    "factorial",
    "numerical_derivative",
    "taylor_series",
]
