"""
Shared pytest fixtures for the calculator tests.

This module provides:
- Fresh Solver, registry, environment and tokenizer instances
- A helper for evaluating expressions through the compile/evaluate pipeline
- Common formatting policies
"""

import pytest

from stepcalc.environment import Environment
from stepcalc.evaluator import Evaluator
from stepcalc.math.formatting import ArithmeticMode, FormattingPolicy
from stepcalc.math.functions import FunctionRegistry
from stepcalc.parser import Tokenizer
from stepcalc.solver import Solver


@pytest.fixture
def solver() -> Solver:
    """A fresh session with full precision, left to right."""
    return Solver()


@pytest.fixture
def registry() -> FunctionRegistry:
    return FunctionRegistry()


@pytest.fixture
def environment() -> Environment:
    return Environment()


@pytest.fixture
def tokenizer(registry) -> Tokenizer:
    return Tokenizer(registry)


@pytest.fixture
def evaluator(registry, tokenizer) -> Evaluator:
    return Evaluator(registry, tokenizer)


@pytest.fixture
def full_precision() -> FormattingPolicy:
    return FormattingPolicy()


@pytest.fixture
def evaluate(evaluator, environment, full_precision):
    """Compile and evaluate an expression in one call."""
    def _evaluate(expression, direction="left_to_right", policy=None, steps=None):
        tokens = evaluator.compile(expression, direction)
        return evaluator.evaluate(tokens, direction, environment, policy or full_precision, steps)
    return _evaluate


@pytest.fixture
def make_policy():
    """Factory for formatting policies."""
    def _factory(mode="normal", precision=10, significant_digits=False):
        return FormattingPolicy(
            mode=ArithmeticMode(mode),
            precision=precision,
            significant_digits=significant_digits,
        )
    return _factory
