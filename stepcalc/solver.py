"""
Solver facade.

A Solver is one calculator session: it owns the variable environment, the
function registry, the current direction and the current formatting policy,
and exposes the operations a front end calls. Separate sessions must use
separate Solver instances.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Any, Callable, List, Optional

import yaml

from .core.config import Settings, get_settings
from .core.errors import CalculatorError
from .core.logging import get_logger
from .environment import Environment
from .evaluator import DEFAULT_MAX_SUMMATION_TERMS, Evaluator
from .math.derivatives import DEFAULT_MAX_ORDER, DEFAULT_STEP, numerical_derivative, taylor_series
from .math.formatting import NAN_TEXT, ArithmeticMode, FormattingPolicy
from .math.functions import FunctionRegistry, NumericFunction
from .models import CalculationResult, CalculationStep, Direction
from .parser import Token

logger = get_logger(__name__)

FULL_PRECISION = FormattingPolicy()


class Solver:
    """
    Step-by-step expression solver.

    Example:
        >>> solver = Solver()
        >>> solver.solve("8 - 3 - 2")
        3.0
        >>> solver.solve("8 - 3 - 2", direction="right_to_left")
        7.0
    """

    def __init__(
        self,
        direction: Direction | str = Direction.LEFT_TO_RIGHT,
        policy: Optional[FormattingPolicy] = None,
        registry: Optional[FunctionRegistry] = None,
        environment: Optional[Environment] = None,
        max_summation_terms: int = DEFAULT_MAX_SUMMATION_TERMS,
        max_derivative_order: int = DEFAULT_MAX_ORDER,
        derivative_step: float = DEFAULT_STEP,
        taylor_step: float = 1e-2,
    ):
        self.direction = Direction.parse(direction)
        self.policy = policy or FormattingPolicy()
        self.registry = registry or FunctionRegistry()
        self.environment = environment or Environment()
        self.evaluator = Evaluator(self.registry, max_summation_terms=max_summation_terms)
        self.max_derivative_order = max_derivative_order
        self.derivative_step = derivative_step
        self.taylor_step = taylor_step

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "Solver":
        """Build a session from application settings (``STEPCALC_*`` variables)."""
        settings = settings or get_settings()
        return cls(
            direction=settings.DEFAULT_DIRECTION,
            policy=FormattingPolicy(
                mode=ArithmeticMode(settings.DEFAULT_MODE),
                precision=settings.DEFAULT_PRECISION,
                significant_digits=settings.DEFAULT_SIGNIFICANT_DIGITS,
            ),
            registry=FunctionRegistry(degrade_domain_errors=settings.DEGRADE_DOMAIN_ERRORS),
            max_summation_terms=settings.MAX_SUMMATION_TERMS,
            max_derivative_order=settings.MAX_DERIVATIVE_ORDER,
            derivative_step=settings.DERIVATIVE_STEP,
            taylor_step=settings.TAYLOR_STEP,
        )

    @classmethod
    def from_yaml(cls, path: str | Path, settings: Optional[Settings] = None) -> "Solver":
        """
        Load a session profile from a YAML file.

        The profile may set ``direction``, a ``policy`` mapping (``mode``,
        ``precision``, ``significant_digits``) and a ``variables`` mapping.
        Anything it leaves out comes from the settings.

        Args:
            path: Path to YAML profile
            settings: Settings supplying defaults and limits

        Returns:
            Solver instance
        """
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        solver = cls.from_settings(settings)
        solver.apply_profile(data)
        return solver

    def apply_profile(self, data: dict[str, Any]) -> None:
        """
        Apply a profile mapping (as read by :meth:`from_yaml`) to this session.

        Raises:
            ValueError: If the profile is not a mapping or binds an invalid name
                (pydantic's ValidationError, for a bad policy, is a ValueError)
            MalformedExpressionError: On an unknown direction
        """
        if not isinstance(data, dict):
            raise ValueError(f"Profile must be a mapping, got {type(data).__name__}")
        if "direction" in data:
            self.set_direction(data["direction"])

        policy = data.get("policy") or {}
        if policy:
            self.policy = FormattingPolicy(**{**self.policy.model_dump(), **policy})

        for name, value in (data.get("variables") or {}).items():
            self.bind_variable(name, value)

        logger.debug(
            "Profile applied",
            extra={"extra_data": {"direction": self.direction.value, "policy": self.policy.description}},
        )

    # Session state

    def bind_variable(self, name: str, value: float) -> None:
        self.environment.bind(name, value)

    def unbind_variable(self, name: str) -> None:
        self.environment.unbind(name)

    def unbind_all(self) -> None:
        self.environment.clear()

    def register_function(
        self,
        name: str,
        fn: NumericFunction,
        min_args: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        """Register a host function; see :meth:`FunctionRegistry.register`."""
        self.registry.register(name, fn, min_args, **kwargs)

    def set_formatting_policy(
        self,
        mode: ArithmeticMode | str,
        precision: int = 10,
        significant_digits: bool = False,
    ) -> None:
        self.policy = FormattingPolicy(
            mode=ArithmeticMode(mode),
            precision=precision,
            significant_digits=significant_digits,
        )

    def set_direction(self, direction: Direction | str) -> None:
        self.direction = Direction.parse(direction)

    # Evaluation

    def compile(self, expression: str, direction: Direction | str | None = None) -> List[Token]:
        """Tokenize and convert ``expression`` for the given (or session) direction."""
        return self.evaluator.compile(expression, self._direction(direction))

    def solve(
        self,
        expression: str,
        direction: Direction | str | None = None,
        policy: Optional[FormattingPolicy] = None,
    ) -> float:
        """
        Evaluate an expression.

        Raises:
            CalculatorError: Any of its subclasses, on failure
        """
        direction = self._direction(direction)
        policy = policy or self.policy
        tokens = self.evaluator.compile(expression, direction)
        value = self.evaluator.evaluate(tokens, direction, self.environment, policy)

        logger.debug(
            "Expression solved",
            extra={"extra_data": {"expression": expression, "direction": direction.value, "value": value}},
        )
        return value

    def solve_with_steps(
        self,
        expression: str,
        direction: Direction | str | None = None,
        policy: Optional[FormattingPolicy] = None,
    ) -> CalculationResult:
        """
        Evaluate an expression and record every operation.

        Never raises: on failure the steps recorded so far are kept, one
        ``"Error: <message>"`` step is appended and both results are NaN.
        An unknown ``direction`` is reported the same way, against the
        session direction.
        """
        requested = direction
        direction = self.direction
        policy = policy or self.policy
        steps: List[CalculationStep] = []

        try:
            direction = self._direction(requested)
            tokens = self.evaluator.compile(expression, direction)
            formatted = self.evaluator.evaluate(tokens, direction, self.environment, policy, steps)
            actual = self._full_precision(tokens, direction, policy, formatted)
        except CalculatorError as exc:
            formatted = actual = math.nan
            steps.append(self._error_step(expression, exc.message))
        except Exception as exc:
            logger.exception("Unexpected error while solving", extra={"extra_data": {"expression": expression}})
            formatted = actual = math.nan
            steps.append(self._error_step(expression, str(exc)))

        return CalculationResult(
            original_expression=expression,
            direction=direction,
            arithmetic_mode=policy.mode.value,
            precision_info=policy.description,
            steps=steps,
            actual_result=actual,
            formatted_result=formatted,
        )

    def solve_to_string(
        self,
        expression: str,
        direction: Direction | str | None = None,
        policy: Optional[FormattingPolicy] = None,
    ) -> str:
        """Evaluate and render the result as text; errors become ``"Error: <message>"``."""
        policy = policy or self.policy
        try:
            value = self.solve(expression, direction, policy)
        except CalculatorError as exc:
            logger.error(
                "Expression failed",
                extra={"extra_data": {"expression": expression, "error": exc.message}},
            )
            return f"Error: {exc.message}"
        except Exception as exc:
            logger.exception("Unexpected error while solving", extra={"extra_data": {"expression": expression}})
            return f"Error: {exc}"

        if math.isnan(value):
            return NAN_TEXT
        return policy.format_as_text(value)

    def _full_precision(
        self,
        tokens: List[Token],
        direction: Direction,
        policy: FormattingPolicy,
        formatted: float,
    ) -> float:
        """Re-run at full precision to measure how much formatting changed the result."""
        if policy.mode is ArithmeticMode.NORMAL:
            return formatted
        try:
            return self.evaluator.evaluate(tokens, direction, self.environment, FULL_PRECISION)
        except CalculatorError:
            return math.nan

    @staticmethod
    def _error_step(expression: str, message: str) -> CalculationStep:
        logger.error("Expression failed", extra={"extra_data": {"expression": expression, "error": message}})
        return CalculationStep(expression=f"Error: {message}", result=math.nan)

    def _direction(self, direction: Direction | str | None) -> Direction:
        return self.direction if direction is None else Direction.parse(direction)

    # Calculus

    def function_of(
        self,
        expression: str,
        variable: str,
        direction: Direction | str | None = None,
    ) -> Callable[[float], float]:
        """
        Compile ``expression`` once into a function of ``variable``.

        Each call binds the variable, evaluates at full precision and restores
        whatever the variable was bound to before.
        """
        direction = self._direction(direction)
        tokens = self.evaluator.compile(expression, direction)

        def evaluate_at(value: float) -> float:
            previous = self.environment.lookup(variable)
            self.environment.bind(variable, value)
            try:
                return self.evaluator.evaluate(tokens, direction, self.environment, FULL_PRECISION)
            finally:
                if previous is None:
                    self.environment.unbind(variable)
                else:
                    self.environment.bind(variable, previous)

        return evaluate_at

    def derivative(
        self,
        expression: str,
        variable: str,
        x: float,
        order: int = 1,
        h: Optional[float] = None,
        policy: Optional[FormattingPolicy] = None,
    ) -> float:
        """Numerical derivative of ``expression`` with respect to ``variable`` at ``x``."""
        f = self.function_of(expression, variable)
        value = numerical_derivative(
            f,
            x,
            order,
            self.derivative_step if h is None else h,
            self.max_derivative_order,
        )
        return (policy or self.policy).format(value)

    def taylor_series(
        self,
        expression: str,
        variable: str,
        x0: float,
        x: float,
        terms: int,
        h: Optional[float] = None,
        policy: Optional[FormattingPolicy] = None,
    ) -> float:
        """Taylor approximation of ``expression`` around ``x0``, evaluated at ``x``."""
        f = self.function_of(expression, variable)
        return taylor_series(
            f,
            x0,
            x,
            terms,
            policy or self.policy,
            self.taylor_step if h is None else h,
            self.max_derivative_order,
        )
