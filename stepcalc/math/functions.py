"""
Numeric function registry.

Maps case-insensitive names to pure numeric callables. The registry is seeded
with the calculator's built-in functions and is extensible by the host; every
result is passed through the active FormattingPolicy before being returned.
"""

from __future__ import annotations

import inspect
import math
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any, Callable, Iterator

from ..core.errors import (
    DivideByZeroError,
    DomainError,
    MalformedExpressionError,
    UnknownFunctionError,
)
from ..core.logging import get_logger
from .formatting import FormattingPolicy

logger = get_logger(__name__)

NumericFunction = Callable[..., float]

_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_UNSET = object()

# Factorials above this overflow a float
_MAX_FINITE_FACTORIAL = 170


@dataclass
class FunctionConfig:
    """Configuration for a function."""

    name: str
    evaluator: NumericFunction
    min_args: int = 1
    max_args: int | None = 1  # None means unlimited

    def accepts(self, count: int) -> bool:
        """Check whether the function can be called with ``count`` arguments."""
        if count < self.min_args:
            return False
        return self.max_args is None or count <= self.max_args

    def arity_text(self) -> str:
        if self.max_args is None:
            return f"at least {self.min_args}"
        if self.min_args == self.max_args:
            return str(self.min_args)
        return f"{self.min_args} to {self.max_args}"


def _require_integer(value: float, function: str) -> int:
    if not math.isfinite(value) or value != math.floor(value):
        raise DomainError(f"{function} is only defined for integers", function)
    return int(value)


def factorial(n: float) -> float:
    """
    Product 1·2·…·n for a non-negative integer n.

    Raises:
        DomainError: If n is negative or not an integer
    """
    if not math.isfinite(n) or n < 0 or n != math.floor(n):
        raise DomainError("Factorial is only defined for non-negative integers", "factorial")
    if n > _MAX_FINITE_FACTORIAL:
        return math.inf
    result = 1.0
    for i in range(2, int(n) + 1):
        result *= i
    return result


def _sqrt(x: float) -> float:
    if x < 0:
        raise DomainError("Square root is not defined for negative numbers", "sqrt")
    return math.sqrt(x)


def _cbrt(x: float) -> float:
    return math.copysign(abs(x) ** (1.0 / 3.0), x)


def _ln(x: float) -> float:
    if x <= 0:
        raise DomainError("Logarithm is only defined for positive numbers", "ln")
    return math.log(x)


def _log(x: float, base: float | None = None) -> float:
    if x <= 0:
        raise DomainError("Logarithm is only defined for positive numbers", "log")
    if base is None:
        return math.log10(x)
    if base <= 0 or base == 1:
        raise DomainError("Logarithm base must be positive and different from 1", "log")
    return math.log(x) / math.log(base)


def _round(x: float, digits: float = 0) -> float:
    places = _require_integer(digits, "round")
    if not math.isfinite(x):
        return x
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, Decimal(repr(x)).adjusted() + abs(places) + 3)
        rounded = Decimal(repr(x)).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    return float(rounded) + 0.0


def _avg(*args: float) -> float:
    return sum(args) / len(args)


def _gcd(*args: float) -> float:
    result = abs(_require_integer(args[0], "gcd"))
    for arg in args[1:]:
        result = math.gcd(result, _require_integer(arg, "gcd"))
    return float(result)


def _lcm(*args: float) -> float:
    result = abs(_require_integer(args[0], "lcm"))
    for arg in args[1:]:
        value = abs(_require_integer(arg, "lcm"))
        result = 0 if result == 0 or value == 0 else result * value // math.gcd(result, value)
    return float(result)


def _infer_arity(fn: NumericFunction) -> tuple[int, int | None]:
    """Derive (min_args, max_args) from a callable's signature."""
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return 1, None

    min_args = 0
    max_args: int | None = 0
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            max_args = None
        elif param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            if max_args is not None:
                max_args += 1
            if param.default is inspect.Parameter.empty:
                min_args += 1
    return min_args, max_args


class FunctionRegistry:
    """
    Case-insensitive registry of numeric functions.

    The registry is additive: functions can be registered or replaced but not
    removed. With ``degrade_domain_errors`` enabled, a DomainError is logged
    as a warning and the call yields 0 instead of raising.
    """

    def __init__(self, degrade_domain_errors: bool = False, builtins: bool = True):
        self.degrade_domain_errors = degrade_domain_errors
        self._functions: dict[str, FunctionConfig] = {}
        if builtins:
            self._register_builtins()

    def register(
        self,
        name: str,
        fn: NumericFunction,
        min_args: int | None = None,
        max_args: Any = _UNSET,
    ) -> None:
        """
        Register (or replace) a function.

        Args:
            name: Function name, an identifier; stored case-folded
            fn: Callable taking the arguments positionally
            min_args: Minimum argument count (inferred from ``fn`` if omitted)
            max_args: Maximum argument count, None for variadic
                (inferred from ``fn`` if omitted)
        """
        if not name or not _NAME_PATTERN.match(name):
            raise ValueError(f"Invalid function name: {name!r}")
        if not callable(fn):
            raise TypeError(f"Function '{name}' implementation is not callable")

        inferred_min, inferred_max = _infer_arity(fn)
        config = FunctionConfig(
            name=name.lower(),
            evaluator=fn,
            min_args=inferred_min if min_args is None else min_args,
            max_args=inferred_max if max_args is _UNSET else max_args,
        )
        self._functions[config.name] = config

    def get(self, name: str) -> FunctionConfig:
        """Look up a function configuration by name."""
        try:
            return self._functions[name.lower()]
        except KeyError:
            raise UnknownFunctionError(name) from None

    def evaluate(self, name: str, args: list[float], policy: FormattingPolicy | None = None) -> float:
        """
        Call a registered function and format its result.

        Args:
            name: Function name (any case)
            args: Positional numeric arguments
            policy: Formatting policy applied to the result

        Returns:
            The formatted result

        Raises:
            UnknownFunctionError: If the function is not registered
            MalformedExpressionError: If the argument count is wrong
            DomainError: If an argument is outside the function's domain
            DivideByZeroError: If the function divides by zero
        """
        config = self.get(name)
        if not config.accepts(len(args)):
            raise MalformedExpressionError(
                f"Function '{config.name}' expects {config.arity_text()} argument(s), got {len(args)}"
            )

        try:
            result = float(config.evaluator(*args))
        except DomainError as exc:
            result = self._degrade(config.name, exc)
        except ZeroDivisionError:
            raise DivideByZeroError(f"Division by zero in {config.name}") from None
        except OverflowError:
            result = math.inf
        except ValueError as exc:
            result = self._degrade(config.name, DomainError(f"{config.name}: {exc}", config.name))

        return policy.format(result) if policy is not None else result

    def _degrade(self, name: str, error: DomainError) -> float:
        if not self.degrade_domain_errors:
            raise error
        logger.warning(
            "Domain error degraded to zero",
            extra={"extra_data": {"function": name, "error": error.message}},
        )
        return 0.0

    @property
    def names(self) -> list[str]:
        """Sorted registered function names."""
        return sorted(self._functions)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._functions

    def __iter__(self) -> Iterator[FunctionConfig]:
        return iter(self._functions.values())

    def __len__(self) -> int:
        return len(self._functions)

    def _register_builtins(self) -> None:
        # Basic arithmetic and algebra
        self.register("abs", abs, 1, 1)
        self.register("sqrt", _sqrt, 1, 1)
        self.register("cbrt", _cbrt, 1, 1)
        self.register("pow", math.pow, 2, 2)
        self.register("exp", math.exp, 1, 1)
        self.register("ln", _ln, 1, 1)
        self.register("log", _log, 1, 2)

        # Trigonometric functions
        self.register("sin", math.sin, 1, 1)
        self.register("cos", math.cos, 1, 1)
        self.register("tan", math.tan, 1, 1)
        self.register("asin", math.asin, 1, 1)
        self.register("acos", math.acos, 1, 1)
        self.register("atan", math.atan, 1, 1)
        self.register("atan2", math.atan2, 2, 2)

        # Hyperbolic functions
        self.register("sinh", math.sinh, 1, 1)
        self.register("cosh", math.cosh, 1, 1)
        self.register("tanh", math.tanh, 1, 1)

        # Rounding functions
        self.register("floor", math.floor, 1, 1)
        self.register("ceil", math.ceil, 1, 1)
        self.register("round", _round, 1, 2)
        self.register("trunc", math.trunc, 1, 1)

        # Statistics functions
        self.register("min", min, 1, None)
        self.register("max", max, 1, None)
        self.register("sum", lambda *args: math.fsum(args), 1, None)
        self.register("avg", _avg, 1, None)

        # Integer functions
        self.register("factorial", factorial, 1, 1)
        self.register("gcd", _gcd, 1, None)
        self.register("lcm", _lcm, 1, None)
