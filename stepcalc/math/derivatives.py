"""
Numerical differentiation and Taylor series.

Both utilities work on plain callables ``f(x) -> float``; the solver wraps a
compiled expression in such a callable by rebinding one variable and
re-evaluating, so nothing here depends on evaluator internals.
"""

from __future__ import annotations

import math
from typing import Callable

from ..core.errors import RangeError
from .formatting import FormattingPolicy

RealFunction = Callable[[float], float]

DEFAULT_STEP = 1e-6
DEFAULT_MAX_ORDER = 10


def _check_step(h: float) -> None:
    if not h > 0:
        raise RangeError("Step size must be positive", h=h)


def _derivative_function(f: RealFunction, order: int, h: float) -> RealFunction:
    """Build the ``order``-th derivative by composing central differences."""
    if order == 0:
        return f

    inner = _derivative_function(f, order - 1, h)

    def derivative(t: float) -> float:
        return (inner(t + h) - inner(t - h)) / (2 * h)

    return derivative


def numerical_derivative(
    f: RealFunction,
    x: float,
    order: int = 1,
    h: float = DEFAULT_STEP,
    max_order: int = DEFAULT_MAX_ORDER,
) -> float:
    """
    Approximate the derivative of ``f`` at ``x``.

    Order 1 is the central difference ``(f(x+h) - f(x-h)) / 2h``. Higher
    orders differentiate the order-1 derivative function again, so order n
    costs 2**n evaluations of ``f`` and amplifies round-off by roughly
    ``1/h`` per order.

    Args:
        f: Function of one variable
        x: Point of evaluation
        order: Derivative order, 1 to ``max_order``
        h: Step size
        max_order: Upper bound on ``order``

    Returns:
        The approximated derivative

    Raises:
        RangeError: If the order or step size is out of range
    """
    if order < 1 or order > max_order:
        raise RangeError(
            f"Derivative order must be between 1 and {max_order}, got {order}",
            order=order,
            max_order=max_order,
        )
    _check_step(h)
    return _derivative_function(f, order, h)(x)


def taylor_series(
    f: RealFunction,
    x0: float,
    x: float,
    terms: int,
    policy: FormattingPolicy | None = None,
    h: float = 1e-2,
    max_order: int = DEFAULT_MAX_ORDER,
) -> float:
    """
    Approximate ``f(x)`` by its Taylor expansion around ``x0``.

    Computes ``f(x0) + sum(d_i(x0) * (x - x0)**i / i!)`` for i in
    ``1..terms-1``, with each ``d_i`` taken from :func:`numerical_derivative`.

    Args:
        f: Function of one variable
        x0: Expansion point
        x: Point to approximate
        terms: Number of series terms, at least 1
        policy: Formatting policy applied to the final value
        h: Step size for the derivatives
        max_order: Upper bound on the highest derivative order

    Raises:
        RangeError: If ``terms`` is below 1 or needs a derivative above ``max_order``
    """
    if terms < 1:
        raise RangeError(f"Taylor series needs at least 1 term, got {terms}", terms=terms)
    if terms - 1 > max_order:
        raise RangeError(
            f"Taylor series is limited to {max_order + 1} terms, got {terms}",
            terms=terms,
            max_order=max_order,
        )
    _check_step(h)

    offset = x - x0
    result = f(x0)
    power = 1.0
    for i in range(1, terms):
        power *= offset
        result += numerical_derivative(f, x0, i, h, max_order) * power / math.factorial(i)

    return policy.format(result) if policy is not None else result
