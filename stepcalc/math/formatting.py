"""
Arithmetic formatting policy.

A FormattingPolicy simulates a precision-limited calculator: the evaluator
passes every intermediate value through ``format`` so that truncation or
rounding compounds exactly as it would on a device showing a fixed number of
digits.

Scaling is done on the shortest decimal representation of the float
(``repr``) so that values which are already representable at the requested
precision are left untouched, which keeps ``format`` idempotent.
"""

from __future__ import annotations

import math
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, localcontext
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ArithmeticMode(str, Enum):
    """How intermediate values are reduced to the configured precision."""

    NORMAL = "normal"  # full float precision
    TRUNCATE = "truncate"  # drop digits toward zero
    ROUND = "round"  # round half away from zero


NAN_TEXT = "Error: Not a number"


def plain_number_text(value: float) -> str:
    """
    Render a float in its shortest form, without a trailing ``.0``.

    Examples: 3.0 → "3", 0.1 → "0.1", 1e+20 → "1e+20"
    """
    if math.isnan(value):
        return NAN_TEXT
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


class FormattingPolicy(BaseModel):
    """
    Immutable arithmetic formatting settings.

    Attributes:
        mode: Normal, Truncate or Round
        precision: Number of decimal places or significant digits
        significant_digits: Whether precision counts significant digits

    ``precision`` is ignored entirely in Normal mode, and a significant-digit
    precision of 0 behaves as 1.
    """

    model_config = ConfigDict(frozen=True)

    mode: ArithmeticMode = ArithmeticMode.NORMAL
    precision: int = Field(default=10, ge=0)
    significant_digits: bool = False

    @property
    def description(self) -> str:
        """Human-readable precision setting, e.g. "4 significant digits"."""
        if self.mode is ArithmeticMode.NORMAL:
            return "full precision"
        unit = "significant digits" if self.significant_digits else "decimal places"
        return f"{self.precision} {unit}"

    def format(self, value: float) -> float:
        """
        Reduce a value to the configured precision.

        NaN and infinities pass through unchanged.

        Args:
            value: The number to format

        Returns:
            The truncated or rounded number
        """
        value = float(value)
        if math.isnan(value) or math.isinf(value):
            return value
        if self.mode is ArithmeticMode.NORMAL:
            return value
        if value == 0:
            return 0.0

        decimal_value = Decimal(repr(value))
        if self.significant_digits:
            # magnitude = floor(log10(|v|)) + 1, read exactly off the decimal form
            magnitude = decimal_value.adjusted() + 1
            exponent = magnitude - max(self.precision, 1)
        else:
            exponent = -self.precision

        rounding = ROUND_DOWN if self.mode is ArithmeticMode.TRUNCATE else ROUND_HALF_UP
        with localcontext() as ctx:
            ctx.prec = max(ctx.prec, decimal_value.adjusted() - exponent + 3)
            reduced = decimal_value.quantize(Decimal(1).scaleb(exponent), rounding=rounding)

        # + 0.0 folds -0.0 into 0.0
        return float(reduced) + 0.0

    def format_as_text(self, value: float) -> str:
        """
        Render a value for display.

        Significant-digit mode gives the shortest form at ``precision`` digits;
        decimal-place mode gives fixed decimals with trailing zeros removed.
        """
        value = float(value)
        if math.isnan(value) or math.isinf(value) or self.mode is ArithmeticMode.NORMAL:
            return plain_number_text(value)

        value = self.format(value)
        # The formatted value's shortest repr already has at most ``precision``
        # digits; reading it as a Decimal avoids printing binary expansion noise
        exact = Decimal(repr(value))
        if self.significant_digits and not -7 < exact.adjusted() < 16:
            text = f"{value:.{min(max(self.precision, 1), 17)}g}"
        else:
            text = f"{exact.normalize():f}"

        if float(text) == 0:
            return "0"
        return text
