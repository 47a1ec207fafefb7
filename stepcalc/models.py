"""
Result models for step-by-step evaluation.

These are the objects a display collaborator receives: one CalculationStep
per primitive operation, gathered into a CalculationResult per call.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import List

from pydantic import BaseModel, Field

from .core.errors import MalformedExpressionError
from .math.formatting import plain_number_text


class Direction(str, Enum):
    """Associativity order used to group operators"""
    LEFT_TO_RIGHT = "left_to_right"
    RIGHT_TO_LEFT = "right_to_left"

    @classmethod
    def parse(cls, value: "Direction | str") -> "Direction":
        """Accept enum members, their values, or the short forms ``ltr``/``rtl``."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "_")
        aliases = {"ltr": cls.LEFT_TO_RIGHT, "rtl": cls.RIGHT_TO_LEFT}
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            raise MalformedExpressionError(
                f"Unknown direction '{value}'; expected left_to_right, right_to_left, ltr or rtl"
            ) from None

    @property
    def label(self) -> str:
        return "Left to right" if self is Direction.LEFT_TO_RIGHT else "Right to left"


class CalculationStep(BaseModel):
    """One primitive operation and its (formatted) result"""
    expression: str = Field(..., description="Operation text, e.g. '8 - 3'")
    result: float

    def __str__(self) -> str:
        if math.isnan(self.result):
            return self.expression
        return f"{self.expression} = {plain_number_text(self.result)}"


class CalculationResult(BaseModel):
    """Full derivation of one expression"""
    original_expression: str
    direction: Direction = Direction.LEFT_TO_RIGHT
    arithmetic_mode: str = "normal"
    precision_info: str = "full precision"
    steps: List[CalculationStep] = Field(default_factory=list)
    actual_result: float = math.nan
    formatted_result: float = math.nan

    @property
    def error(self) -> float:
        """Absolute difference between the formatted and full-precision results"""
        return abs(self.formatted_result - self.actual_result)

    @property
    def failed(self) -> bool:
        return math.isnan(self.formatted_result)

    def render(self) -> str:
        """Plain-text report listing every step."""
        mode = self.arithmetic_mode.capitalize()
        lines = [
            f"Solving   : {self.original_expression}",
            f"Mode      : {mode}",
            f"Precision : {self.precision_info}",
            f"Direction : {self.direction.label}",
            "Start Calculation",
        ]
        lines.extend(f"* Step {i}: {step}" for i, step in enumerate(self.steps, start=1))
        lines.append("End Calculation")
        lines.append("")
        lines.append(f"Result: {plain_number_text(self.formatted_result)}")
        lines.append(f"Actual Result: {plain_number_text(self.actual_result)}")
        lines.append(f"Error: {plain_number_text(self.error)}")
        return "\n".join(lines)
