"""
Request and response models for the HTTP API.

Non-finite numbers cannot be written as JSON, so every numeric result is
returned as ``null`` when it is NaN or infinite, next to its text rendering.
"""

import math
import re
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from stepcalc.core.errors import MalformedExpressionError
from stepcalc.math.formatting import ArithmeticMode, FormattingPolicy
from stepcalc.models import CalculationResult, CalculationStep, Direction

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def finite_or_none(value: float) -> Optional[float]:
    """Map NaN and infinities to None for JSON output"""
    return value if math.isfinite(value) else None


class PolicySchema(BaseModel):
    """Arithmetic formatting policy"""
    mode: ArithmeticMode = ArithmeticMode.NORMAL
    precision: int = Field(10, ge=0, description="Decimal places or significant digits")
    significant_digits: bool = False

    def to_policy(self) -> FormattingPolicy:
        return FormattingPolicy(
            mode=self.mode,
            precision=self.precision,
            significant_digits=self.significant_digits,
        )


class ExpressionRequest(BaseModel):
    """Expression to evaluate in a fresh session"""
    expression: str = Field(..., min_length=1, max_length=10000, description="Plain or LaTeX expression")
    direction: Optional[Direction] = Field(None, description="left_to_right (ltr) or right_to_left (rtl)")
    policy: Optional[PolicySchema] = None
    variables: Dict[str, float] = Field(default_factory=dict, description="Variable bindings")

    @field_validator("direction", mode="before")
    @classmethod
    def parse_direction(cls, v):
        """Accept the ltr/rtl short forms"""
        if v is None:
            return v
        try:
            return Direction.parse(v)
        except MalformedExpressionError as exc:
            raise ValueError(exc.message) from None

    @field_validator("variables")
    @classmethod
    def check_variable_names(cls, v):
        """Variable names must be identifiers"""
        for name in v:
            if not _IDENTIFIER.match(name):
                raise ValueError(f"Invalid variable name: {name!r}")
        return v


class DerivativeRequest(ExpressionRequest):
    """Numerical derivative request"""
    variable: str = Field("x", pattern=_IDENTIFIER.pattern, description="Variable to differentiate by")
    x: float = Field(..., description="Point of evaluation")
    order: int = Field(1, ge=1)
    h: Optional[float] = Field(None, gt=0, description="Step size")


class TaylorRequest(ExpressionRequest):
    """Taylor series request"""
    variable: str = Field("x", pattern=_IDENTIFIER.pattern, description="Expansion variable")
    x0: float = Field(..., description="Expansion point")
    x: float = Field(..., description="Point to approximate")
    terms: int = Field(..., ge=1)


class ValueResponse(BaseModel):
    """Single numeric result"""
    expression: str
    direction: Direction
    value: Optional[float]
    text: str


class TextResponse(BaseModel):
    """Result rendered as text (never an error status)"""
    expression: str
    text: str


class StepResponse(BaseModel):
    """One calculation step"""
    expression: str
    result: Optional[float]
    text: str

    @classmethod
    def from_domain(cls, step: CalculationStep) -> "StepResponse":
        """Convert domain model to response"""
        return cls(
            expression=step.expression,
            result=finite_or_none(step.result),
            text=str(step),
        )


class StepsResponse(BaseModel):
    """Step-by-step derivation"""
    original_expression: str
    direction: Direction
    arithmetic_mode: str
    precision_info: str
    steps: List[StepResponse]
    actual_result: Optional[float]
    formatted_result: Optional[float]
    error: Optional[float]
    report: str

    @classmethod
    def from_domain(cls, result: CalculationResult) -> "StepsResponse":
        """Convert domain model to response"""
        return cls(
            original_expression=result.original_expression,
            direction=result.direction,
            arithmetic_mode=result.arithmetic_mode,
            precision_info=result.precision_info,
            steps=[StepResponse.from_domain(step) for step in result.steps],
            actual_result=finite_or_none(result.actual_result),
            formatted_result=finite_or_none(result.formatted_result),
            error=finite_or_none(result.error),
            report=result.render(),
        )


class FunctionInfo(BaseModel):
    """Registered function"""
    name: str
    min_args: int
    max_args: Optional[int] = Field(None, description="None means variadic")
