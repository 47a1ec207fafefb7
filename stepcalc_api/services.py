"""
Calculator service.

Each request is served by a fresh Solver session, so variable bindings and
policies never leak between requests.
"""

from typing import List, Optional

from stepcalc.core.config import Settings, get_settings
from stepcalc.core.logging import get_context_logger
from stepcalc.math.functions import FunctionRegistry
from stepcalc.solver import Solver

from .schemas import (
    DerivativeRequest,
    ExpressionRequest,
    FunctionInfo,
    StepsResponse,
    TaylorRequest,
    TextResponse,
    ValueResponse,
    finite_or_none,
)

logger = get_context_logger(__name__, component="calculator_service")


class CalculatorService:
    """
    Service for expression evaluation.

    Wraps the Solver operations for the HTTP layer.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def session(self, request: ExpressionRequest) -> Solver:
        """Build a Solver configured from the request"""
        solver = Solver.from_settings(self.settings)
        if request.direction is not None:
            solver.set_direction(request.direction)
        if request.policy is not None:
            solver.policy = request.policy.to_policy()
        for name, value in request.variables.items():
            solver.bind_variable(name, value)
        return solver

    def _value(self, solver: Solver, expression: str, value: float) -> ValueResponse:
        return ValueResponse(
            expression=expression,
            direction=solver.direction,
            value=finite_or_none(value),
            text=solver.policy.format_as_text(value),
        )

    def solve(self, request: ExpressionRequest) -> ValueResponse:
        """
        Evaluate an expression.

        Raises:
            CalculatorError: If the expression cannot be evaluated
        """
        solver = self.session(request)
        value = solver.solve(request.expression)

        logger.info(
            "Expression solved",
            extra_data={"expression": request.expression, "direction": solver.direction.value}
        )
        return self._value(solver, request.expression, value)

    def solve_with_steps(self, request: ExpressionRequest) -> StepsResponse:
        """Evaluate with steps; failures are reported inside the response"""
        solver = self.session(request)
        result = solver.solve_with_steps(request.expression)

        logger.info(
            "Expression solved with steps",
            extra_data={
                "expression": request.expression,
                "steps": len(result.steps),
                "failed": result.failed,
            }
        )
        return StepsResponse.from_domain(result)

    def solve_to_string(self, request: ExpressionRequest) -> TextResponse:
        solver = self.session(request)
        return TextResponse(expression=request.expression, text=solver.solve_to_string(request.expression))

    def derivative(self, request: DerivativeRequest) -> ValueResponse:
        """
        Numerical derivative.

        Raises:
            CalculatorError: On evaluation failure or an out-of-range order
        """
        solver = self.session(request)
        value = solver.derivative(request.expression, request.variable, request.x, request.order, request.h)

        logger.info(
            "Derivative computed",
            extra_data={"expression": request.expression, "x": request.x, "order": request.order}
        )
        return self._value(solver, request.expression, value)

    def taylor(self, request: TaylorRequest) -> ValueResponse:
        """
        Taylor series approximation.

        Raises:
            CalculatorError: On evaluation failure or too many terms
        """
        solver = self.session(request)
        value = solver.taylor_series(request.expression, request.variable, request.x0, request.x, request.terms)

        logger.info(
            "Taylor series computed",
            extra_data={"expression": request.expression, "x0": request.x0, "terms": request.terms}
        )
        return self._value(solver, request.expression, value)

    def functions(self) -> List[FunctionInfo]:
        """List the built-in functions"""
        registry = FunctionRegistry()
        return [
            FunctionInfo(name=config.name, min_args=config.min_args, max_args=config.max_args)
            for config in sorted(registry, key=lambda config: config.name)
        ]
