"""
Stack-machine evaluator.

Consumes postfix (left-to-right) or prefix (right-to-left) token lists and
reduces them to a single number, recording one CalculationStep per
primitive operation. Every value pushed onto the stack goes through the
FormattingPolicy first, so precision loss compounds the way it would on a
calculator that only keeps ``precision`` digits.
"""

from __future__ import annotations

import math
from typing import List, NamedTuple, Optional

from .core.errors import DivideByZeroError, DomainError, MalformedExpressionError, RangeError
from .core.logging import get_logger
from .environment import Environment
from .math.formatting import FormattingPolicy
from .math.functions import FunctionRegistry
from .models import CalculationStep, Direction
from .parser import Token, TokenKind, Tokenizer, to_postfix, to_prefix

logger = get_logger(__name__)

DEFAULT_MAX_SUMMATION_TERMS = 1_000_000


class _Operand(NamedTuple):
    """A stack entry: the value and how it is shown in step text."""

    value: float
    text: str


def apply_operator(symbol: str, left: float, right: float) -> float:
    """
    Apply a binary operator.

    Raises:
        DivideByZeroError: For ``x / 0`` and ``0 ^ negative``
        DomainError: For a negative base with a fractional exponent
    """
    if symbol == "+":
        return left + right
    if symbol == "-":
        return left - right
    if symbol == "*":
        return left * right
    if symbol == "/":
        if right == 0:
            raise DivideByZeroError()
        return left / right
    if symbol == "^":
        return _power(left, right)
    raise MalformedExpressionError(f"Unknown operator '{symbol}'")


def _power(base: float, exponent: float) -> float:
    if base < 0 and math.isfinite(exponent) and not exponent.is_integer():
        raise DomainError("Cannot raise a negative number to a fractional power", "^")
    if base == 0 and exponent < 0:
        raise DivideByZeroError("Cannot raise zero to a negative power")
    try:
        return math.pow(base, exponent)
    except OverflowError:
        odd = exponent.is_integer() and exponent % 2 == 1
        return -math.inf if base < 0 and odd else math.inf


class Evaluator:
    """
    Evaluates compiled token lists against an environment.

    Attributes:
        registry: Function registry used for FUNCTION and factorial tokens
        tokenizer: Tokenizer used to compile expressions and summation bodies
        max_summation_terms: Largest number of terms one summation may have
    """

    def __init__(
        self,
        registry: FunctionRegistry,
        tokenizer: Optional[Tokenizer] = None,
        max_summation_terms: int = DEFAULT_MAX_SUMMATION_TERMS,
    ):
        self.registry = registry
        self.tokenizer = tokenizer or Tokenizer(registry)
        self.max_summation_terms = max_summation_terms

    def compile(self, expression: str, direction: Direction | str = Direction.LEFT_TO_RIGHT) -> List[Token]:
        """
        Tokenize ``expression`` and convert it to the order ``direction`` evaluates.

        Raises:
            MalformedExpressionError: On invalid input, including nesting
                (LaTeX groups, signed operands) too deep to normalize
        """
        direction = Direction.parse(direction)
        try:
            infix = self.tokenizer.tokenize(expression)
        except RecursionError:
            raise MalformedExpressionError("Expression nested too deeply") from None
        if direction is Direction.RIGHT_TO_LEFT:
            return to_prefix(infix)
        return to_postfix(infix)

    def evaluate(
        self,
        tokens: List[Token],
        direction: Direction | str,
        environment: Environment,
        policy: FormattingPolicy,
        steps: Optional[List[CalculationStep]] = None,
    ) -> float:
        """
        Reduce a postfix or prefix token list to one value.

        Args:
            tokens: Postfix tokens (left to right) or prefix tokens (right to left)
            direction: Which of the two orders ``tokens`` is in
            environment: Variable bindings
            policy: Formatting applied to every intermediate value
            steps: If given, one CalculationStep is appended per operation

        Returns:
            The formatted result

        Raises:
            MalformedExpressionError: If the stream does not reduce to exactly one value
            UndefinedVariableError: On an unbound variable
            UnknownFunctionError: On an unregistered function
            DomainError: On arguments outside a function's domain
            DivideByZeroError: On division by zero
            RangeError: On summations exceeding ``max_summation_terms``
        """
        direction = Direction.parse(direction)
        if not tokens:
            raise MalformedExpressionError("Expression is empty")

        # A prefix list walked backwards is the postfix form of the mirrored expression
        mirrored = direction is Direction.RIGHT_TO_LEFT
        stack: List[_Operand] = []

        for token in (reversed(tokens) if mirrored else tokens):
            kind = token.kind

            if kind is TokenKind.NUMBER:
                stack.append(_Operand(policy.format(token.value), token.lexeme))

            elif kind is TokenKind.VARIABLE:
                stack.append(_Operand(policy.format(environment.get(token.lexeme)), token.lexeme))

            elif kind is TokenKind.FACTORIAL:
                if token.value is not None:
                    operand = _Operand(token.value, token.lexeme[:-1])
                else:
                    operand = self._pop(stack, token)
                value = self.registry.evaluate("factorial", [operand.value], policy)
                self._push(stack, steps, policy, f"{operand.text}!", value)

            elif kind is TokenKind.SUMMATION:
                value = self._summation(token, direction, environment, policy, steps)
                stack.append(_Operand(value, f"({policy.format_as_text(value)})"))

            elif kind is TokenKind.FUNCTION:
                if len(stack) < token.arity:
                    raise MalformedExpressionError(f"Missing arguments for '{token.lexeme}'", token.pos)
                args = stack[len(stack) - token.arity:] if token.arity else []
                del stack[len(stack) - token.arity:]
                if mirrored:
                    args.reverse()
                value = self.registry.evaluate(token.lexeme, [arg.value for arg in args], policy)
                text = f"{token.lexeme}({', '.join(arg.text for arg in args)})"
                self._push(stack, steps, policy, text, value)

            elif kind is TokenKind.OPERATOR:
                right = self._pop(stack, token)
                left = self._pop(stack, token)
                if mirrored:
                    left, right = right, left
                value = policy.format(apply_operator(token.lexeme, left.value, right.value))
                self._push(stack, steps, policy, f"{left.text} {token.lexeme} {right.text}", value)

            else:
                raise MalformedExpressionError(f"Unexpected token '{token.lexeme}'", token.pos)

        if len(stack) != 1:
            raise MalformedExpressionError(
                f"Expression did not reduce to a single value ({len(stack)} left)"
            )
        return stack[0].value

    @staticmethod
    def _pop(stack: List[_Operand], token: Token) -> _Operand:
        if not stack:
            raise MalformedExpressionError(f"Missing operand for '{token.lexeme}'", token.pos)
        return stack.pop()

    @staticmethod
    def _push(
        stack: List[_Operand],
        steps: Optional[List[CalculationStep]],
        policy: FormattingPolicy,
        text: str,
        value: float,
    ) -> None:
        if steps is not None:
            steps.append(CalculationStep(expression=text, result=value))
        stack.append(_Operand(value, policy.format_as_text(value)))

    def _summation(
        self,
        token: Token,
        direction: Direction,
        environment: Environment,
        policy: FormattingPolicy,
        steps: Optional[List[CalculationStep]],
    ) -> float:
        """Evaluate ``SUM(lower,upper,body)`` term by term with the index bound to ``i``."""
        summation = token.summation
        if summation is None:
            raise MalformedExpressionError("Summation token has no payload", token.pos)

        lower, upper = summation.lower, summation.upper
        if lower > upper:
            raise RangeError(
                f"Summation lower bound {lower} exceeds upper bound {upper}",
                lower=lower,
                upper=upper,
            )
        count = upper - lower + 1
        if count > self.max_summation_terms:
            raise RangeError(
                f"Summation has {count} terms, more than the limit of {self.max_summation_terms}",
                terms=count,
                limit=self.max_summation_terms,
            )

        ascending = direction is Direction.LEFT_TO_RIGHT
        indices = range(lower, upper + 1) if ascending else range(upper, lower - 1, -1)
        previous = environment.lookup(summation.variable)
        total = 0.0

        try:
            for index in indices:
                environment.bind(summation.variable, index)
                body = self.compile(summation.body, direction)
                term = policy.format(self.evaluate(body, direction, environment, policy))

                before = total
                total = policy.format(total + term)

                bounds = f"{{{lower}}}^{{{index}}}" if ascending else f"{{{index}}}^{{{upper}}}"
                text = (
                    f"Sum_{bounds} {summation.body} = "
                    f"{policy.format_as_text(before)} + {policy.format_as_text(term)}"
                )
                if steps is not None:
                    steps.append(CalculationStep(expression=text, result=total))
        finally:
            if previous is None:
                environment.unbind(summation.variable)
            else:
                environment.bind(summation.variable, previous)

        logger.debug(
            "Summation evaluated",
            extra={"extra_data": {"body": summation.body, "terms": count, "total": total}},
        )
        return total
