"""
Tokenizer for calculator expressions.

This module provides regex-based tokenization of the calculator grammar.
It handles numbers, constants, variables, operators, functions, factorials,
summations, the three parenthesis types and implicit multiplication.

LaTeX markup is normalized to the plain grammar before scanning (see
``stepcalc.parser.latex``).
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Container

from ..core.errors import MalformedExpressionError, RangeError
from .latex import normalize_latex


class TokenKind(Enum):
    """Token kinds for calculator expressions."""

    NUMBER = auto()
    VARIABLE = auto()
    OPERATOR = auto()  # + - * / ^
    FUNCTION = auto()  # Function name followed by (
    LPAREN = auto()  # ( [ {
    RPAREN = auto()  # ) ] }
    COMMA = auto()
    FACTORIAL = auto()  # fused "5!" or postfix "!"
    SUMMATION = auto()  # SUM(lower,upper,body)


# Operator precedence: additive < multiplicative < exponent < factorial/function
PRECEDENCE = {"+": 1, "-": 1, "*": 2, "/": 2, "^": 3}
FACTORIAL_PRECEDENCE = 4
FUNCTION_PRECEDENCE = 4

CONSTANTS = {
    "pi": math.pi,
    "e": math.e,
    "phi": (1 + math.sqrt(5)) / 2,
}

_CONSTANT_SYMBOLS = {"π": "pi", "φ": "phi"}

SUMMATION_KEYWORD = "SUM"
SUMMATION_VARIABLE = "i"


@dataclass(frozen=True)
class Summation:
    """Bounds and unparsed body of a ``SUM(lower,upper,body)`` macro."""

    lower: int
    upper: int
    body: str
    variable: str = SUMMATION_VARIABLE


@dataclass(frozen=True)
class Token:
    """
    Represents a single token in the expression.

    Attributes:
        kind: The token kind
        lexeme: The source text of the token
        pos: Position in the source string (for error reporting)
        value: Numeric payload of NUMBER and fused FACTORIAL tokens
        precedence: Binding strength of OPERATOR, FACTORIAL and FUNCTION tokens
        arity: Argument count of a FUNCTION call, set by the notation converter
        summation: Payload of a SUMMATION token
    """

    kind: TokenKind
    lexeme: str
    pos: int = 0
    value: float | None = None
    precedence: int = 0
    arity: int = 0
    summation: Summation | None = field(default=None, compare=False)

    @property
    def is_operand(self) -> bool:
        """True for tokens that push exactly one value without popping any."""
        if self.kind is TokenKind.FACTORIAL:
            return self.value is not None
        return self.kind in (TokenKind.NUMBER, TokenKind.VARIABLE, TokenKind.SUMMATION)

    @property
    def is_postfix_factorial(self) -> bool:
        return self.kind is TokenKind.FACTORIAL and self.value is None

    def is_operator(self, *symbols: str) -> bool:
        return self.kind is TokenKind.OPERATOR and (not symbols or self.lexeme in symbols)

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, '{self.lexeme}', pos={self.pos})"


def _is_numeral(token: Token) -> bool:
    """True for NUMBER tokens written as digits rather than a named constant."""
    return token.kind is TokenKind.NUMBER and token.lexeme[:1] in set("0123456789.")


def number_token(value: float, pos: int, lexeme: str | None = None) -> Token:
    return Token(TokenKind.NUMBER, lexeme if lexeme is not None else repr(value), pos, value=value)


def operator_token(symbol: str, pos: int) -> Token:
    return Token(TokenKind.OPERATOR, symbol, pos, precedence=PRECEDENCE[symbol])


class Tokenizer:
    """
    Tokenizes calculator expressions using regex patterns.

    The tokenizer handles:
    - Numbers (integers, decimals, scientific notation)
    - Constants (pi, e, phi, and the symbols π, φ)
    - Variables and function names (case-folded)
    - Operators, with ``**`` accepted for ``^``
    - Factorials, fused onto number literals or postfix on any operand
    - ``SUM(lower,upper,body)`` summations
    - Unary plus and minus
    - Implicit multiplication (2x, 2(3), (1)(2), 2pi)
    """

    # Regex patterns for token matching
    PATTERNS = {
        # Numbers: integer, decimal, scientific notation
        "NUMBER": r"(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?",
        # Identifiers: letter followed by letters/digits/underscores
        "IDENTIFIER": r"[A-Za-z_][A-Za-z0-9_]*",
        "SYMBOL": r"[πφ]",
        # Operators (check ** before *)
        "POWER": r"\*\*|\^",
        "OPERATOR": r"[+\-*/]",
        "FACTORIAL": r"!",
        # Delimiters
        "LPAREN": r"[(\[{]",
        "RPAREN": r"[)\]}]",
        "COMMA": r",",
        # Whitespace (to skip)
        "WHITESPACE": r"\s+",
    }

    def __init__(self, functions: Container[str] = ()):
        """
        Initialize tokenizer.

        Args:
            functions: Known function names; consulted on every call, so a
                registry passed here picks up later registrations
        """
        self.functions = functions
        self._compile_patterns()

    def _compile_patterns(self) -> None:
        """Compile regex patterns for faster matching."""
        pattern_parts = [f"(?P<{name}>{pattern})" for name, pattern in self.PATTERNS.items()]
        self.combined_pattern = re.compile("|".join(pattern_parts))

    def tokenize(self, expression: str) -> list[Token]:
        """
        Tokenize an expression.

        Args:
            expression: The expression to tokenize (plain or LaTeX)

        Returns:
            Infix list of tokens

        Raises:
            MalformedExpressionError: On invalid characters or structure
            RangeError: If a summation's lower bound exceeds its upper bound
        """
        text = normalize_latex(expression, self.functions)
        if not text.strip():
            raise MalformedExpressionError("Expression is empty")

        tokens = self._scan(text)
        tokens = self._insert_implicit_multiplication(tokens)
        return self._resolve_signs(tokens)

    def _scan(self, text: str) -> list[Token]:
        tokens: list[Token] = []
        pos = 0

        while pos < len(text):
            match = self.combined_pattern.match(text, pos)
            if not match:
                raise MalformedExpressionError(f"Unexpected character '{text[pos]}'", pos)

            kind = match.lastgroup
            lexeme = match.group()
            token_pos = pos
            pos = match.end()

            if kind == "WHITESPACE":
                continue

            if kind == "NUMBER":
                tokens.append(number_token(float(lexeme), token_pos, lexeme))
            elif kind == "SYMBOL":
                name = _CONSTANT_SYMBOLS[lexeme]
                tokens.append(number_token(CONSTANTS[name], token_pos, name))
            elif kind == "IDENTIFIER":
                if lexeme == SUMMATION_KEYWORD and self._next_char(text, pos) == "(":
                    token, pos = self._scan_summation(text, token_pos, pos)
                    tokens.append(token)
                else:
                    tokens.append(self._classify_identifier(lexeme, text, token_pos, pos))
            elif kind == "POWER":
                tokens.append(operator_token("^", token_pos))
            elif kind == "OPERATOR":
                tokens.append(operator_token(lexeme, token_pos))
            elif kind == "FACTORIAL":
                tokens.append(self._factorial(tokens, token_pos))
            else:
                tokens.append(Token(TokenKind[kind], lexeme, token_pos))

        return tokens

    @staticmethod
    def _next_char(text: str, pos: int) -> str:
        while pos < len(text) and text[pos].isspace():
            pos += 1
        return text[pos] if pos < len(text) else ""

    def _classify_identifier(self, lexeme: str, text: str, start: int, end: int) -> Token:
        name = lexeme.lower()
        if name in CONSTANTS:
            return number_token(CONSTANTS[name], start, name)
        if name in self.functions:
            if self._next_char(text, end) != "(":
                raise MalformedExpressionError(f"Function '{name}' must be followed by '('", start)
            return Token(TokenKind.FUNCTION, name, start, precedence=FUNCTION_PRECEDENCE)
        return Token(TokenKind.VARIABLE, name, start)

    @staticmethod
    def _factorial(tokens: list[Token], pos: int) -> Token:
        previous = tokens[-1] if tokens else None
        # A literal numeral absorbs the "!" into a single token
        if previous is not None and _is_numeral(previous):
            tokens.pop()
            return Token(
                TokenKind.FACTORIAL,
                previous.lexeme + "!",
                previous.pos,
                value=previous.value,
                precedence=FACTORIAL_PRECEDENCE,
            )
        return Token(TokenKind.FACTORIAL, "!", pos, precedence=FACTORIAL_PRECEDENCE)

    def _scan_summation(self, text: str, start: int, pos: int) -> tuple[Token, int]:
        """Read ``SUM(lower,upper,body)`` starting at the keyword."""
        open_pos = text.index("(", pos)
        depth = 0
        commas: list[int] = []
        for i in range(open_pos, len(text)):
            char = text[i]
            if char in "([{":
                depth += 1
            elif char in ")]}":
                depth -= 1
                if depth == 0:
                    close_pos = i
                    break
            elif char == "," and depth == 1 and len(commas) < 2:
                commas.append(i)
        else:
            raise MalformedExpressionError("Unmatched '(' in summation", open_pos)

        if len(commas) < 2:
            raise MalformedExpressionError("Summation needs lower bound, upper bound and body", start)

        lower = self._summation_bound(text[open_pos + 1:commas[0]], open_pos + 1)
        upper = self._summation_bound(text[commas[0] + 1:commas[1]], commas[0] + 1)
        body = text[commas[1] + 1:close_pos].strip()
        if len(body) >= 2 and body[0] == body[-1] and body[0] in "\"'":
            body = body[1:-1].strip()
        if not body:
            raise MalformedExpressionError("Summation body is empty", commas[1] + 1)
        if lower > upper:
            raise RangeError(
                f"Summation lower bound {lower} exceeds upper bound {upper}",
                lower=lower,
                upper=upper,
            )

        token = Token(
            TokenKind.SUMMATION,
            text[start:close_pos + 1],
            start,
            summation=Summation(lower, upper, body),
        )
        return token, close_pos + 1

    @staticmethod
    def _summation_bound(text: str, pos: int) -> int:
        try:
            return int(text.strip())
        except ValueError:
            raise MalformedExpressionError(
                f"Summation bound must be an integer, got '{text.strip()}'", pos
            ) from None

    def _insert_implicit_multiplication(self, tokens: list[Token]) -> list[Token]:
        """
        Insert implicit multiplication tokens where appropriate.

        Examples:
        - 2x → 2 * x
        - 2(3) → 2 * (3)
        - (1)(2) → (1) * (2)
        - 2pi → 2 * pi
        - 3!x → 3! * x
        """
        result: list[Token] = []

        for i, token in enumerate(tokens):
            result.append(token)
            if i == len(tokens) - 1:
                continue
            next_token = tokens[i + 1]

            ends_operand = token.is_operand or token.is_postfix_factorial or token.kind is TokenKind.RPAREN
            starts_operand = next_token.is_operand or next_token.kind in (
                TokenKind.FUNCTION,
                TokenKind.LPAREN,
            )
            # Two bare numerals ("2 3") stay an error rather than a product
            both_numbers = _is_numeral(token) and _is_numeral(next_token)

            if ends_operand and starts_operand and not both_numbers:
                result.append(operator_token("*", next_token.pos))

        return result

    def _resolve_signs(self, tokens: list[Token]) -> list[Token]:
        """
        Rewrite unary plus and minus into binary form.

        A sign at the start, after ``(`` or after ``,`` becomes ``0 -`` (plus
        is dropped). A sign right after a binary operator wraps the following
        operand, including its ``^`` and ``!`` suffixes, as ``(0 - operand)``.
        """
        result: list[Token] = []
        i = 0
        while i < len(tokens):
            token = tokens[i]
            if not token.is_operator("+", "-"):
                result.append(token)
                i += 1
                continue

            previous = result[-1] if result else None
            if previous is None or previous.kind in (TokenKind.LPAREN, TokenKind.COMMA):
                if token.lexeme == "-":
                    result.append(number_token(0.0, token.pos, "0"))
                    result.append(token)
                i += 1
            elif previous.kind is TokenKind.OPERATOR:
                operand, i = self._signed_operand(tokens, i)
                result.extend(operand)
            else:
                result.append(token)
                i += 1
        return result

    def _signed_operand(self, tokens: list[Token], i: int) -> tuple[list[Token], int]:
        sign = tokens[i]
        negative = False
        while i < len(tokens) and tokens[i].is_operator("+", "-"):
            negative ^= tokens[i].lexeme == "-"
            i += 1

        end = self._operand_end(tokens, i, sign.pos)
        operand = self._resolve_signs(tokens[i:end])
        if not negative:
            return operand, end

        wrapped = [
            Token(TokenKind.LPAREN, "(", sign.pos),
            number_token(0.0, sign.pos, "0"),
            operator_token("-", sign.pos),
            *operand,
            Token(TokenKind.RPAREN, ")", sign.pos),
        ]
        return wrapped, end

    def _operand_end(self, tokens: list[Token], i: int, pos: int) -> int:
        """Index just past a primary and its trailing ``!`` and ``^`` chain."""
        i = self._primary_end(tokens, i, pos)
        while i < len(tokens):
            if tokens[i].is_postfix_factorial:
                i += 1
            elif tokens[i].is_operator("^"):
                i += 1
                while i < len(tokens) and tokens[i].is_operator("+", "-"):
                    i += 1
                i = self._primary_end(tokens, i, tokens[i - 1].pos)
            else:
                break
        return i

    @staticmethod
    def _primary_end(tokens: list[Token], i: int, pos: int) -> int:
        if i >= len(tokens):
            raise MalformedExpressionError("Expected an operand", pos)

        token = tokens[i]
        if token.is_operand:
            return i + 1
        if token.kind is TokenKind.FUNCTION:
            i += 1
        if i >= len(tokens) or tokens[i].kind is not TokenKind.LPAREN:
            raise MalformedExpressionError("Expected an operand", token.pos)

        depth = 0
        for j in range(i, len(tokens)):
            if tokens[j].kind is TokenKind.LPAREN:
                depth += 1
            elif tokens[j].kind is TokenKind.RPAREN:
                depth -= 1
                if depth == 0:
                    return j + 1
        raise MalformedExpressionError("Unmatched '('", tokens[i].pos)
