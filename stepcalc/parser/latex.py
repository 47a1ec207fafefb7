"""
LaTeX normalization.

Rewrites the LaTeX subset a calculator front end produces into the plain
grammar understood by the tokenizer:

    \\frac{a}{b}             → (a)/(b)
    \\sqrt{a}, \\sqrt[n]{a}   → sqrt(a), pow(a,1/(n))
    \\cdot, \\times, \\div     → *, *, /
    \\pi, \\e, \\phi           → pi, e, phi
    x^{y}                   → x^(y)
    \\factorial{a}           → (a)!
    \\sin{x}, \\sin x         → sin(x)   (any registered function)
    \\sum_{i=a}^{b} body     → SUM(a,b,body)

Braces are matched by balanced scanning, so arguments may nest freely.
"""

from __future__ import annotations

import re
from typing import Container

from ..core.errors import MalformedExpressionError

# Commands that only affect spacing or delimiter sizing
_IGNORED_COMMANDS = {"left", "right", "displaystyle", ",", ";", ":", "!", " "}

_CONSTANT_COMMANDS = {"pi": "pi", "e": "e", "phi": "phi"}

_OPERATOR_COMMANDS = {"cdot": "*", "times": "*", "div": "/"}

_COMMAND_PATTERN = re.compile(r"[A-Za-z]+")

_ATOM_PATTERN = re.compile(
    r"\\?[A-Za-z_][A-Za-z0-9_]*|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?"
)

_SUM_INDEX_PATTERN = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.+?)\s*$")


def normalize_latex(text: str, functions: Container[str] = ()) -> str:
    """
    Rewrite LaTeX markup in ``text`` into plain calculator syntax.

    Args:
        text: Expression possibly containing LaTeX commands
        functions: Known function names, enabling ``\\fn{x}`` and ``\\fn x``

    Returns:
        The normalized expression

    Raises:
        MalformedExpressionError: On unknown commands or unbalanced braces
    """
    return _LatexNormalizer(text, functions).run()


class _LatexNormalizer:
    """Single left-to-right pass over one (sub)expression."""

    def __init__(self, text: str, functions: Container[str], offset: int = 0):
        self.text = text
        self.functions = functions
        self.offset = offset
        self.pos = 0

    def run(self) -> str:
        out: list[str] = []
        while self.pos < len(self.text):
            char = self.text[self.pos]
            if char == "\\":
                out.append(self._command())
            elif char == "^" and self._peek_nonspace(self.pos + 1) == "{":
                self.pos += 1
                body, start = self._group()
                out.append(f"^({self._nested(body, start)})")
            else:
                out.append(char)
                self.pos += 1
        return "".join(out)

    def _nested(self, text: str, start: int) -> str:
        return _LatexNormalizer(text, self.functions, self.offset + start).run()

    def _error(self, message: str, pos: int | None = None) -> MalformedExpressionError:
        return MalformedExpressionError(message, self.offset + (self.pos if pos is None else pos))

    def _peek_nonspace(self, pos: int) -> str:
        while pos < len(self.text) and self.text[pos].isspace():
            pos += 1
        return self.text[pos] if pos < len(self.text) else ""

    def _skip_spaces(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def _group(self) -> tuple[str, int]:
        """Read ``{...}`` (or a single character) and return (contents, start)."""
        self._skip_spaces()
        if self.pos >= len(self.text):
            raise self._error("Expected an argument")

        if self.text[self.pos] != "{":
            start = self.pos
            self.pos += 1
            return self.text[start], start

        start = self.pos + 1
        depth = 0
        for i in range(self.pos, len(self.text)):
            if self.text[i] == "{":
                depth += 1
            elif self.text[i] == "}":
                depth -= 1
                if depth == 0:
                    self.pos = i + 1
                    return self.text[start:i], start
        raise self._error("Unbalanced braces", self.pos)

    def _optional_bracket(self) -> tuple[str, int] | None:
        """Read an optional ``[...]`` argument."""
        self._skip_spaces()
        if self.pos >= len(self.text) or self.text[self.pos] != "[":
            return None
        end = self.text.find("]", self.pos)
        if end < 0:
            raise self._error("Unbalanced brackets")
        start = self.pos + 1
        self.pos = end + 1
        return self.text[start:end], start

    def _command(self) -> str:
        start = self.pos
        self.pos += 1
        match = _COMMAND_PATTERN.match(self.text, self.pos)
        if match:
            name = match.group()
            self.pos = match.end()
        elif self.pos < len(self.text):
            name = self.text[self.pos]
            self.pos += 1
        else:
            raise self._error("Dangling backslash", start)

        if name in _IGNORED_COMMANDS:
            return ""
        if name in _OPERATOR_COMMANDS:
            return _OPERATOR_COMMANDS[name]
        if name in _CONSTANT_COMMANDS:
            return self._separated(_CONSTANT_COMMANDS[name])
        if name == "frac":
            numerator, num_start = self._group()
            denominator, den_start = self._group()
            return f"({self._nested(numerator, num_start)})/({self._nested(denominator, den_start)})"
        if name == "sqrt":
            index = self._optional_bracket()
            radicand, rad_start = self._group()
            radicand = self._nested(radicand, rad_start)
            if index is None:
                return f"sqrt({radicand})"
            return f"pow({radicand},1/({self._nested(*index)}))"
        if name == "factorial":
            operand, op_start = self._group()
            return f"({self._nested(operand, op_start)})!"
        if name == "sum":
            return self._summation(start)
        if name.lower() in self.functions:
            return self._function(name.lower())

        raise self._error(f"Unknown LaTeX command '\\{name}'", start)

    def _separated(self, word: str) -> str:
        """Keep a substituted word from fusing with a following identifier."""
        if self.pos < len(self.text) and (self.text[self.pos].isalnum() or self.text[self.pos] == "_"):
            return word + " "
        return word

    def _function(self, name: str) -> str:
        following = self._peek_nonspace(self.pos)
        if following == "(":
            return name
        if following == "{":
            argument, arg_start = self._group()
            return f"{name}({self._nested(argument, arg_start)})"

        self._skip_spaces()
        match = _ATOM_PATTERN.match(self.text, self.pos)
        if not match:
            raise self._error(f"Function '{name}' is missing its argument")
        self.pos = match.end()
        atom = match.group().lstrip("\\")
        return f"{name}({_CONSTANT_COMMANDS.get(atom, atom)})"

    def _summation(self, start: int) -> str:
        self._skip_spaces()
        if not self.text.startswith("_", self.pos):
            raise self._error("Summation needs a lower bound '_{i=...}'", start)
        self.pos += 1
        lower, _ = self._group()
        index = _SUM_INDEX_PATTERN.match(lower)
        if not index:
            raise self._error("Summation lower bound must look like 'i=1'", start)
        if index.group(1) != "i":
            raise self._error("Summation index must be 'i'", start)

        self._skip_spaces()
        if not self.text.startswith("^", self.pos):
            raise self._error("Summation needs an upper bound '^{...}'", start)
        self.pos += 1
        upper, _ = self._group()

        body_start = self.pos
        body = self._nested(self.text[body_start:], body_start).strip()
        self.pos = len(self.text)
        if not body:
            raise self._error("Summation body is empty", start)
        return f"SUM({index.group(2)},{upper.strip()},{body})"
