"""
Infix to postfix/prefix conversion.

Shunting-yard with an explicit precedence table. Function calls are tracked
per parenthesis group so each FUNCTION token leaves the converter with the
argument count of that call in ``arity``.

Prefix output is what right-to-left evaluation walks backwards. Walking a
prefix list backwards visits operands in mirrored order, so the evaluator
swaps the two operands of every binary operator and reverses function
arguments when it consumes a prefix stream.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from ..core.errors import MalformedExpressionError
from .tokenizer import Token, TokenKind


@dataclass
class _Group:
    """An open parenthesis on the operator stack."""

    is_call: bool
    commas: int = 0


def to_postfix(infix: list[Token]) -> list[Token]:
    """
    Convert an infix token list to postfix (reverse Polish) order.

    Raises:
        MalformedExpressionError: On unbalanced parentheses, empty groups or
            misplaced commas
    """
    output: list[Token] = []
    stack: list[Token] = []
    groups: list[_Group] = []
    previous: Token | None = None

    for token in infix:
        kind = token.kind

        if token.is_operand or token.is_postfix_factorial:
            output.append(token)

        elif kind is TokenKind.FUNCTION:
            stack.append(token)

        elif kind is TokenKind.LPAREN:
            is_call = previous is not None and previous.kind is TokenKind.FUNCTION
            stack.append(token)
            groups.append(_Group(is_call))

        elif kind is TokenKind.COMMA:
            if not groups or not groups[-1].is_call:
                raise MalformedExpressionError("Unexpected ','", token.pos)
            if previous is None or previous.kind in (TokenKind.LPAREN, TokenKind.COMMA):
                raise MalformedExpressionError("Missing function argument", token.pos)
            while stack[-1].kind is not TokenKind.LPAREN:
                output.append(stack.pop())
            groups[-1].commas += 1

        elif kind is TokenKind.RPAREN:
            if not groups:
                raise MalformedExpressionError("Unmatched ')'", token.pos)
            while stack[-1].kind is not TokenKind.LPAREN:
                output.append(stack.pop())
            stack.pop()
            group = groups.pop()

            if previous is not None and previous.kind is TokenKind.LPAREN:
                if not group.is_call:
                    raise MalformedExpressionError("Empty parentheses", token.pos)
                arity = 0
            elif previous is not None and previous.kind is TokenKind.COMMA:
                raise MalformedExpressionError("Missing function argument", token.pos)
            else:
                arity = group.commas + 1

            if group.is_call:
                output.append(replace(stack.pop(), arity=arity))

        elif kind is TokenKind.OPERATOR:
            while stack and stack[-1].kind is TokenKind.OPERATOR and stack[-1].precedence >= token.precedence:
                output.append(stack.pop())
            stack.append(token)

        else:
            raise MalformedExpressionError(f"Unexpected token '{token.lexeme}'", token.pos)

        previous = token

    while stack:
        token = stack.pop()
        if token.kind is TokenKind.LPAREN:
            raise MalformedExpressionError("Unmatched '('", token.pos)
        output.append(token)

    return output


def to_prefix(infix: list[Token]) -> list[Token]:
    """
    Convert an infix token list to prefix (Polish) order.

    The infix list is mirrored, converted with :func:`to_postfix`, and the
    result reversed. For plain operators mirroring is reversal with ``(`` and
    ``)`` swapped; function names stay in front of their argument group and
    postfix ``!`` stays behind its operand.
    """
    return list(reversed(to_postfix(mirror(infix))))


@dataclass
class _MirrorFrame:
    """One open group while mirroring: its opening tokens and mirrored-so-far units."""

    head: list[Token]
    units: list[list[Token]]

    def add(self, unit: list[Token]) -> None:
        self.units.append(unit)

    def flatten(self) -> list[Token]:
        return [token for unit in reversed(self.units) for token in unit]


def mirror(infix: list[Token]) -> list[Token]:
    """
    Reverse an infix token list while keeping calls and factorials well-formed.

    Groups are tracked on an explicit stack, so nesting depth is not limited
    by the interpreter's recursion limit.
    """
    frames = [_MirrorFrame([], [])]
    i = 0
    while i < len(infix):
        token = infix[i]
        frame = frames[-1]

        if token.kind is TokenKind.FUNCTION:
            if i + 1 >= len(infix) or infix[i + 1].kind is not TokenKind.LPAREN:
                raise MalformedExpressionError(f"Function '{token.lexeme}' must be followed by '('", token.pos)
            frames.append(_MirrorFrame([token, infix[i + 1]], []))
            i += 2
            continue

        if token.kind is TokenKind.LPAREN:
            frames.append(_MirrorFrame([token], []))
        elif token.kind is TokenKind.RPAREN:
            if len(frames) == 1:
                raise MalformedExpressionError("Unmatched ')'", token.pos)
            frames.pop()
            frames[-1].add([*frame.head, *frame.flatten(), token])
        elif token.is_postfix_factorial and frame.units:
            # "!" travels with the operand before it
            frame.units[-1].append(token)
        else:
            frame.add([token])
        i += 1

    if len(frames) > 1:
        raise MalformedExpressionError("Unmatched '('", frames[-1].head[-1].pos)
    return frames[0].flatten()
