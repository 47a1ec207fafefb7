"""Tests for infix to postfix/prefix conversion."""

import pytest

from stepcalc.core.errors import MalformedExpressionError
from stepcalc.parser import TokenKind, mirror, to_postfix, to_prefix


def postfix(tokenizer, text):
    return [t.lexeme for t in to_postfix(tokenizer.tokenize(text))]


def prefix(tokenizer, text):
    return [t.lexeme for t in to_prefix(tokenizer.tokenize(text))]


class TestToPostfix:
    """Shunting-yard conversion."""

    @pytest.mark.parametrize("text,expected", [
        ("1 + 2", ["1", "2", "+"]),
        ("1 + 2 * 3", ["1", "2", "3", "*", "+"]),
        ("(1 + 2) * 3", ["1", "2", "+", "3", "*"]),
        ("8 - 3 - 2", ["8", "3", "-", "2", "-"]),
        ("2 ^ 3 ^ 2", ["2", "3", "^", "2", "^"]),
        ("1 + 2 * 3 ^ 2", ["1", "2", "3", "2", "^", "*", "+"]),
    ])
    def test_operators(self, tokenizer, text, expected):
        """Test precedence and left-associative tie-breaks."""
        assert postfix(tokenizer, text) == expected

    def test_function_arity(self, tokenizer):
        """Test function calls carry their argument count."""
        tokens = to_postfix(tokenizer.tokenize("max(1, 2 + 3, 4)"))
        assert [t.lexeme for t in tokens] == ["1", "2", "3", "+", "4", "max"]
        assert tokens[-1].arity == 3

    def test_nested_functions(self, tokenizer):
        """Test each call gets its own arity."""
        tokens = to_postfix(tokenizer.tokenize("pow(sqrt(16), 2)"))
        functions = {t.lexeme: t.arity for t in tokens if t.kind is TokenKind.FUNCTION}
        assert functions == {"sqrt": 1, "pow": 2}

    def test_postfix_factorial_follows_operand(self, tokenizer):
        """Test '!' goes straight to output after its operand."""
        assert postfix(tokenizer, "(1+2)! * 2") == ["1", "2", "+", "!", "2", "*"]

    def test_operands_pass_through(self, tokenizer):
        """Test factorial and summation tokens are operands."""
        tokens = to_postfix(tokenizer.tokenize("5! + SUM(1,2,i)"))
        assert [t.kind for t in tokens] == [TokenKind.FACTORIAL, TokenKind.SUMMATION, TokenKind.OPERATOR]

    @pytest.mark.parametrize("text", ["(1 + 2", "1 + 2)", "()", "(1, 2)", "max(1,)", "max(,1)", ")("])
    def test_malformed(self, tokenizer, text):
        """Test unbalanced parentheses, empty groups and stray commas."""
        with pytest.raises(MalformedExpressionError):
            to_postfix(tokenizer.tokenize(text))


class TestToPrefix:
    """Prefix conversion by mirroring."""

    def test_simple(self, tokenizer):
        """Test plain operators match reverse/swap/postfix/reverse."""
        assert prefix(tokenizer, "1 + 2 * 3") == ["+", "1", "*", "2", "3"]

    def test_right_to_left_grouping(self, tokenizer):
        """Test '8 - 3 - 2' groups as 8 - (3 - 2)."""
        assert prefix(tokenizer, "8 - 3 - 2") == ["-", "8", "-", "3", "2"]

    def test_parentheses(self, tokenizer):
        """Test parentheses still override grouping."""
        assert prefix(tokenizer, "(8 - 3) - 2") == ["-", "-", "8", "3", "2"]

    def test_function_stays_before_arguments(self, tokenizer):
        """Test function tokens precede their (mirrored) arguments."""
        tokens = to_prefix(tokenizer.tokenize("pow(2, 3)"))
        assert [t.lexeme for t in tokens] == ["pow", "2", "3"]
        assert tokens[0].arity == 2

    def test_factorial_stays_with_operand(self, tokenizer):
        """Test postfix '!' stays attached to its operand."""
        assert prefix(tokenizer, "2 * (1+2)!") == ["*", "2", "!", "+", "1", "2"]


class TestMirror:
    """Infix mirroring."""

    def test_mirror_reverses_operands(self, tokenizer):
        """Test operators and operands come out reversed."""
        assert [t.lexeme for t in mirror(tokenizer.tokenize("1 - 2 / 3"))] == ["3", "/", "2", "-", "1"]

    def test_mirror_keeps_groups_well_formed(self, tokenizer):
        """Test groups keep '(' before ')' and reverse their contents."""
        tokens = mirror(tokenizer.tokenize("(1 - 2) * max(3, 4)"))
        assert [t.lexeme for t in tokens] == ["max", "(", "4", ",", "3", ")", "*", "(", "2", "-", "1", ")"]

    def test_mirror_deep_nesting(self, tokenizer):
        """Test nesting deeper than the recursion limit mirrors correctly."""
        depth = 3000
        tokens = mirror(tokenizer.tokenize("(" * depth + "1 - 2" + ")" * depth))
        lexemes = [t.lexeme for t in tokens]
        assert lexemes == ["("] * depth + ["2", "-", "1"] + [")"] * depth

    def test_mirror_factorial_after_group(self, tokenizer):
        """Test '!' after a closing parenthesis stays with that group."""
        tokens = mirror(tokenizer.tokenize("2 - (1 + 2)!"))
        assert [t.lexeme for t in tokens] == ["(", "2", "+", "1", ")", "!", "-", "2"]

    @pytest.mark.parametrize("text", ["(1 + 2", "1 + 2)", "max(1, (2)"])
    def test_mirror_unbalanced(self, tokenizer, text):
        """Test unbalanced groups are reported while mirroring."""
        with pytest.raises(MalformedExpressionError):
            mirror(tokenizer.tokenize(text))
