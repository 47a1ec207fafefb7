"""Tests for LaTeX normalization."""

import pytest

from stepcalc.core.errors import MalformedExpressionError
from stepcalc.parser import normalize_latex

FUNCTIONS = {"sin", "cos", "sqrt", "ln", "log", "pow"}


def normalize(text):
    return normalize_latex(text, FUNCTIONS)


class TestCommands:
    """Individual LaTeX commands."""

    @pytest.mark.parametrize("text,expected", [
        (r"\frac{1}{4}", "(1)/(4)"),
        (r"\frac12", "(1)/(2)"),
        (r"\sqrt{16}", "sqrt(16)"),
        (r"\sqrt[3]{27}", "pow(27,1/(3))"),
        (r"2 \cdot 3", "2 * 3"),
        (r"2 \times 3", "2 * 3"),
        (r"6 \div 3", "6 / 3"),
        (r"2\pi", "2pi"),
        (r"\pi r", "pi r"),
        (r"\e^{2}", "e^(2)"),
        (r"\phi", "phi"),
        (r"x^{y+1}", "x^(y+1)"),
        (r"\factorial{3}", "(3)!"),
        (r"\left(1+2\right)", "(1+2)"),
        (r"1\,+\;2", "1+2"),
    ])
    def test_rewrite(self, text, expected):
        """Test each command maps to plain syntax."""
        assert normalize(text) == expected

    def test_plain_text_unchanged(self):
        """Test input without LaTeX passes through."""
        assert normalize("1 + 2 * (3 - x)") == "1 + 2 * (3 - x)"


class TestFunctions:
    """Function commands."""

    def test_braced_argument(self):
        """Test \\fn{x} becomes fn(x)."""
        assert normalize(r"\sin{x}") == "sin(x)"

    def test_bare_argument(self):
        """Test \\fn x becomes fn(x)."""
        assert normalize(r"\sin x + 1") == "sin(x) + 1"

    def test_constant_argument(self):
        """Test \\fn \\pi becomes fn(pi)."""
        assert normalize(r"\cos \pi") == "cos(pi)"

    def test_parenthesized_argument(self):
        """Test \\fn(x) keeps its parentheses."""
        assert normalize(r"\ln(2)") == "ln(2)"

    def test_missing_argument(self):
        """Test a function command needs an argument."""
        with pytest.raises(MalformedExpressionError):
            normalize(r"\sin")


class TestNesting:
    """Balanced-brace scanning."""

    def test_nested_fraction(self):
        """Test fractions nest inside fractions."""
        assert normalize(r"\frac{\frac{1}{2}}{3}") == "((1)/(2))/(3)"

    def test_sqrt_of_fraction(self):
        """Test commands nest inside sqrt."""
        assert normalize(r"\sqrt{\frac{1}{4}}") == "sqrt((1)/(4))"

    def test_unbalanced_braces(self):
        """Test an unclosed group is an error with a position."""
        with pytest.raises(MalformedExpressionError) as exc_info:
            normalize(r"\frac{1}{2")
        assert exc_info.value.position is not None


class TestSummation:
    """\\sum_{i=a}^{b} body."""

    def test_sum(self):
        """Test \\sum becomes the SUM macro."""
        assert normalize(r"\sum_{i=1}^{3} i^2") == "SUM(1,3,i^2)"

    def test_sum_single_character_bound(self):
        """Test an unbraced upper bound."""
        assert normalize(r"\sum_{i=1}^4 i") == "SUM(1,4,i)"

    def test_sum_body_is_normalized(self):
        """Test LaTeX inside the body is rewritten."""
        assert normalize(r"\sum_{i=1}^{3} \frac{1}{i}") == "SUM(1,3,(1)/(i))"

    def test_sum_other_index(self):
        """Test only 'i' is accepted as the index."""
        with pytest.raises(MalformedExpressionError):
            normalize(r"\sum_{k=1}^{3} k")

    def test_sum_without_body(self):
        """Test an empty body is rejected."""
        with pytest.raises(MalformedExpressionError):
            normalize(r"\sum_{i=1}^{3}")


class TestErrors:
    """Unknown markup."""

    def test_unknown_command(self):
        """Test unknown commands are reported."""
        with pytest.raises(MalformedExpressionError) as exc_info:
            normalize(r"1 + \alpha")
        assert "alpha" in exc_info.value.message
        assert exc_info.value.position == 4

    def test_dangling_backslash(self):
        """Test a trailing backslash."""
        with pytest.raises(MalformedExpressionError):
            normalize("1 + \\")
