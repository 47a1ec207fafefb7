"""Tests for the arithmetic formatting policy."""

import math

import pytest
from pydantic import ValidationError

from stepcalc.math.formatting import NAN_TEXT, ArithmeticMode, FormattingPolicy, plain_number_text


SAMPLE_VALUES = [
    2.57, -2.57, 0.012345, 12345.0, 1 / 3, -2 / 3, 123.456789, 1e-9, 9.999, 0.5, 1e20, -0.0049,
]


class TestPolicyModel:
    """Pydantic model behaviour."""

    def test_defaults(self):
        """Test default policy is full precision."""
        policy = FormattingPolicy()
        assert policy.mode is ArithmeticMode.NORMAL
        assert policy.description == "full precision"

    def test_frozen(self):
        """Test policies are immutable."""
        policy = FormattingPolicy()
        with pytest.raises(ValidationError):
            policy.precision = 3

    def test_negative_precision_rejected(self):
        """Test precision must be >= 0."""
        with pytest.raises(ValidationError):
            FormattingPolicy(mode="round", precision=-1)

    def test_mode_from_string(self):
        """Test mode accepts its string value."""
        assert FormattingPolicy(mode="truncate").mode is ArithmeticMode.TRUNCATE

    @pytest.mark.parametrize("significant,expected", [
        (True, "4 significant digits"),
        (False, "4 decimal places"),
    ])
    def test_description(self, make_policy, significant, expected):
        """Test human-readable precision text."""
        assert make_policy("round", 4, significant).description == expected


class TestFormat:
    """Numeric formatting."""

    def test_normal_is_identity(self, make_policy):
        """Test Normal mode ignores precision."""
        assert make_policy("normal", 0).format(2.5678) == 2.5678

    def test_truncate_decimal_places(self, make_policy):
        """Test truncating to 1 decimal place."""
        assert make_policy("truncate", 1).format(2.57) == 2.5

    def test_round_decimal_places(self, make_policy):
        """Test rounding to 1 decimal place."""
        assert make_policy("round", 1).format(2.57) == 2.6

    def test_truncate_toward_zero(self, make_policy):
        """Test negative values truncate toward zero."""
        assert make_policy("truncate", 1).format(-2.57) == -2.5

    def test_round_half_away_from_zero(self, make_policy):
        """Test halves round away from zero."""
        policy = make_policy("round", 0)
        assert policy.format(2.5) == 3
        assert policy.format(-2.5) == -3
        assert make_policy("round", 2).format(1.005) == 1.01

    def test_round_significant_digits(self, make_policy):
        """Test rounding to 2 significant digits."""
        policy = make_policy("round", 2, True)
        assert policy.format(0.012345) == 0.012
        assert policy.format(12345) == 12000

    def test_truncate_significant_digits(self, make_policy):
        """Test truncating to 3 significant digits."""
        policy = make_policy("truncate", 3, True)
        assert policy.format(98765) == 98700
        assert policy.format(0.0098765) == 0.00987

    def test_zero(self, make_policy):
        """Test zero stays exactly zero and never negative."""
        policy = make_policy("truncate", 2, True)
        assert policy.format(0.0) == 0.0
        assert math.copysign(1.0, make_policy("truncate", 1).format(-0.04)) == 1.0

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
    def test_non_finite_pass_through(self, make_policy, value):
        """Test NaN and infinities are unchanged."""
        result = make_policy("round", 2).format(value)
        if math.isnan(value):
            assert math.isnan(result)
        else:
            assert result == value

    @pytest.mark.parametrize("mode", ["truncate", "round"])
    @pytest.mark.parametrize("precision", [0, 1, 2, 4])
    @pytest.mark.parametrize("significant", [False, True])
    def test_idempotent(self, make_policy, mode, precision, significant):
        """Test format(format(v)) == format(v)."""
        policy = make_policy(mode, precision, significant)
        for value in SAMPLE_VALUES:
            once = policy.format(value)
            assert policy.format(once) == once


class TestFormatAsText:
    """Text rendering."""

    def test_non_finite_text(self, make_policy):
        """Test NaN and infinities render verbatim."""
        policy = make_policy("round", 2)
        assert policy.format_as_text(math.nan) == NAN_TEXT
        assert policy.format_as_text(math.inf) == "Infinity"
        assert policy.format_as_text(-math.inf) == "-Infinity"

    def test_decimal_places_strip_zeros(self, make_policy):
        """Test fixed decimals drop trailing zeros and a dangling point."""
        policy = make_policy("round", 4)
        assert policy.format_as_text(2.5) == "2.5"
        assert policy.format_as_text(3.0) == "3"
        assert policy.format_as_text(1 / 3) == "0.3333"

    def test_significant_digits(self, make_policy):
        """Test shortest form at p significant digits."""
        policy = make_policy("round", 3, True)
        assert policy.format_as_text(12345) == "12300"
        assert policy.format_as_text(0.00123456) == "0.00123"
        assert policy.format_as_text(2.0) == "2"

    def test_zero_text(self, make_policy):
        """Test negative zero renders as 0."""
        assert make_policy("round", 2).format_as_text(-0.001) == "0"

    def test_normal_text(self, make_policy):
        """Test Normal mode renders the shortest repr."""
        policy = make_policy("normal")
        assert policy.format_as_text(0.1) == "0.1"
        assert policy.format_as_text(4.0) == "4"


class TestPlainNumberText:
    """Shortest rendering helper."""

    @pytest.mark.parametrize("value,expected", [
        (3.0, "3"),
        (-3.0, "-3"),
        (0.1, "0.1"),
        (-0.0, "0"),
        (1e20, "1e+20"),
        (math.inf, "Infinity"),
    ])
    def test_rendering(self, value, expected):
        """Test integral values drop '.0'."""
        assert plain_number_text(value) == expected


class TestHighPrecisionText:
    """Precisions beyond float resolution."""

    @pytest.mark.parametrize("significant", [False, True])
    def test_no_binary_noise(self, make_policy, significant):
        """Test 0.1 at 25 digits renders as 0.1."""
        policy = make_policy("round", 25, significant)
        assert policy.format(0.1) == 0.1
        assert policy.format_as_text(0.1) == "0.1"

    def test_large_value_decimal_places(self, make_policy):
        """Test large values render without exponent in decimal-place mode."""
        assert make_policy("round", 20).format_as_text(1e20) == "100000000000000000000"
