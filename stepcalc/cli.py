"""
stepcalc - command-line step-by-step calculator.

Usage:
    stepcalc <expression> [options]

Options:
    --direction ltr|rtl     Evaluation direction (default: from settings)
    --mode MODE             normal, truncate or round
    --precision N           Decimal places or significant digits
    --significant-digits    Count precision in significant digits
    --var NAME=VALUE        Bind a variable (repeatable)
    --steps                 Print every step
    --profile FILE          Load direction, policy and variables from YAML

Example:
    stepcalc "8 - 3 - 2" --direction rtl --steps
"""

import argparse
import sys
from typing import List, Optional

import yaml

from .core.config import Settings, get_settings
from .core.errors import CalculatorError
from .core.logging import get_logger, setup_logging
from .math.formatting import ArithmeticMode
from .solver import Solver

logger = get_logger(__name__)


def _parse_binding(text: str) -> tuple[str, float]:
    name, sep, value = text.partition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got '{text}'")
    try:
        return name.strip(), float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{value}' is not a number") from None


def _non_negative_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{text}' is not an integer") from None
    if value < 0:
        raise argparse.ArgumentTypeError("precision must not be negative")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stepcalc",
        description="Evaluate an expression step by step",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  stepcalc "1 + 2 * 3 ^ 2"
  stepcalc "8 - 3 - 2" --direction rtl --steps
  stepcalc "\\frac{1}{3}" --mode round --precision 4
  stepcalc "2x + 1" --var x=4
        """
    )

    parser.add_argument('expression', help='Expression to evaluate (plain or LaTeX)')
    parser.add_argument('--direction', choices=['ltr', 'rtl', 'left_to_right', 'right_to_left'],
                        default=None, help='Evaluation direction')
    parser.add_argument('--mode', choices=[mode.value for mode in ArithmeticMode], default=None,
                        help='Arithmetic mode')
    parser.add_argument('--precision', type=_non_negative_int, default=None,
                        help='Decimal places, or significant digits with --significant-digits')
    parser.add_argument('--significant-digits', action='store_true',
                        help='Count precision in significant digits')
    parser.add_argument('--var', action='append', type=_parse_binding, default=[],
                        metavar='NAME=VALUE', help='Bind a variable (repeatable)')
    parser.add_argument('--steps', action='store_true',
                        help='Show every calculation step')
    parser.add_argument('--profile', default=None,
                        help='YAML session profile')
    return parser


def _build_solver(args: argparse.Namespace, settings: Settings) -> Solver:
    """Session from the profile (or settings), then command-line overrides."""
    solver = Solver.from_yaml(args.profile, settings) if args.profile else Solver.from_settings(settings)

    if args.direction:
        solver.set_direction(args.direction)
    if args.mode or args.precision is not None or args.significant_digits:
        solver.set_formatting_policy(
            args.mode or solver.policy.mode,
            solver.policy.precision if args.precision is None else args.precision,
            args.significant_digits or solver.policy.significant_digits,
        )
    for name, value in args.var:
        solver.bind_variable(name, value)
    return solver


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    setup_logging(settings)

    try:
        solver = _build_solver(args, settings)
    except (OSError, yaml.YAMLError, ValueError, CalculatorError) as exc:
        logger.error("Could not set up session", extra={"extra_data": {"error": str(exc)}})
        print(f"Error: {exc}")
        return 1

    logger.debug("Solving %s", args.expression)

    if args.steps:
        result = solver.solve_with_steps(args.expression)
        print(result.render())
        return 1 if result.failed else 0

    text = solver.solve_to_string(args.expression)
    print(text)
    return 1 if text.startswith("Error:") else 0


if __name__ == "__main__":
    sys.exit(main())
