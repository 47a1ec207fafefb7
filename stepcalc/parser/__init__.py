"""
Expression parsing: LaTeX normalization, tokenization and notation conversion.
"""

from .latex import normalize_latex
from .notation import mirror, to_postfix, to_prefix
from .tokenizer import (
    CONSTANTS,
    PRECEDENCE,
    Summation,
    Token,
    TokenKind,
    Tokenizer,
)

__all__ = [
    "normalize_latex",
    "mirror",
    "to_postfix",
    "to_prefix",
    "CONSTANTS",
    "PRECEDENCE",
    "Summation",
    "Token",
    "TokenKind",
    "Tokenizer",
]
