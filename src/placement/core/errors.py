"""
Core exception types raised by the policy parser, validator, and JSON codec.

Provides typed exceptions for placement-policy failures:
- PolicySyntaxError for malformed policy text (carries line and column).
- InvalidNumberError for counts that do not fit in 32 unsigned bits.
- UnknownOpError / UnknownClauseError for mnemonics outside the closed enums.
- UnknownFilterError / UnknownSelectorError for dangling cross-references.
- PolicyDecodeError for JSON documents that are not valid policies.
- SchemaError for data-model invariant violations.

Notes:
    - This module uses only the Python standard library and has no side effects.
    - Every exception derives from PolicyError, itself a ValueError, so callers
      may catch the whole family at once.

Examples:
    Catch a dangling selector reference.

    >>> from placement.core.errors import PolicyError, UnknownSelectorError
    >>> try:
    ...     raise UnknownSelectorError("SPB")
    ... except PolicyError as e:
    ...     msg = str(e)
    >>> msg
    "selector not found: 'SPB'"
"""

from __future__ import annotations

__all__ = [
    "PolicyError",
    "PolicySyntaxError",
    "InvalidNumberError",
    "UnknownOpError",
    "UnknownClauseError",
    "UnknownFilterError",
    "UnknownSelectorError",
    "PolicyDecodeError",
    "SchemaError",
]


class PolicyError(ValueError):
    """Base class for every placement-policy failure."""


class PolicySyntaxError(PolicyError):
    """
    Malformed policy text.

    Attributes:
        line (int): 1-based line of the offending token.
        column (int): 0-based column of the offending token.
        msg (str): Human-readable description.
    """

    def __init__(self, line: int, column: int, msg: str) -> None:
        self.line = line
        self.column = column
        self.msg = msg
        super().__init__(f"syntax error: line {line}:{column} {msg}")


class InvalidNumberError(PolicyError):
    """A count or backup-factor literal does not fit in 32 unsigned bits."""

    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__(f"expected positive 32-bit integer, got {text!r}")


class UnknownOpError(PolicyError):
    """Operation mnemonic outside the closed Operation enum."""

    def __init__(self, mnemonic: str) -> None:
        self.mnemonic = mnemonic
        super().__init__(f"unknown operation: {mnemonic!r}")


class UnknownClauseError(PolicyError):
    """Clause mnemonic outside {SAME, DISTINCT}."""

    def __init__(self, mnemonic: str) -> None:
        self.mnemonic = mnemonic
        super().__init__(f"unknown clause: {mnemonic!r}")


class UnknownFilterError(PolicyError):
    """A selector references a filter name absent from the policy."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"filter not found: {name!r}")


class UnknownSelectorError(PolicyError):
    """A replica references a selector name absent from the policy."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"selector not found: {name!r}")


class PolicyDecodeError(PolicyError):
    """JSON input is malformed or does not have the policy document shape."""


class SchemaError(PolicyError):
    """Data-model invariant violation (e.g., composite filter without inner filters)."""
