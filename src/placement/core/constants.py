"""
Placement-policy constants shared by the parser, validator, codec, and renderer.

Notes:
    - This module is zero-IO and uses only the Python standard library.
    - MAX_COUNT bounds every count and the container backup factor (uint32 on the wire).
"""

from __future__ import annotations

from typing import Final

__all__ = [
    "WILDCARD_FILTER",
    "MAX_COUNT",
    "UNSET_BACKUP_FACTOR",
    "MAX_FILTER_DEPTH",
]

# Selector filter name meaning "match every node".
WILDCARD_FILTER: Final[str] = "*"

# Largest value representable by the uint32 count fields.
MAX_COUNT: Final[int] = 2**32 - 1

# Container backup factor value meaning "not set".
UNSET_BACKUP_FACTOR: Final[int] = 0

# Deepest parenthesized group accepted inside one filter expression.
MAX_FILTER_DEPTH: Final[int] = 100
