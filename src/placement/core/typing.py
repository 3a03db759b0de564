"""
Lightweight typing aliases used at the JSON serde boundary.

This module contains no runtime logic and is zero-IO.

Examples:
    >>> from placement.core.typing import JsonDict
    >>> def doc() -> JsonDict:
    ...     return {"replicas": [{"count": 1}]}
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "JsonDict",
]

# JSON-like mapping alias.
JsonDict = dict[str, Any]
