"""
Lightweight JSON serialization/deserialization utilities.

Provides thin wrappers around the stdlib `json` module so that every JSON
string produced by the package follows one policy. This module is zero-IO.

Notes:
    - Object keys keep insertion order; the policy document layout
      (replicas, container_backup_factor, selectors, filters) is part of the
      wire contract and must not be re-sorted.
    - Compact separators unless an indent is requested; ensure_ascii=False.
"""

from __future__ import annotations

import json
from typing import Any

__all__ = [
    "json_loads",
    "json_dumps",
]


def json_loads(s: str | bytes) -> Any:
    """
    Deserialize a JSON document to Python objects using the stdlib json module.

    Args:
        s (str | bytes): JSON text (bytes are decoded as UTF-8).

    Returns:
        Any: Decoded Python object (dict, list, str, int, float, bool, or None).
    """
    return json.loads(s)


def json_dumps(obj: Any, indent: int | None = None) -> str:
    """
    Serialize an object to JSON, keeping key insertion order.

    Args:
        obj (Any): JSON-serializable object.
        indent (int | None): Pretty-print indentation; None for compact output.

    Returns:
        str: JSON string.
    """
    if indent is None:
        return json.dumps(obj, separators=(",", ":"), ensure_ascii=False)
    return json.dumps(obj, indent=indent, ensure_ascii=False)
