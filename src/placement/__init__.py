"""
placement — placement-policy compiler for a content-addressed storage network.

Turns policy text such as

    REP 3 IN X
    CBF 2
    SELECT 2 IN SAME City FROM Good AS X
    FILTER Country EQ "RU" AND Rating GE 5 AS Good

into an immutable, validated `PlacementPolicy`, and converts policies to and
from their JSON document form.

## Public API
- parse(text) — compile and validate policy text.
- validate(policy) — check selector/replica cross-references.
- to_text(policy) — render a policy as policy text.
- to_json(policy) / from_json(data) — JSON codec (decoding does not validate references).
- Filter, Selector, Replica, PlacementPolicy, Operation, Clause — data model.
- PolicyError and subclasses — error taxonomy.

## Layers
- placement.core — grammar, schema, errors, serde (zero-IO).
- placement.query — lexer, parser, validator, renderer.
- placement.codec — JSON codec.
- placement.config / placement.cli — command-line front end.
"""

from __future__ import annotations

from .codec import from_json, to_json
from .core.errors import (
    InvalidNumberError,
    PolicyDecodeError,
    PolicyError,
    PolicySyntaxError,
    SchemaError,
    UnknownClauseError,
    UnknownFilterError,
    UnknownOpError,
    UnknownSelectorError,
)
from .core.grammar import Clause, Operation
from .core.schema import Filter, PlacementPolicy, Replica, Selector
from .query import parse, to_text, validate

__all__ = [
    "parse",
    "validate",
    "to_text",
    "to_json",
    "from_json",
    "Filter",
    "Selector",
    "Replica",
    "PlacementPolicy",
    "Operation",
    "Clause",
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
