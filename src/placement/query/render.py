"""
Render a PlacementPolicy back into the policy query language.

One statement per line, in the order REP, CBF, SELECT, FILTER. Filter
expressions are parenthesized only where the parser would otherwise build a
different tree: an OR group under an AND, and a group nested under a parent
with the same operation. Keys and values that are not plain identifiers or
numbers are quoted.

For every policy produced by `parse`, `parse(to_text(p)) == p`.

Examples:
    >>> from placement.query.parser import parse
    >>> from placement.query.render import to_text
    >>> print(to_text(parse("rep 1 select 1 from f filter (a eq 1 or b eq 2) and c eq 3 as f")))
    REP 1
    SELECT 1 FROM f
    FILTER (a EQ 1 OR b EQ 2) AND c EQ 3 AS f
"""

from __future__ import annotations

import re
from typing import Final

from placement.core.constants import UNSET_BACKUP_FACTOR
from placement.core.grammar import (
    COMPARISON_OPERATIONS,
    KEYWORDS,
    Operation,
    clause_mnemonic,
    operation_mnemonic,
)
from placement.core.schema import Filter, PlacementPolicy, Selector

__all__ = ["to_text"]

_IDENT_RE: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_NUMBER_RE: Final[re.Pattern[str]] = re.compile(r"^(0|[1-9][0-9]*)$")
_RESERVED: Final[frozenset[str]] = KEYWORDS | frozenset(
    operation_mnemonic(op) for op in COMPARISON_OPERATIONS
)


def to_text(policy: PlacementPolicy) -> str:
    """
    Render a policy as query-language text.

    Args:
        policy (PlacementPolicy): Policy to render.

    Returns:
        str: Newline-separated statements (no trailing newline).
    """
    lines: list[str] = []
    for replica in policy.replicas:
        if replica.selector:
            lines.append(f"REP {replica.count} IN {replica.selector}")
        else:
            lines.append(f"REP {replica.count}")

    if policy.container_backup_factor != UNSET_BACKUP_FACTOR:
        lines.append(f"CBF {policy.container_backup_factor}")

    lines.extend(_selector(s) for s in policy.selectors)

    for f in policy.filters:
        lines.append(f"FILTER {_expr(f, None)} AS {f.name}")

    return "\n".join(lines)


def _selector(s: Selector) -> str:
    out = f"SELECT {s.count}"
    if s.attribute:
        clause = clause_mnemonic(s.clause)
        out += f" IN {clause + ' ' if clause else ''}{s.attribute}"
    if s.filter:
        out += f" FROM {s.filter}"
    if s.name:
        out += f" AS {s.name}"
    return out


def _expr(f: Filter, parent: Operation | None) -> str:
    if f.is_composite:
        sep = f" {operation_mnemonic(f.operation)} "
        body = sep.join(_expr(child, f.operation) for child in f.inner)
        if parent is not None and (
            parent is f.operation or (parent is Operation.AND and f.operation is Operation.OR)
        ):
            return f"({body})"
        return body
    if f.operation in COMPARISON_OPERATIONS:
        return f"{_quote(f.key, False)} {operation_mnemonic(f.operation)} {_quote(f.value, True)}"
    return f"@{f.name}"


def _quote(s: str, allow_number: bool) -> str:
    if _IDENT_RE.match(s) and s.upper() not in _RESERVED:
        return s
    if allow_number and _NUMBER_RE.match(s):
        return s
    if '"' in s:
        return f"'{s}'"
    return f'"{s}"'
