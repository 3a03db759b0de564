"""
Canonical placement-policy grammar and enum helpers.

Defines the filter operations and selector clauses, the fixed bidirectional
mnemonic tables shared by the DSL parser, the JSON codec, and the text
renderer, and the authoritative EBNF of the query language.

Responsibilities
- Define the Operation and Clause enums with their wire numbering.
- Map enum members to and from their uppercase mnemonics (one table per enum).
- Expose the canonical EBNF text and a light production parser over it.
- Check at import time that the EBNF terminals agree with the mnemonic tables.

Design principles
-----------------
1) One spelling per member:
   - Enum member names: UPPER_SNAKE (Python constants)
   - Mnemonics (DSL keywords, JSON strings): UPPER, matched case-insensitively
   - The UNSPECIFIED member has the empty mnemonic and never appears in the DSL.

2) Same table everywhere:
   - The parser, the JSON codec, and the renderer never spell a mnemonic
     themselves; they go through `operation_from_mnemonic` / `operation_mnemonic`
     and the clause equivalents, so the text and JSON paths cannot disagree.

Examples
--------
>>> from placement.core.grammar import Operation, operation_from_mnemonic, operation_mnemonic
>>> operation_from_mnemonic("ge") is Operation.GE
True
>>> operation_mnemonic(Operation.AND)
'AND'
>>> operation_from_mnemonic("") is Operation.UNSPECIFIED
True
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Final

from .errors import UnknownClauseError, UnknownOpError

__all__ = [
    "Operation",
    "Clause",
    "COMPARISON_OPERATIONS",
    "LOGICAL_OPERATIONS",
    "KEYWORDS",
    "IDENT_KEYWORDS",
    "EBNF_GRAMMAR",
    "GrammarProduction",
    "ParsedGrammar",
    "PARSED_GRAMMAR",
    # helpers
    "is_upper_keyword",
    "operation_mnemonic",
    "operation_from_mnemonic",
    "clause_mnemonic",
    "clause_from_mnemonic",
]

# Canonical grammar file next to this module
_EBNF_PATH = Path(__file__).with_name("policy.ebnf")


def _load_ebnf_text() -> str:
    # Return the canonical EBNF text (no normalization).
    return _EBNF_PATH.read_text(encoding="utf-8")


EBNF_GRAMMAR: Final[str] = _load_ebnf_text()


# ============================================================================
# ENUMS
# ============================================================================


class Operation(Enum):
    """
    Filter operation.

    Values follow the storage network's wire numbering; the mnemonic
    (see `operation_mnemonic`) is what appears in the DSL and in JSON.

    Notes:
      - EQ, NE compare strings; GT, GE, LT, LE compare unsigned integers.
      - OR, AND combine the filter's inner filters.
      - UNSPECIFIED marks reference filters (`@name`).
    """

    UNSPECIFIED = 0
    EQ = 1
    NE = 2
    GT = 3
    GE = 4
    LT = 5
    LE = 6
    OR = 7
    AND = 8


class Clause(Enum):
    """
    Selector uniqueness mode.

    SAME co-locates the selected nodes on one attribute value; DISTINCT
    spreads them across distinct attribute values.
    """

    UNSPECIFIED = 0
    SAME = 1
    DISTINCT = 2


COMPARISON_OPERATIONS: Final[frozenset[Operation]] = frozenset(
    {Operation.EQ, Operation.NE, Operation.GT, Operation.GE, Operation.LT, Operation.LE}
)
LOGICAL_OPERATIONS: Final[frozenset[Operation]] = frozenset({Operation.OR, Operation.AND})

# Reserved words of the query language (uppercase spelling).
KEYWORDS: Final[frozenset[str]] = frozenset(
    {"REP", "IN", "AS", "CBF", "SELECT", "FROM", "FILTER", "SAME", "DISTINCT", "AND", "OR"}
)
# Keywords that may also stand where an identifier is expected.
IDENT_KEYWORDS: Final[tuple[str, ...]] = ("REP", "IN", "AS", "SELECT", "FROM", "FILTER")


# ============================================================================
# MNEMONIC TABLES
# ============================================================================

_OPERATION_TO_MNEMONIC: Final[Mapping[Operation, str]] = {
    Operation.UNSPECIFIED: "",
    Operation.EQ: "EQ",
    Operation.NE: "NE",
    Operation.GT: "GT",
    Operation.GE: "GE",
    Operation.LT: "LT",
    Operation.LE: "LE",
    Operation.OR: "OR",
    Operation.AND: "AND",
}
_MNEMONIC_TO_OPERATION: Final[Mapping[str, Operation]] = {
    v: k for k, v in _OPERATION_TO_MNEMONIC.items()
}

_CLAUSE_TO_MNEMONIC: Final[Mapping[Clause, str]] = {
    Clause.UNSPECIFIED: "",
    Clause.SAME: "SAME",
    Clause.DISTINCT: "DISTINCT",
}
_MNEMONIC_TO_CLAUSE: Final[Mapping[str, Clause]] = {v: k for k, v in _CLAUSE_TO_MNEMONIC.items()}


def operation_mnemonic(op: Operation) -> str:
    """
    Get the mnemonic for an Operation.

    Args:
      op (Operation): Operation enum.

    Returns:
      str: Uppercase mnemonic (e.g., "GE"); empty string for UNSPECIFIED.
    """
    return _OPERATION_TO_MNEMONIC[op]


def operation_from_mnemonic(s: str | None) -> Operation:
    """
    Parse an operation mnemonic into an Operation.

    Args:
      s (str | None): Mnemonic in any letter case. None or "" mean UNSPECIFIED.

    Returns:
      Operation: Parsed operation.

    Raises:
      UnknownOpError: If s is not one of EQ, NE, GT, GE, LT, LE, AND, OR.
    """
    try:
        return _MNEMONIC_TO_OPERATION[(s or "").upper()]
    except KeyError:
        raise UnknownOpError(s or "") from None


def clause_mnemonic(clause: Clause) -> str:
    """
    Get the mnemonic for a Clause.

    Args:
      clause (Clause): Clause enum.

    Returns:
      str: "SAME", "DISTINCT", or "" for UNSPECIFIED.
    """
    return _CLAUSE_TO_MNEMONIC[clause]


def clause_from_mnemonic(s: str | None) -> Clause:
    """
    Parse a clause mnemonic into a Clause.

    Args:
      s (str | None): Mnemonic in any letter case. None or "" mean UNSPECIFIED.

    Returns:
      Clause: Parsed clause.

    Raises:
      UnknownClauseError: If s is not SAME or DISTINCT.
    """
    try:
        return _MNEMONIC_TO_CLAUSE[(s or "").upper()]
    except KeyError:
        raise UnknownClauseError(s or "") from None


_UPPER_KEYWORD_RE: Final[re.Pattern[str]] = re.compile(r"^[A-Z]+$")


def is_upper_keyword(value: str) -> bool:
    """
    Check whether a string looks like an uppercase grammar keyword.

    Examples:
      >>> is_upper_keyword("SELECT")
      True
      >>> is_upper_keyword("filter_expr")
      False
    """
    return bool(_UPPER_KEYWORD_RE.match(value or ""))


# ============================================================================
# EBNF PRODUCTIONS
# ============================================================================


@dataclass(slots=True, frozen=True)
class GrammarProduction:
    """Parsed production with convenient accessors."""

    name: str
    expression: str
    alternatives: tuple[str, ...]
    leading_terminals: tuple[str, ...]

    def keyword_terminals(self) -> tuple[str, ...]:
        return tuple(token for token in self.leading_terminals if is_upper_keyword(token))


@dataclass(slots=True, frozen=True)
class ParsedGrammar:
    """Container for parsed grammar productions."""

    productions: dict[str, GrammarProduction]

    def production(self, name: str) -> GrammarProduction:
        try:
            return self.productions[name]
        except KeyError as exc:
            raise KeyError(f"Unknown grammar production: {name}") from exc

    def keyword_terminals(self, name: str) -> tuple[str, ...]:
        return self.production(name).keyword_terminals()

    @classmethod
    def from_text(cls, text: str) -> ParsedGrammar:
        stripped = _strip_ebnf_comments(text)
        productions: dict[str, GrammarProduction] = {}
        for match in _RULE_RE.finditer(stripped):
            rule_name = match.group(1)
            expression = match.group(2).strip()
            alternatives = _split_alternatives(expression)
            leading = tuple(
                literal
                for literal in (_first_literal(part) for part in alternatives)
                if literal is not None
            )
            productions[rule_name] = GrammarProduction(
                name=rule_name,
                expression=expression,
                alternatives=alternatives,
                leading_terminals=_dedupe_preserving_order(leading),
            )
        return cls(productions=productions)


_COMMENT_RE = re.compile(r"\(\*.*?\*\)", re.DOTALL)
_RULE_RE = re.compile(r"(?ms)^\s*([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*?)\s*;")
_LITERAL_RE = re.compile(r"[\"']([^\"']+)[\"']")


def _strip_ebnf_comments(text: str) -> str:
    return _COMMENT_RE.sub(" ", text)


def _split_alternatives(expression: str) -> tuple[str, ...]:
    parts: list[str] = []
    buffer: list[str] = []
    depth = 0
    quote: str | None = None
    for ch in expression:
        if quote is not None:
            buffer.append(ch)
            if ch == quote:
                quote = None
            continue
        if ch in ('"', "'"):
            quote = ch
            buffer.append(ch)
        elif ch in "([{":
            depth += 1
            buffer.append(ch)
        elif ch in ")]}":
            depth = max(0, depth - 1)
            buffer.append(ch)
        elif ch == "|" and depth == 0:
            part = "".join(buffer).strip()
            if part:
                parts.append(part)
            buffer = []
        else:
            buffer.append(ch)
    tail = "".join(buffer).strip()
    if tail:
        parts.append(tail)
    return tuple(parts)


def _first_literal(alt: str) -> str | None:
    match = _LITERAL_RE.search(alt)
    return match.group(1) if match else None


def _dedupe_preserving_order(items: Iterable[str]) -> tuple[str, ...]:
    seen: set[str] = set()
    ordered: list[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            ordered.append(item)
    return tuple(ordered)


def _assert_production_matches(
    grammar: ParsedGrammar, rule_name: str, expected: Iterable[str], what: str
) -> None:
    actual = list(grammar.keyword_terminals(rule_name))
    wanted = list(expected)
    if actual != wanted:
        issues: list[str] = []
        missing = set(wanted) - set(actual)
        extra = set(actual) - set(wanted)
        if missing:
            issues.append(f"missing {sorted(missing)}")
        if extra:
            issues.append(f"unexpected {sorted(extra)}")
        if not issues:
            issues.append("ordering differs")
        raise ValueError(
            f"Grammar production {rule_name!r} out of sync with {what}: " + "; ".join(issues)
        )


PARSED_GRAMMAR: Final[ParsedGrammar] = ParsedGrammar.from_text(EBNF_GRAMMAR)
_assert_production_matches(
    PARSED_GRAMMAR,
    "simple_op",
    (operation_mnemonic(op) for op in Operation if op in COMPARISON_OPERATIONS),
    "Operation comparison mnemonics",
)
_assert_production_matches(
    PARSED_GRAMMAR,
    "logical_op",
    (operation_mnemonic(op) for op in Operation if op in LOGICAL_OPERATIONS),
    "Operation logical mnemonics",
)
_assert_production_matches(
    PARSED_GRAMMAR,
    "clause",
    (clause_mnemonic(c) for c in Clause if c is not Clause.UNSPECIFIED),
    "Clause mnemonics",
)
_assert_production_matches(PARSED_GRAMMAR, "keyword", IDENT_KEYWORDS, "IDENT_KEYWORDS")
