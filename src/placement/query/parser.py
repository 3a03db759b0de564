"""
Recursive-descent parser that compiles policy text into a PlacementPolicy.

The parser consumes the token stream from `placement.query.lexer` and builds
schema models directly, one method per grammar production. Filter
expressions are handled by one function per precedence level (OR, then AND,
then terms), so AND binds tighter than OR and both associate to the left.

Chains of one operator are flattened as they are built: composing `f1 OP f2`
reuses `f1.inner` when `f1.operation` is already OP, so
`A EQ 1 AND B EQ 2 AND C EQ 3` becomes one AND filter with three leaves. The
right operand is never merged, so explicit right-hand grouping survives.

Parsing stops at the first error. Groups nest at most MAX_FILTER_DEPTH
parentheses deep. After a successful parse the semantic validator checks
selector and replica references.

Examples:
    >>> from placement.query.parser import parse
    >>> p = parse("REP 2 IN X SELECT 2 IN City FROM * AS X")
    >>> p.replicas[0].selector, p.selectors[0].attribute
    ('X', 'City')
"""

from __future__ import annotations

import logging

from placement.core.constants import MAX_COUNT, MAX_FILTER_DEPTH, WILDCARD_FILTER
from placement.core.errors import (
    InvalidNumberError,
    PolicySyntaxError,
    UnknownClauseError,
    UnknownOpError,
)
from placement.core.grammar import (
    IDENT_KEYWORDS,
    Clause,
    Operation,
    clause_from_mnemonic,
    operation_from_mnemonic,
)
from placement.core.schema import Filter, PlacementPolicy, Replica, Selector

from .lexer import Token, TokenKind, tokenize
from .validate import validate

__all__ = [
    "parse",
    "parse_unchecked",
]

logger = logging.getLogger(__name__)


def parse(text: str) -> PlacementPolicy:
    """
    Compile policy text into a validated PlacementPolicy.

    Args:
        text (str): Policy source, e.g. "REP 3 IN X SELECT 3 FROM * AS X".

    Returns:
        PlacementPolicy: The compiled policy.

    Raises:
        PolicySyntaxError: On the first grammar violation (with line and column).
        InvalidNumberError: If a count or backup factor exceeds 32 unsigned bits.
        UnknownFilterError: If a selector references an undefined filter.
        UnknownSelectorError: If a replica references an undefined selector.
    """
    policy = parse_unchecked(text)
    validate(policy)
    return policy


def parse_unchecked(text: str) -> PlacementPolicy:
    """Compile policy text without the cross-reference validation pass."""
    policy = _PolicyParser(tokenize(text)).policy()
    logger.debug(
        "parsed policy: %d replicas, %d selectors, %d filters",
        len(policy.replicas),
        len(policy.selectors),
        len(policy.filters),
    )
    return policy


def _combine(op: Operation, f1: Filter, f2: Filter) -> Filter:
    # Left operand with the same operation is extended in place of nesting.
    if f1.operation is op:
        return Filter(operation=op, inner=[*f1.inner, f2])
    return Filter(operation=op, inner=[f1, f2])


def _unquote(token: Token) -> str:
    if token.kind is TokenKind.STRING:
        return token.text[1:-1]
    return token.text


class _PolicyParser:
    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._pos = 0
        self._depth = 0

    # Token helpers

    @property
    def _current(self) -> Token:
        return self._tokens[self._pos]

    def _next(self) -> Token:
        tok = self._tokens[self._pos]
        if tok.kind is not TokenKind.EOF:
            self._pos += 1
        return tok

    def _at_keyword(self, word: str) -> bool:
        tok = self._current
        return tok.kind is TokenKind.KEYWORD and tok.upper == word

    def _accept_keyword(self, word: str) -> bool:
        if self._at_keyword(word):
            self._next()
            return True
        return False

    def _expect_keyword(self, word: str) -> Token:
        if not self._at_keyword(word):
            raise self._error(f"'{word}'")
        return self._next()

    def _expect(self, kind: TokenKind, expected: str) -> Token:
        if self._current.kind is not kind:
            raise self._error(expected)
        return self._next()

    def _error(self, expected: str) -> PolicySyntaxError:
        tok = self._current
        if tok.kind is TokenKind.EOF:
            msg = f"missing {expected} at <EOF>"
        else:
            msg = f"mismatched input {tok.describe()} expecting {expected}"
        return PolicySyntaxError(tok.line, tok.column, msg)

    # Productions

    def policy(self) -> PlacementPolicy:
        replicas = [self._rep_stmt()]
        while self._at_keyword("REP"):
            replicas.append(self._rep_stmt())

        backup_factor = 0
        if self._at_keyword("CBF"):
            backup_factor = self._cbf_stmt()

        selectors: list[Selector] = []
        while self._at_keyword("SELECT"):
            selectors.append(self._select_stmt())

        filters: list[Filter] = []
        while self._at_keyword("FILTER"):
            filters.append(self._filter_stmt())

        if self._current.kind is not TokenKind.EOF:
            tok = self._current
            raise PolicySyntaxError(
                tok.line, tok.column, f"extraneous input {tok.describe()} expecting <EOF>"
            )

        return PlacementPolicy(
            replicas=replicas,
            container_backup_factor=backup_factor,
            selectors=selectors,
            filters=filters,
        )

    def _rep_stmt(self) -> Replica:
        self._expect_keyword("REP")
        count = self._count()
        selector = ""
        if self._accept_keyword("IN"):
            selector = self._ident()
        return Replica(count=count, selector=selector)

    def _cbf_stmt(self) -> int:
        self._expect_keyword("CBF")
        return self._count()

    def _select_stmt(self) -> Selector:
        self._expect_keyword("SELECT")
        count = self._count()

        clause = Clause.UNSPECIFIED
        attribute = ""
        if self._accept_keyword("IN"):
            if self._at_keyword("SAME") or self._at_keyword("DISTINCT"):
                clause = self._clause(self._next())
            attribute = self._ident()

        self._expect_keyword("FROM")
        if self._current.kind is TokenKind.WILDCARD:
            self._next()
            filter_name = WILDCARD_FILTER
        else:
            filter_name = self._ident("identifier or '*'")

        name = ""
        if self._accept_keyword("AS"):
            name = self._ident()

        return Selector(
            name=name, attribute=attribute, filter=filter_name, count=count, clause=clause
        )

    def _filter_stmt(self) -> Filter:
        self._expect_keyword("FILTER")
        expr = self._filter_expr()
        self._expect_keyword("AS")
        return expr.named(self._ident())

    def _filter_expr(self) -> Filter:
        left = self._and_expr()
        while self._accept_keyword("OR"):
            left = _combine(Operation.OR, left, self._and_expr())
        return left

    def _and_expr(self) -> Filter:
        left = self._term()
        while self._accept_keyword("AND"):
            left = _combine(Operation.AND, left, self._term())
        return left

    def _term(self) -> Filter:
        tok = self._current
        if tok.kind is TokenKind.LPAREN:
            if self._depth >= MAX_FILTER_DEPTH:
                raise PolicySyntaxError(tok.line, tok.column, "filter nesting too deep")
            self._next()
            self._depth += 1
            inner = self._filter_expr()
            self._depth -= 1
            self._expect(TokenKind.RPAREN, "')'")
            return inner
        if tok.kind is TokenKind.AT:
            self._next()
            return Filter(name=self._ident())

        key = self._filter_key()
        op = self._operation(self._expect(TokenKind.SIMPLE_OP, "comparison operator"))
        value = self._filter_value()
        return Filter(key=key, operation=op, value=value)

    def _filter_key(self) -> str:
        if self._current.kind is TokenKind.STRING:
            return _unquote(self._next())
        return self._ident("filter key, '(' or '@'")

    def _filter_value(self) -> str:
        tok = self._current
        if tok.kind in (TokenKind.STRING, TokenKind.NUMBER, TokenKind.ZERO):
            return _unquote(self._next())
        return self._ident("filter value")

    def _ident(self, expected: str = "identifier") -> str:
        tok = self._current
        if tok.kind is TokenKind.IDENT or (
            tok.kind is TokenKind.KEYWORD and tok.upper in IDENT_KEYWORDS
        ):
            return self._next().text
        raise self._error(expected)

    def _count(self) -> int:
        tok = self._expect(TokenKind.NUMBER, "positive number")
        # Length check first: int() refuses very long digit strings.
        if len(tok.text) > len(str(MAX_COUNT)) or int(tok.text) > MAX_COUNT:
            raise InvalidNumberError(tok.text)
        return int(tok.text)

    # Mnemonics reaching these helpers were already recognized by the lexer.

    @staticmethod
    def _operation(tok: Token) -> Operation:
        try:
            return operation_from_mnemonic(tok.text)
        except UnknownOpError as exc:
            raise AssertionError(f"BUG: invalid operation: {tok.text}") from exc

    @staticmethod
    def _clause(tok: Token) -> Clause:
        try:
            return clause_from_mnemonic(tok.text)
        except UnknownClauseError as exc:
            raise AssertionError(f"BUG: invalid clause: {tok.text}") from exc
