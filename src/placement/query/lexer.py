"""
Tokenizer for the placement-policy query language.

Splits policy text into tokens following `placement/core/policy.ebnf`.
Keywords and operators are recognized case-insensitively; identifiers and
string literals keep their original spelling. Positions use a 1-based line
and a 0-based column.

Examples:
    >>> from placement.query.lexer import TokenKind, tokenize
    >>> [t.kind.name for t in tokenize("REP 3 IN spb")]
    ['KEYWORD', 'NUMBER', 'KEYWORD', 'IDENT', 'EOF']
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final

from placement.core.errors import PolicySyntaxError
from placement.core.grammar import COMPARISON_OPERATIONS, KEYWORDS, operation_mnemonic

__all__ = [
    "TokenKind",
    "Token",
    "tokenize",
]


class TokenKind(Enum):
    KEYWORD = "keyword"
    SIMPLE_OP = "simple_op"
    IDENT = "ident"
    NUMBER = "number"
    ZERO = "zero"
    STRING = "string"
    WILDCARD = "wildcard"
    LPAREN = "lparen"
    RPAREN = "rparen"
    AT = "at"
    EOF = "eof"


@dataclass(slots=True, frozen=True)
class Token:
    """A lexed token with its source position."""

    kind: TokenKind
    text: str
    line: int
    column: int

    @property
    def upper(self) -> str:
        return self.text.upper()

    def describe(self) -> str:
        if self.kind is TokenKind.EOF:
            return "<EOF>"
        return repr(self.text)


_SIMPLE_OPS: Final[frozenset[str]] = frozenset(
    operation_mnemonic(op) for op in COMPARISON_OPERATIONS
)
_PUNCTUATION: Final[dict[str, TokenKind]] = {
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "@": TokenKind.AT,
    "*": TokenKind.WILDCARD,
}
_WHITESPACE: Final[str] = " \t\r\n"


def _is_ident_start(ch: str) -> bool:
    return ch == "_" or ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def _is_ident_part(ch: str) -> bool:
    return _is_ident_start(ch) or ch.isdigit()


def tokenize(text: str) -> list[Token]:
    """
    Split policy text into tokens, terminated by an EOF token.

    Args:
        text (str): Policy source.

    Returns:
        list[Token]: Tokens in source order; the last one has kind EOF.

    Raises:
        PolicySyntaxError: On a character outside the language or an unterminated string.
    """
    tokens: list[Token] = []
    line, column = 1, 0
    i, n = 0, len(text)

    def advance(chunk: str) -> None:
        nonlocal line, column
        for ch in chunk:
            if ch == "\n":
                line += 1
                column = 0
            else:
                column += 1

    while i < n:
        ch = text[i]
        if ch in _WHITESPACE:
            advance(ch)
            i += 1
            continue

        start = i
        if ch in _PUNCTUATION:
            kind = _PUNCTUATION[ch]
            i += 1
        elif ch in ("'", '"'):
            end = text.find(ch, i + 1)
            if end < 0:
                raise PolicySyntaxError(line, column, f"unterminated string starting with {ch}")
            kind = TokenKind.STRING
            i = end + 1
        elif ch == "0":
            kind = TokenKind.ZERO
            i += 1
        elif ch.isdigit() and ch.isascii():
            while i < n and text[i].isdigit() and text[i].isascii():
                i += 1
            kind = TokenKind.NUMBER
        elif _is_ident_start(ch):
            while i < n and _is_ident_part(text[i]) and text[i].isascii():
                i += 1
            word = text[start:i].upper()
            if word in KEYWORDS:
                kind = TokenKind.KEYWORD
            elif word in _SIMPLE_OPS:
                kind = TokenKind.SIMPLE_OP
            else:
                kind = TokenKind.IDENT
        else:
            raise PolicySyntaxError(line, column, f"token recognition error at: {ch!r}")

        chunk = text[start:i]
        tokens.append(Token(kind, chunk, line, column))
        advance(chunk)

    tokens.append(Token(TokenKind.EOF, "", line, column))
    return tokens
