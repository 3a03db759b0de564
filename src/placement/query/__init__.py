"""
placement.query — the policy query language front end.

## Responsibilities
- Tokenize policy text (lexer) following placement/core/policy.ebnf.
- Parse tokens into PlacementPolicy models with operator precedence and chain flattening (parser).
- Check selector/replica cross-references after parsing (validate).
- Render a policy back into query text (render).

## Import DAG discipline
- Depends only on stdlib and placement.core.*.

## Examples
```python
from placement.query import parse, to_text

policy = parse('''
REP 1 IN SPB
SELECT 1 IN City FROM SPBSSD AS SPB
FILTER City EQ "SPB" AND SSD EQ true OR City EQ "SPB" AND Rating GE 5 AS SPBSSD
''')
policy.filters[0].operation  # Operation.OR
print(to_text(policy))
```
"""

from __future__ import annotations

from .parser import parse, parse_unchecked
from .render import to_text
from .validate import validate

__all__ = [
    "parse",
    "parse_unchecked",
    "to_text",
    "validate",
]
