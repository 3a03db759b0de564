"""
Core package aggregator for placement-policy contracts (grammar, schema, errors, serde).

## Contracts (single source of truth)
- Grammar — Operation/Clause enums, mnemonic tables, canonical EBNF.
- Schema — immutable pydantic models (Filter, Selector, Replica, PlacementPolicy).
- Errors — the PolicyError family raised by every other layer.
- Serde — JSON helpers with one formatting policy.
- Constants — wildcard filter name, uint32 bound, unset backup factor.

## Notes
- Zero-IO policy: stdlib + pydantic only (the EBNF file is read once at import).
- Mnemonics are uppercase and matched case-insensitively.

## Downstream usage
- placement.query — tokenizes and parses the DSL into schema models, then validates references.
- placement.codec — maps schema models to and from the JSON document shape.

## Examples
```python
from placement.core.grammar import Operation, operation_from_mnemonic
operation_from_mnemonic("and") is Operation.AND  # True

from placement.core.schema import Filter
Filter.equal("Country", "RU").operation  # Operation.EQ
```
"""
