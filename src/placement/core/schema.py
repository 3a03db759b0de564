"""
Pydantic v2 models for the placement-policy data model: filters, selectors,
replicas, and the policy itself.

Responsibilities
- Define the canonical immutable models produced by the DSL parser and the JSON codec.
- Enforce the structural filter invariants (composite iff AND/OR; comparisons carry a key).
- Bound every count to the uint32 range used on the wire.
- Offer small builder helpers for hand-assembled policies.

Style
- Zero-IO (stdlib + pydantic only).
- Models are frozen; build a changed copy with `model_copy(update=...)` or `Filter.named`.

References
- grammar: placement/core/grammar.py (Operation, Clause, mnemonic tables)
- errors: placement/core/errors.py (SchemaError)
- tests: tests/core/test_schema_*.py
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .constants import MAX_COUNT, UNSET_BACKUP_FACTOR
from .errors import SchemaError
from .grammar import COMPARISON_OPERATIONS, LOGICAL_OPERATIONS, Clause, Operation

__all__ = [
    "Uint32",
    "Filter",
    "Selector",
    "Replica",
    "PlacementPolicy",
]

Uint32 = Annotated[int, Field(ge=0, le=MAX_COUNT)]


class Filter(BaseModel):
    """
    Named or anonymous predicate over node attributes.

    Attributes:
        name (str): Filter name; empty for anonymous inline filters.
        key (str): Attribute key compared by EQ..LE.
        operation (Operation): Comparison, logical combination, or UNSPECIFIED.
        value (str): Attribute value compared by EQ..LE (numbers kept as text).
        inner (list[Filter]): Sub-filters combined by AND/OR, in source order.

    Notes:
        Three shapes occur in practice:
          - leaf comparison: key, operation in EQ..LE, value; no inner filters;
          - composite: operation AND/OR with at least one inner filter;
          - reference (`@name`): only name set, operation UNSPECIFIED. A reference
            is kept as a placeholder and is never resolved to the filter it names.

    Raises:
        pydantic.ValidationError: Wrapping SchemaError when inner filters and the
            operation disagree, or a comparison has no key.

    Examples:
        >>> from placement.core.schema import Filter
        >>> f = Filter.logical_and(Filter.equal("Country", "RU"), Filter.numeric_ge("Rating", 5))
        >>> f.operation.name, [x.key for x in f.inner]
        ('AND', ['Country', 'Rating'])
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = ""
    key: str = ""
    operation: Operation = Operation.UNSPECIFIED
    value: str = ""
    inner: list[Filter] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_shape(self) -> Filter:
        composite = self.operation in LOGICAL_OPERATIONS
        if composite and not self.inner:
            raise SchemaError(f"{self.operation.name} filter requires inner filters")
        if not composite and self.inner:
            raise SchemaError(f"{self.operation.name} filter must not have inner filters")
        if self.operation in COMPARISON_OPERATIONS and not self.key:
            raise SchemaError(f"{self.operation.name} filter requires a key")
        return self

    @property
    def is_reference(self) -> bool:
        return (
            self.operation is Operation.UNSPECIFIED
            and bool(self.name)
            and not self.key
            and not self.value
            and not self.inner
        )

    @property
    def is_composite(self) -> bool:
        return self.operation in LOGICAL_OPERATIONS

    def named(self, name: str) -> Filter:
        """Return a copy of this filter carrying `name`."""
        return self.model_copy(update={"name": name})

    # Builders

    @classmethod
    def reference(cls, name: str) -> Filter:
        return cls(name=name)

    @classmethod
    def equal(cls, key: str, value: str) -> Filter:
        return cls(key=key, operation=Operation.EQ, value=value)

    @classmethod
    def not_equal(cls, key: str, value: str) -> Filter:
        return cls(key=key, operation=Operation.NE, value=value)

    @classmethod
    def numeric_gt(cls, key: str, num: int) -> Filter:
        return cls(key=key, operation=Operation.GT, value=str(num))

    @classmethod
    def numeric_ge(cls, key: str, num: int) -> Filter:
        return cls(key=key, operation=Operation.GE, value=str(num))

    @classmethod
    def numeric_lt(cls, key: str, num: int) -> Filter:
        return cls(key=key, operation=Operation.LT, value=str(num))

    @classmethod
    def numeric_le(cls, key: str, num: int) -> Filter:
        return cls(key=key, operation=Operation.LE, value=str(num))

    @classmethod
    def logical_and(cls, *filters: Filter) -> Filter:
        return cls(operation=Operation.AND, inner=list(filters))

    @classmethod
    def logical_or(cls, *filters: Filter) -> Filter:
        return cls(operation=Operation.OR, inner=list(filters))


class Selector(BaseModel):
    """
    Rule picking a group of nodes that match a filter.

    Attributes:
        name (str): Selector name referenced by replicas; empty means unreferenceable.
        attribute (str): Grouping attribute (bucket); empty means no grouping.
        filter (str): Name of a top-level filter, or "*" for every node.
        count (int): Number of nodes (or buckets) to select, uint32.
        clause (Clause): SAME, DISTINCT, or UNSPECIFIED.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = ""
    attribute: str = ""
    filter: str = ""
    count: Uint32
    clause: Clause = Clause.UNSPECIFIED


class Replica(BaseModel):
    """
    Requirement for `count` object copies.

    Attributes:
        count (int): Number of copies, uint32.
        selector (str): Selector name; empty means "apply to the whole network".
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    count: Uint32
    selector: str = ""


class PlacementPolicy(BaseModel):
    """
    Compiled placement policy.

    Attributes:
        replicas (list[Replica]): Replica requirements in source order.
        container_backup_factor (int): Backup multiplier; 0 means unset.
        selectors (list[Selector]): Selectors in source order.
        filters (list[Filter]): Named top-level filters in source order.

    Notes:
        The policy is an immutable snapshot. Sequence order is significant and is
        preserved by both the DSL and the JSON paths.

    Examples:
        >>> from placement.core.schema import PlacementPolicy, Replica
        >>> PlacementPolicy(replicas=[Replica(count=3)]).container_backup_factor
        0
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    replicas: list[Replica] = Field(default_factory=list)
    container_backup_factor: Uint32 = UNSET_BACKUP_FACTOR
    selectors: list[Selector] = Field(default_factory=list)
    filters: list[Filter] = Field(default_factory=list)

    def filter_names(self) -> frozenset[str]:
        return frozenset(f.name for f in self.filters)

    def selector_names(self) -> frozenset[str]:
        return frozenset(s.name for s in self.selectors)
