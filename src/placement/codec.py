"""
JSON codec for placement policies.

Document shape (field names are wire names, array order is significant):

    PlacementPolicy  {"replicas": [Replica], "container_backup_factor"?: uint32,
                      "selectors"?: [Selector], "filters"?: [Filter]}
    Replica          {"count": uint32, "selector"?: string}
    Selector         {"count": uint32, "attribute": string, "filter"?: string,
                      "name"?: string, "clause"?: string}
    Filter           {"name"?: string, "key"?: string, "op"?: string,
                      "value"?: string, "filters"?: [Filter]}

Encoding omits empty optional fields. Decoding validates the document shape
with pydantic models, then maps mnemonics through the tables in
`placement.core.grammar` (the same ones the DSL parser uses). Decoding does
NOT run the semantic validator: a document with dangling filter or selector
references decodes successfully.

Examples:
    >>> from placement.codec import from_json, to_json
    >>> p = from_json(b'{"replicas":[{"count":3,"selector":"X"}]}')
    >>> to_json(p)
    b'{"replicas":[{"count":3,"selector":"X"}]}'
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from placement.core.constants import MAX_COUNT, UNSET_BACKUP_FACTOR
from placement.core.errors import PolicyDecodeError
from placement.core.grammar import (
    clause_from_mnemonic,
    clause_mnemonic,
    operation_from_mnemonic,
    operation_mnemonic,
)
from placement.core.schema import Filter, PlacementPolicy, Replica, Selector
from placement.core.serde import json_dumps
from placement.core.typing import JsonDict

__all__ = [
    "FilterDoc",
    "ReplicaDoc",
    "SelectorDoc",
    "PolicyDoc",
    "policy_to_dict",
    "to_json",
    "from_json",
]

logger = logging.getLogger(__name__)

_DOC_CONFIG = ConfigDict(extra="ignore", strict=True)


# ============================================================================
# Wire documents (decoding side)
# ============================================================================


class FilterDoc(BaseModel):
    """Wire form of a Filter; `op` is a mnemonic, `filters` mirrors Filter.inner."""

    model_config = _DOC_CONFIG

    name: str = ""
    key: str = ""
    op: str = ""
    value: str = ""
    filters: list[FilterDoc] = Field(default_factory=list)

    def to_filter(self) -> Filter:
        op = operation_from_mnemonic(self.op)
        inner = [f.to_filter() for f in self.filters]
        return Filter(name=self.name, key=self.key, operation=op, value=self.value, inner=inner)


class ReplicaDoc(BaseModel):
    """Wire form of a Replica."""

    model_config = _DOC_CONFIG

    count: int = Field(default=0, ge=0, le=MAX_COUNT)
    selector: str = ""

    def to_replica(self) -> Replica:
        return Replica(count=self.count, selector=self.selector)


class SelectorDoc(BaseModel):
    """Wire form of a Selector; `clause` is a mnemonic."""

    model_config = _DOC_CONFIG

    count: int = Field(default=0, ge=0, le=MAX_COUNT)
    attribute: str = ""
    filter: str = ""
    name: str = ""
    clause: str = ""

    def to_selector(self) -> Selector:
        return Selector(
            name=self.name,
            attribute=self.attribute,
            filter=self.filter,
            count=self.count,
            clause=clause_from_mnemonic(self.clause),
        )


class PolicyDoc(BaseModel):
    """Wire form of a PlacementPolicy."""

    model_config = _DOC_CONFIG

    replicas: list[ReplicaDoc] = Field(default_factory=list)
    container_backup_factor: int = Field(default=UNSET_BACKUP_FACTOR, ge=0, le=MAX_COUNT)
    selectors: list[SelectorDoc] = Field(default_factory=list)
    filters: list[FilterDoc] = Field(default_factory=list)

    def to_policy(self) -> PlacementPolicy:
        # Filters first, then selectors: the first unknown mnemonic wins.
        filters = [f.to_filter() for f in self.filters]
        selectors = [s.to_selector() for s in self.selectors]
        return PlacementPolicy(
            replicas=[r.to_replica() for r in self.replicas],
            container_backup_factor=self.container_backup_factor,
            selectors=selectors,
            filters=filters,
        )


# ============================================================================
# Encoding
# ============================================================================


def _filter_dict(f: Filter) -> JsonDict:
    out: JsonDict = {}
    if f.name:
        out["name"] = f.name
    if f.key:
        out["key"] = f.key
    op = operation_mnemonic(f.operation)
    if op:
        out["op"] = op
    if f.value:
        out["value"] = f.value
    if f.inner:
        out["filters"] = [_filter_dict(sub) for sub in f.inner]
    return out


def _selector_dict(s: Selector) -> JsonDict:
    out: JsonDict = {"count": s.count, "attribute": s.attribute}
    if s.filter:
        out["filter"] = s.filter
    if s.name:
        out["name"] = s.name
    clause = clause_mnemonic(s.clause)
    if clause:
        out["clause"] = clause
    return out


def _replica_dict(r: Replica) -> JsonDict:
    out: JsonDict = {"count": r.count}
    if r.selector:
        out["selector"] = r.selector
    return out


def policy_to_dict(policy: PlacementPolicy) -> JsonDict:
    """Build the JSON-ready mapping for a policy (empty optional fields omitted)."""
    doc: JsonDict = {"replicas": [_replica_dict(r) for r in policy.replicas]}
    if policy.container_backup_factor != UNSET_BACKUP_FACTOR:
        doc["container_backup_factor"] = policy.container_backup_factor
    if policy.selectors:
        doc["selectors"] = [_selector_dict(s) for s in policy.selectors]
    if policy.filters:
        doc["filters"] = [_filter_dict(f) for f in policy.filters]
    return doc


def to_json(policy: PlacementPolicy, indent: int | None = None) -> bytes:
    """
    Encode a policy as a UTF-8 JSON document.

    Args:
        policy (PlacementPolicy): Policy to encode.
        indent (int | None): Pretty-print indentation; None for compact output.

    Returns:
        bytes: JSON document.
    """
    return json_dumps(policy_to_dict(policy), indent=indent).encode("utf-8")


# ============================================================================
# Decoding
# ============================================================================


def from_json(data: bytes | str) -> PlacementPolicy:
    """
    Decode a JSON document into a PlacementPolicy.

    Args:
        data (bytes | str): JSON document.

    Returns:
        PlacementPolicy: Decoded policy. References are NOT validated.

    Raises:
        PolicyDecodeError: If the input is not JSON, has the wrong shape, or
            describes a filter whose operation and inner filters disagree.

    Notes:
        Decoding is stricter than plain mnemonic mapping: every decoded filter
        must satisfy the Filter shape rules (e.g. `{"op": "AND"}` without
        `filters` is rejected), so any decoded policy re-encodes and renders
        without loss.
        UnknownOpError: If a filter "op" is not a known mnemonic.
        UnknownClauseError: If a selector "clause" is not SAME or DISTINCT.
    """
    try:
        doc = PolicyDoc.model_validate_json(data)
    except ValidationError as exc:
        raise PolicyDecodeError(f"invalid policy document: {_first_error(exc)}") from exc

    try:
        policy = doc.to_policy()
    except ValidationError as exc:
        raise PolicyDecodeError(f"invalid policy document: {_first_error(exc)}") from exc

    logger.debug(
        "decoded policy document: %d replicas, %d selectors, %d filters",
        len(policy.replicas),
        len(policy.selectors),
        len(policy.filters),
    )
    return policy


def _first_error(exc: ValidationError) -> str:
    errors: list[dict[str, Any]] = exc.errors(include_url=False)  # type: ignore[assignment]
    if not errors:
        return str(exc)
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()))
    return f"{loc}: {first.get('msg', '')}" if loc else str(first.get("msg", ""))
