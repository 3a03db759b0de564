"""
Semantic validation of a parsed placement policy.

Checks the cross-references the grammar cannot express:
- every selector's filter is "*" or the name of a top-level filter;
- every non-empty replica selector is the name of a selector.

Name sets are computed from the complete policy, so references may point
forward in the source text. The first violation is raised; nothing is
aggregated. Validation is pure and may be repeated with the same result.

Notes:
    The text parser runs this pass automatically. The JSON decoder does not;
    call `validate` explicitly on decoded documents when references matter.
"""

from __future__ import annotations

from placement.core.constants import WILDCARD_FILTER
from placement.core.errors import UnknownFilterError, UnknownSelectorError
from placement.core.schema import PlacementPolicy

__all__ = ["validate"]


def validate(policy: PlacementPolicy) -> None:
    """
    Check selector→filter and replica→selector references.

    Args:
        policy (PlacementPolicy): Policy to check.

    Raises:
        UnknownFilterError: If a selector names a filter that is not defined.
        UnknownSelectorError: If a replica names a selector that is not defined.
    """
    filters = policy.filter_names()
    for selector in policy.selectors:
        if selector.filter != WILDCARD_FILTER and selector.filter not in filters:
            raise UnknownFilterError(selector.filter)

    selectors = policy.selector_names()
    for replica in policy.replicas:
        if replica.selector and replica.selector not in selectors:
            raise UnknownSelectorError(replica.selector)
