"""Context oracle protocol and the per-request context handed to rules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Protocol

from authrules.rules.models import BundleEntry, BundleKind


class ContextOracle(Protocol):
    """Resource model lookups needed while evaluating a rule.

    Implementations must be free of side effects so that one oracle can be
    shared by every concurrent evaluation.
    """

    def resource_type_of(self, resource: Any) -> str:
        ...

    def bundle_kind(self, bundle: Any) -> BundleKind:
        ...

    def decompose(self, bundle: Any) -> List[BundleEntry]:
        ...

    def is_in_compartment(self, compartment_name: str, resource: Any, owner: str) -> bool:
        ...


@dataclass(frozen=True)
class RequestContext:
    """Everything a rule may look at besides the resources themselves."""

    oracle: ContextOracle
    request_id: Optional[str] = None
