"""Rule data model — closed enums and immutable value types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, Optional, Union

if TYPE_CHECKING:
    from authrules.rules.rule import Rule


class RuleConfigError(ValueError):
    """Raised when a rule is built with invalid or inconsistent fields."""


class PolicyMode(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


class RuleOp(str, Enum):
    READ = "read"
    WRITE = "write"
    DELETE = "delete"
    BATCH = "batch"
    TRANSACTION = "transaction"
    ALLOW_ALL = "allow_all"
    DENY_ALL = "deny_all"
    METADATA = "metadata"


class BundleKind(str, Enum):
    """Declared type of a bundle as far as authorization cares."""

    TRANSACTION = "transaction"
    BATCH = "batch"
    OTHER = "other"


class TransactionAppliesTo(str, Enum):
    BATCH = "batch"
    TRANSACTION = "transaction"


class OperationType(str, Enum):
    """The REST operation an inbound request performs."""

    READ = "read"
    VREAD = "vread"
    SEARCH_TYPE = "search-type"
    SEARCH_SYSTEM = "search-system"
    HISTORY_INSTANCE = "history-instance"
    HISTORY_TYPE = "history-type"
    CREATE = "create"
    UPDATE = "update"
    PATCH = "patch"
    DELETE = "delete"
    METADATA = "metadata"
    TRANSACTION = "transaction"
    VALIDATE = "validate"
    EXTENDED_OPERATION = "extended-operation"


class RequestMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


# ---- applies-to variants ----


@dataclass(frozen=True)
class AllResources:
    """Type filter that lets every resource through."""


@dataclass(frozen=True)
class ResourceTypes:
    """Type filter restricted to an explicit set of resource-type tokens."""

    types: FrozenSet[str]

    def __post_init__(self) -> None:
        if not self.types:
            raise RuleConfigError("ResourceTypes requires at least one resource type")
        # accept any iterable of names but store a frozenset
        object.__setattr__(self, "types", frozenset(self.types))


AppliesTo = Union[AllResources, ResourceTypes]


# ---- classifier variants ----


@dataclass(frozen=True)
class AnyId:
    """Classifier that accepts a resource regardless of ownership."""


@dataclass(frozen=True)
class InCompartment:
    """Classifier that requires the resource to sit in one owner's compartment."""

    compartment_name: str
    owners: FrozenSet[str]

    def __post_init__(self) -> None:
        if not self.compartment_name:
            raise RuleConfigError("InCompartment requires a compartment name")
        if not self.owners:
            raise RuleConfigError(
                f"InCompartment({self.compartment_name}) requires at least one owner"
            )
        object.__setattr__(self, "owners", frozenset(self.owners))


Classifier = Union[AnyId, InCompartment]


# ---- evaluation values ----


@dataclass(frozen=True)
class Verdict:
    """A concrete decision together with the rule that produced it."""

    decision: PolicyMode
    rule: "Rule"

    @property
    def allowed(self) -> bool:
        return self.decision == PolicyMode.ALLOW


@dataclass(frozen=True)
class BundleEntry:
    """One sub-operation of a batch or transaction bundle."""

    resource: Optional[Dict[str, Any]]
    method: Optional[RequestMethod] = None
