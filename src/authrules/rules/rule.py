"""Authorization rule — one immutable policy fragment and its evaluation.

A rule answers a single question for a single inbound operation: ALLOW,
DENY, or ``None`` when it has no opinion and the chain should move on.
Batch and transaction bundles are split into their entries and every entry
is re-submitted to the whole rule chain, so a rule never decides a bundle on
its own unless it denies it outright.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from authrules.rules.models import (
    AllResources,
    AnyId,
    AppliesTo,
    BundleKind,
    Classifier,
    InCompartment,
    OperationType,
    PolicyMode,
    RequestMethod,
    ResourceTypes,
    RuleConfigError,
    RuleOp,
    TransactionAppliesTo,
    Verdict,
)

if TYPE_CHECKING:
    from authrules.context.base import ContextOracle, RequestContext
    from authrules.rules.chain import RuleApplier

logger = logging.getLogger(__name__)

# Entries carrying these resource types are never unpacked recursively.
NESTED_COMPOSITE_TYPES = frozenset({"Bundle", "Parameters"})

_ENTRY_OPERATIONS = {
    RequestMethod.POST: OperationType.CREATE,
    RequestMethod.PUT: OperationType.UPDATE,
}


class InvalidRequestError(Exception):
    """Raised when a request cannot be authorized as submitted.

    Always propagated to the caller; the whole inbound request is rejected.
    """


def most_restrictive(current: Optional[Verdict], new: Optional[Verdict]) -> Optional[Verdict]:
    """Fold *new* into the running *current* verdict.

    Abstentions are ignored, the first concrete verdict is kept, and a DENY
    replaces a running ALLOW. A running DENY is final.
    """
    if new is None:
        return current
    if current is None:
        return new
    if current.decision == PolicyMode.ALLOW and new.decision == PolicyMode.DENY:
        return new
    return current


@dataclass(frozen=True)
class Rule:
    """A single authorization rule.

    Rules are built once at configuration time and then shared read-only by
    every evaluation, so all fields are frozen and validated up front.
    """

    name: str
    op: RuleOp
    mode: PolicyMode = PolicyMode.ALLOW
    applies_to: AppliesTo = field(default_factory=AllResources)
    classifier: Classifier = field(default_factory=AnyId)
    transaction_applies_to: Optional[TransactionAppliesTo] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise RuleConfigError("Rule name must not be empty")
        if not isinstance(self.mode, PolicyMode):
            raise RuleConfigError(f"Rule {self.name!r}: invalid mode {self.mode!r}")
        if not isinstance(self.applies_to, (AllResources, ResourceTypes)):
            raise RuleConfigError(f"Rule {self.name!r}: invalid applies-to {self.applies_to!r}")
        if not isinstance(self.classifier, (AnyId, InCompartment)):
            raise RuleConfigError(f"Rule {self.name!r}: invalid classifier {self.classifier!r}")
        if self.op in (RuleOp.BATCH, RuleOp.TRANSACTION) and self.transaction_applies_to is None:
            object.__setattr__(
                self, "transaction_applies_to", TransactionAppliesTo(self.op.value)
            )

    # ---- evaluation ----

    def evaluate(
        self,
        operation: OperationType,
        request: RequestContext,
        input_resource: Optional[Any],
        output_resource: Optional[Any],
        applier: RuleApplier,
    ) -> Optional[Verdict]:
        """Return this rule's verdict for one operation, or None to abstain."""
        op = self.op

        if op == RuleOp.READ:
            if output_resource is None:
                return None
            target = output_resource
        elif op == RuleOp.WRITE:
            if input_resource is None:
                return None
            target = input_resource
        elif op == RuleOp.DELETE:
            if operation != OperationType.DELETE:
                return None
            # delete by id: there is no body to filter on
            if input_resource is None:
                return Verdict(self.mode, self)
            target = input_resource
        elif op in (RuleOp.BATCH, RuleOp.TRANSACTION):
            return self._evaluate_bundle(request, input_resource, output_resource, applier)
        elif op == RuleOp.ALLOW_ALL:
            return Verdict(PolicyMode.ALLOW, self)
        elif op == RuleOp.DENY_ALL:
            return Verdict(PolicyMode.DENY, self)
        elif op == RuleOp.METADATA:
            if operation == OperationType.METADATA:
                return Verdict(self.mode, self)
            return None
        else:
            raise InvalidRequestError(
                f"Unable to apply rule {self.name!r} to operation {operation}: unknown op {op!r}"
            )

        oracle = request.oracle
        if not self._matches_type(oracle, target):
            return None
        if not self._matches_classifier(oracle, target):
            return None
        return Verdict(self.mode, self)

    # ---- filters ----

    def _matches_type(self, oracle: ContextOracle, target: Any) -> bool:
        if isinstance(self.applies_to, ResourceTypes):
            return oracle.resource_type_of(target) in self.applies_to.types
        return True

    def _matches_classifier(self, oracle: ContextOracle, target: Any) -> bool:
        classifier = self.classifier
        if isinstance(classifier, InCompartment):
            return any(
                oracle.is_in_compartment(classifier.compartment_name, target, owner)
                for owner in sorted(classifier.owners)
            )
        return True

    # ---- batch / transaction ----

    def _bundle_applies(self, oracle: ContextOracle, bundle: Any) -> bool:
        if oracle.resource_type_of(bundle) != "Bundle":
            return False
        kind = oracle.bundle_kind(bundle)
        if self.transaction_applies_to == TransactionAppliesTo.TRANSACTION:
            return kind == BundleKind.TRANSACTION
        if self.transaction_applies_to == TransactionAppliesTo.BATCH:
            return kind == BundleKind.BATCH
        return False

    def _evaluate_bundle(
        self,
        request: RequestContext,
        input_resource: Optional[Any],
        output_resource: Optional[Any],
        applier: RuleApplier,
    ) -> Optional[Verdict]:
        oracle = request.oracle
        if input_resource is not None:
            if not self._bundle_applies(oracle, input_resource):
                return None
            if self.mode == PolicyMode.DENY:
                return Verdict(PolicyMode.DENY, self)
            return self._evaluate_request_entries(request, input_resource, applier)
        if output_resource is not None and self._bundle_applies(oracle, output_resource):
            return self._evaluate_response_entries(request, output_resource, applier)
        return None

    def _evaluate_request_entries(
        self, request: RequestContext, bundle: Any, applier: RuleApplier
    ) -> Optional[Verdict]:
        oracle = request.oracle
        verdict: Optional[Verdict] = None

        for index, entry in enumerate(oracle.decompose(bundle)):
            if entry.method == RequestMethod.GET:
                continue
            operation = _ENTRY_OPERATIONS.get(entry.method) if entry.method else None
            if operation is None:
                method = entry.method.value if entry.method else "(none)"
                raise InvalidRequestError(
                    f"Can not handle transaction with operation of type {method}"
                )
            if entry.resource is None:
                raise InvalidRequestError(
                    f"Can not handle transaction entry {index} without a resource"
                )

            resource_type = oracle.resource_type_of(entry.resource)
            if resource_type in NESTED_COMPOSITE_TYPES:
                raise InvalidRequestError(
                    f"Can not handle transaction with nested resource of type {resource_type}"
                )

            new = applier.apply_rules_and_return_decision(
                operation, request, entry.resource, None
            )
            logger.debug(
                "Rule %s: entry %d (%s %s) -> %s",
                self.name, index, entry.method.value, resource_type,
                new.decision.value if new else "abstain",
            )
            verdict = most_restrictive(verdict, new)

        return verdict

    def _evaluate_response_entries(
        self, request: RequestContext, bundle: Any, applier: RuleApplier
    ) -> Optional[Verdict]:
        verdict: Optional[Verdict] = None
        for entry in request.oracle.decompose(bundle):
            if entry.resource is None:
                continue
            new = applier.apply_rules_and_return_decision(
                OperationType.READ, request, None, entry.resource
            )
            verdict = most_restrictive(verdict, new)
        return verdict
