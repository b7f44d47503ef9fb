"""Rule chain — ordered rule evaluation and the final allow/deny decision."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Protocol, Tuple

from authrules.rules.models import OperationType, PolicyMode, Verdict
from authrules.rules.rule import Rule

if TYPE_CHECKING:
    from authrules.context.base import RequestContext

logger = logging.getLogger(__name__)


class RuleApplier(Protocol):
    """Evaluates a full rule chain for one (sub-)operation.

    Must be re-entrant: batch and transaction rules call back into it for
    every bundle entry while the outer evaluation is still running.
    """

    def apply_rules_and_return_decision(
        self,
        operation: OperationType,
        request: RequestContext,
        input_resource: Optional[Any],
        output_resource: Optional[Any],
    ) -> Optional[Verdict]:
        ...


@dataclass(frozen=True)
class Decision:
    """Outcome of running a request through the whole chain."""

    decision: PolicyMode
    rule: Optional[Rule] = None
    reason: str = ""

    @property
    def allowed(self) -> bool:
        return self.decision == PolicyMode.ALLOW

    @property
    def rule_name(self) -> Optional[str]:
        return self.rule.name if self.rule is not None else None


class RuleChain:
    """An immutable, ordered list of rules; the first rule with an opinion wins."""

    def __init__(
        self,
        rules: Iterable[Rule],
        default_policy: PolicyMode = PolicyMode.DENY,
    ) -> None:
        self._rules: Tuple[Rule, ...] = tuple(rules)
        self._default_policy = PolicyMode(default_policy)

    # ---- queries ----

    @property
    def rules(self) -> List[Rule]:
        return list(self._rules)

    @property
    def default_policy(self) -> PolicyMode:
        return self._default_policy

    def __len__(self) -> int:
        return len(self._rules)

    # ---- evaluation ----

    def apply_rules_and_return_decision(
        self,
        operation: OperationType,
        request: RequestContext,
        input_resource: Optional[Any],
        output_resource: Optional[Any],
    ) -> Optional[Verdict]:
        """Return the first non-abstaining verdict, or None if every rule abstains."""
        for rule in self._rules:
            verdict = rule.evaluate(operation, request, input_resource, output_resource, self)
            if verdict is not None:
                return verdict
        return None

    def decide(
        self,
        operation: OperationType,
        request: RequestContext,
        input_resource: Optional[Any] = None,
        output_resource: Optional[Any] = None,
    ) -> Decision:
        """Run the chain and fall back to the default policy when nothing matches.

        ``InvalidRequestError`` raised by a rule propagates unchanged.
        """
        verdict = self.apply_rules_and_return_decision(
            operation, request, input_resource, output_resource
        )

        if verdict is None:
            decision = Decision(
                decision=self._default_policy,
                reason=f"No rule matched {operation.value}; default policy is {self._default_policy.value}",
            )
        else:
            decision = Decision(
                decision=verdict.decision,
                rule=verdict.rule,
                reason=f"Rule {verdict.rule.name!r} decided {verdict.decision.value} for {operation.value}",
            )

        if decision.allowed:
            logger.debug("Access granted (request=%s): %s", request.request_id, decision.reason)
        else:
            logger.info("Access denied (request=%s): %s", request.request_id, decision.reason)
        return decision
