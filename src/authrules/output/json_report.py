"""JSON reporter for scripted callers."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from authrules.rules.chain import Decision
from authrules.rules.models import InCompartment, OperationType, ResourceTypes
from authrules.rules.rule import Rule


def rule_to_dict(rule: Rule) -> Dict[str, Any]:
    """Convert a Rule to a JSON-serialisable dict."""
    data: Dict[str, Any] = {
        "name": rule.name,
        "op": rule.op.value,
        "mode": rule.mode.value,
        "types": sorted(rule.applies_to.types) if isinstance(rule.applies_to, ResourceTypes) else None,
    }
    if isinstance(rule.classifier, InCompartment):
        data["compartment"] = rule.classifier.compartment_name
        data["owners"] = sorted(rule.classifier.owners)
    if rule.transaction_applies_to is not None:
        data["transaction_applies_to"] = rule.transaction_applies_to.value
    return data


def decision_to_dict(decision: Decision, operation: OperationType) -> Dict[str, Any]:
    """Convert a Decision to a JSON-serialisable dict."""
    return {
        "version": "1.0",
        "operation": operation.value,
        "decision": decision.decision.value,
        "allowed": decision.allowed,
        "rule": decision.rule_name,
        "reason": decision.reason,
    }


def render(decision: Decision, operation: OperationType) -> str:
    """Return formatted JSON string."""
    return json.dumps(decision_to_dict(decision, operation), indent=2)


def render_rules(rules: List[Rule]) -> str:
    return json.dumps([rule_to_dict(r) for r in rules], indent=2)
