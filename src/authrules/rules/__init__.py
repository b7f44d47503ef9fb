"""Rule engine — models, rule evaluation, chain, and YAML loading."""

from authrules.rules.chain import Decision, RuleApplier, RuleChain
from authrules.rules.loader import load_rules, rule_from_dict
from authrules.rules.models import (
    AllResources,
    AnyId,
    InCompartment,
    OperationType,
    PolicyMode,
    ResourceTypes,
    RuleConfigError,
    RuleOp,
    TransactionAppliesTo,
    Verdict,
)
from authrules.rules.rule import InvalidRequestError, Rule

__all__ = [
    "AllResources",
    "AnyId",
    "Decision",
    "InCompartment",
    "InvalidRequestError",
    "OperationType",
    "PolicyMode",
    "ResourceTypes",
    "Rule",
    "RuleApplier",
    "RuleChain",
    "RuleConfigError",
    "RuleOp",
    "TransactionAppliesTo",
    "Verdict",
    "load_rules",
    "rule_from_dict",
]
