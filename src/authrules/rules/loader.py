"""Rule loading — builds Rule values from YAML rule documents."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Type, TypeVar

import yaml

from authrules.rules.models import (
    AllResources,
    AnyId,
    InCompartment,
    PolicyMode,
    ResourceTypes,
    RuleConfigError,
    RuleOp,
    TransactionAppliesTo,
)
from authrules.rules.rule import Rule

_KNOWN_KEYS = frozenset({
    "name",
    "op",
    "mode",
    "types",
    "compartment",
    "owners",
    "transaction_applies_to",
})

_E = TypeVar("_E", PolicyMode, RuleOp, TransactionAppliesTo)


def _enum_value(cls: Type[_E], raw: Any, field_name: str, rule_name: str) -> _E:
    try:
        return cls(str(raw).lower())
    except ValueError:
        allowed = " | ".join(m.value for m in cls)
        raise RuleConfigError(
            f"Rule {rule_name!r}: invalid {field_name} {raw!r} (expected {allowed})"
        ) from None


def _string_set(raw: Any, field_name: str, rule_name: str) -> frozenset:
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list) or not all(isinstance(v, str) and v for v in raw):
        raise RuleConfigError(f"Rule {rule_name!r}: {field_name} must be a list of strings")
    return frozenset(raw)


def rule_from_dict(entry: Mapping[str, Any]) -> Rule:
    """Build one Rule from a parsed rule document."""
    if not isinstance(entry, Mapping):
        raise RuleConfigError(f"Rule document must be a mapping, got {type(entry).__name__}")

    name = entry.get("name")
    if not name or not isinstance(name, str):
        raise RuleConfigError("Rule document is missing a 'name'")

    unknown = sorted(set(entry) - _KNOWN_KEYS)
    if unknown:
        raise RuleConfigError(f"Rule {name!r}: unknown keys {', '.join(unknown)}")

    if "op" not in entry:
        raise RuleConfigError(f"Rule {name!r}: missing 'op'")
    op = _enum_value(RuleOp, entry["op"], "op", name)

    default_mode = PolicyMode.DENY if op == RuleOp.DENY_ALL else PolicyMode.ALLOW
    mode = _enum_value(PolicyMode, entry.get("mode", default_mode.value), "mode", name)

    applies_to = AllResources()
    if entry.get("types") is not None:
        applies_to = ResourceTypes(_string_set(entry["types"], "types", name))

    classifier = AnyId()
    compartment = entry.get("compartment")
    owners = entry.get("owners")
    if compartment is not None or owners is not None:
        if not compartment or not owners:
            raise RuleConfigError(f"Rule {name!r}: 'compartment' and 'owners' must be set together")
        classifier = InCompartment(str(compartment), _string_set(owners, "owners", name))

    transaction_applies_to = None
    if entry.get("transaction_applies_to") is not None:
        transaction_applies_to = _enum_value(
            TransactionAppliesTo, entry["transaction_applies_to"], "transaction_applies_to", name
        )

    return Rule(
        name=name,
        op=op,
        mode=mode,
        applies_to=applies_to,
        classifier=classifier,
        transaction_applies_to=transaction_applies_to,
    )


def load_rules(path: Path) -> List[Rule]:
    """Load an ordered list of rules from a YAML file."""
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise RuleConfigError(f"Cannot read rules file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise RuleConfigError(f"Failed to parse {path}: {exc}") from exc

    if data is None:
        return []
    if not isinstance(data, list):
        data = [data]

    rules: List[Rule] = []
    seen: Dict[str, int] = {}
    for position, entry in enumerate(data):
        rule = rule_from_dict(entry)
        if rule.name in seen:
            raise RuleConfigError(
                f"Duplicate rule name {rule.name!r} (documents {seen[rule.name]} and {position})"
            )
        seen[rule.name] = position
        rules.append(rule)
    return rules
