"""Tests for building rules from YAML rule documents."""

import pytest
import yaml

from authrules.rules.loader import load_rules, rule_from_dict
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


class TestRuleFromDict:
    def test_minimal(self):
        rule = rule_from_dict({"name": "r", "op": "read"})
        assert rule.op == RuleOp.READ
        assert rule.mode == PolicyMode.ALLOW
        assert rule.applies_to == AllResources()
        assert rule.classifier == AnyId()

    def test_full(self):
        rule = rule_from_dict({
            "name": "own-obs",
            "op": "WRITE",
            "mode": "deny",
            "types": ["Observation", "Condition"],
            "compartment": "Patient",
            "owners": ["Patient/1", "Patient/2"],
        })
        assert rule.mode == PolicyMode.DENY
        assert rule.applies_to == ResourceTypes(frozenset({"Observation", "Condition"}))
        assert rule.classifier == InCompartment("Patient", frozenset({"Patient/1", "Patient/2"}))

    def test_single_type_string(self):
        rule = rule_from_dict({"name": "r", "op": "read", "types": "Patient"})
        assert rule.applies_to == ResourceTypes(frozenset({"Patient"}))

    def test_deny_all_defaults_to_deny(self):
        assert rule_from_dict({"name": "d", "op": "deny_all"}).mode == PolicyMode.DENY

    def test_transaction_applies_to(self):
        rule = rule_from_dict({"name": "t", "op": "transaction", "transaction_applies_to": "batch"})
        assert rule.transaction_applies_to == TransactionAppliesTo.BATCH

    @pytest.mark.parametrize("doc", [
        {"op": "read"},
        {"name": "r"},
        {"name": "r", "op": "fly"},
        {"name": "r", "op": "read", "mode": "maybe"},
        {"name": "r", "op": "read", "types": []},
        {"name": "r", "op": "read", "types": [1, 2]},
        {"name": "r", "op": "read", "compartment": "Patient"},
        {"name": "r", "op": "read", "owners": ["Patient/1"]},
        {"name": "r", "op": "read", "compartment": "Patient", "owners": []},
        {"name": "r", "op": "read", "colour": "blue"},
        ["not", "a", "mapping"],
    ])
    def test_invalid_documents(self, doc):
        with pytest.raises(RuleConfigError):
            rule_from_dict(doc)


class TestLoadRules:
    def test_order_preserved(self, tmp_path, rules_yaml):
        path = tmp_path / "rules.yaml"
        path.write_text(rules_yaml)
        rules = load_rules(path)
        assert [r.name for r in rules] == [
            "metadata", "patient-123-read", "patient-123-write", "transactions", "deny-rest",
        ]

    def test_single_mapping(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(yaml.dump({"name": "all", "op": "allow_all"}))
        assert len(load_rules(path)) == 1

    def test_empty_file(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("")
        assert load_rules(path) == []

    def test_duplicate_names(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(yaml.dump([{"name": "a", "op": "read"}, {"name": "a", "op": "write"}]))
        with pytest.raises(RuleConfigError, match="Duplicate"):
            load_rules(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("- name: [unclosed")
        with pytest.raises(RuleConfigError):
            load_rules(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(RuleConfigError):
            load_rules(tmp_path / "absent.yaml")
