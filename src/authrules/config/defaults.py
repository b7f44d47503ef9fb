"""Starter .authrules.toml and authrules.yaml templates."""

DEFAULT_TOML = """\
# authrules configuration
version = "1.0"

[policy]
default_decision = "deny"      # allow | deny — used when no rule has an opinion
rules_file = "authrules.yaml"  # relative to this file

[output]
format = "terminal"            # terminal | json

[logging]
level = "warning"              # debug | info | warning | error
"""

DEFAULT_RULES_YAML = """\
# Rules are evaluated top to bottom; the first rule with an opinion wins.
- name: capability-statement
  op: metadata
  mode: allow

- name: transactions
  op: transaction
  mode: allow

- name: patient-123-read
  op: read
  compartment: Patient
  owners: [Patient/123]

- name: patient-123-write
  op: write
  types: [Observation, Condition]
  compartment: Patient
  owners: [Patient/123]

- name: deny-everything-else
  op: deny_all
"""
