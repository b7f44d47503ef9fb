"""Shared test fixtures — sample resources, bundles, oracle and request context."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path

import pytest

from authrules.context.base import RequestContext
from authrules.context.fhir_json import FhirJsonContext


@pytest.fixture
def oracle() -> FhirJsonContext:
    return FhirJsonContext()


@pytest.fixture
def request_ctx(oracle: FhirJsonContext) -> RequestContext:
    return RequestContext(oracle=oracle, request_id="req-1")


@pytest.fixture
def patient_123() -> dict:
    return {"resourceType": "Patient", "id": "123", "name": [{"family": "Smith"}]}


@pytest.fixture
def patient_456() -> dict:
    return {"resourceType": "Patient", "id": "456"}


@pytest.fixture
def observation_123() -> dict:
    """An Observation about Patient/123."""
    return {
        "resourceType": "Observation",
        "id": "obs-1",
        "status": "final",
        "subject": {"reference": "Patient/123"},
    }


@pytest.fixture
def observation_456() -> dict:
    """An Observation about Patient/456."""
    return {
        "resourceType": "Observation",
        "id": "obs-2",
        "status": "final",
        "subject": {"reference": "Patient/456"},
    }


def make_bundle(bundle_type: str, *entries: tuple) -> dict:
    """Build a bundle from (method, resource) pairs; method may be None."""
    entry_list = []
    for method, resource in entries:
        entry: dict = {}
        if resource is not None:
            entry["resource"] = resource
        if method is not None:
            entry["request"] = {"method": method, "url": (resource or {}).get("resourceType", "")}
        entry_list.append(entry)
    return {"resourceType": "Bundle", "type": bundle_type, "entry": entry_list}


@pytest.fixture
def transaction_bundle(observation_123: dict, patient_123: dict) -> dict:
    return make_bundle(
        "transaction",
        ("POST", observation_123),
        ("PUT", patient_123),
    )


@pytest.fixture
def rules_yaml() -> str:
    return textwrap.dedent("""\
        - name: metadata
          op: metadata
        - name: patient-123-read
          op: read
          compartment: Patient
          owners: [Patient/123]
        - name: patient-123-write
          op: write
          types: [Observation, Patient]
          compartment: Patient
          owners: [Patient/123]
        - name: transactions
          op: transaction
        - name: deny-rest
          op: deny_all
    """)


@pytest.fixture
def workspace(tmp_path: Path, rules_yaml: str) -> Path:
    """A directory holding a rules file and a few JSON resources."""
    (tmp_path / "authrules.yaml").write_text(rules_yaml)
    resources = {
        "obs_123.json": {
            "resourceType": "Observation", "id": "obs-1",
            "subject": {"reference": "Patient/123"},
        },
        "obs_456.json": {
            "resourceType": "Observation", "id": "obs-2",
            "subject": {"reference": "Patient/456"},
        },
        "nested.json": make_bundle(
            "transaction",
            ("POST", {"resourceType": "Bundle", "type": "transaction", "entry": []}),
        ),
    }
    for name, body in resources.items():
        (tmp_path / name).write_text(json.dumps(body))
    return tmp_path
