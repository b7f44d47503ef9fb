"""Context oracle for FHIR-style JSON resources (plain ``dict`` values).

Compartment membership follows the FHIR compartment definitions: a resource
belongs to an owner's compartment when it *is* the owner, or when one of the
reference fields listed for its type points at the owner.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from authrules.rules.models import BundleEntry, BundleKind, RequestMethod
from authrules.rules.rule import InvalidRequestError

CompartmentTable = Mapping[str, Mapping[str, Sequence[str]]]

# compartment -> resource type -> reference paths (dotted, lists traversed)
DEFAULT_COMPARTMENTS: Dict[str, Dict[str, Tuple[str, ...]]] = {
    "Patient": {
        "AllergyIntolerance": ("patient", "recorder", "asserter"),
        "Appointment": ("participant.actor",),
        "CarePlan": ("subject",),
        "Claim": ("patient",),
        "Communication": ("subject", "sender", "recipient"),
        "Composition": ("subject", "author"),
        "Condition": ("subject", "asserter"),
        "Consent": ("patient",),
        "Coverage": ("policyHolder", "subscriber", "beneficiary", "payor"),
        "DiagnosticReport": ("subject",),
        "DocumentReference": ("subject", "author"),
        "Encounter": ("subject",),
        "EpisodeOfCare": ("patient",),
        "Flag": ("subject",),
        "Goal": ("subject",),
        "Immunization": ("patient",),
        "MedicationRequest": ("subject",),
        "MedicationStatement": ("subject",),
        "Observation": ("subject", "performer"),
        "Patient": ("link.other",),
        "Procedure": ("subject", "performer.actor"),
        "RelatedPerson": ("patient",),
        "ServiceRequest": ("subject", "performer"),
    },
    "Practitioner": {
        "Appointment": ("participant.actor",),
        "Encounter": ("participant.individual",),
        "Observation": ("performer",),
        "Procedure": ("performer.actor",),
        "ServiceRequest": ("requester", "performer"),
    },
}

_BUNDLE_KINDS = {
    "transaction": BundleKind.TRANSACTION,
    "transaction-response": BundleKind.TRANSACTION,
    "batch": BundleKind.BATCH,
    "batch-response": BundleKind.BATCH,
}


def parse_reference(reference: str, default_type: Optional[str] = None) -> Optional[Tuple[str, str]]:
    """Reduce a reference to ``(type, id)``.

    Absolute URLs and ``_history`` suffixes are dropped; contained
    references (``#id``) resolve to None. A bare id takes *default_type*.
    """
    reference = reference.strip()
    if not reference or reference.startswith("#"):
        return None
    parts = [p for p in reference.split("?", 1)[0].split("/") if p]
    if "_history" in parts:
        parts = parts[: parts.index("_history")]
    if len(parts) >= 2:
        return parts[-2], parts[-1]
    if len(parts) == 1 and default_type:
        return default_type, parts[0]
    return None


def _walk(node: Any, path: Sequence[str]) -> Iterator[Any]:
    """Yield every value reached by following *path* through dicts and lists."""
    if isinstance(node, list):
        for item in node:
            yield from _walk(item, path)
        return
    if not path:
        yield node
        return
    if isinstance(node, Mapping) and path[0] in node:
        yield from _walk(node[path[0]], path[1:])


class FhirJsonContext:
    """ContextOracle over FHIR JSON dicts.

    Holds only configuration, so one instance can serve every request.
    """

    def __init__(self, compartments: Optional[CompartmentTable] = None) -> None:
        table = DEFAULT_COMPARTMENTS if compartments is None else compartments
        self._compartments: Dict[str, Dict[str, Tuple[str, ...]]] = {
            name: {rtype: tuple(paths) for rtype, paths in types.items()}
            for name, types in table.items()
        }

    def resource_type_of(self, resource: Any) -> str:
        if not isinstance(resource, Mapping):
            raise InvalidRequestError(f"Expected a resource object, got {type(resource).__name__}")
        resource_type = resource.get("resourceType")
        if not resource_type or not isinstance(resource_type, str):
            raise InvalidRequestError("Resource is missing 'resourceType'")
        return resource_type

    def bundle_kind(self, bundle: Any) -> BundleKind:
        bundle_type = bundle.get("type") if isinstance(bundle, Mapping) else None
        return _BUNDLE_KINDS.get(str(bundle_type).lower(), BundleKind.OTHER)

    def decompose(self, bundle: Any) -> List[BundleEntry]:
        entries = (bundle.get("entry") or []) if isinstance(bundle, Mapping) else []
        if not isinstance(entries, list):
            raise InvalidRequestError("Bundle 'entry' must be a list")

        result: List[BundleEntry] = []
        for entry in entries:
            if not isinstance(entry, Mapping):
                raise InvalidRequestError("Bundle entries must be objects")
            request = entry.get("request") or {}
            method: Optional[RequestMethod] = None
            raw_method = request.get("method") if isinstance(request, Mapping) else None
            if raw_method:
                try:
                    method = RequestMethod(str(raw_method).upper())
                except ValueError:
                    method = None
            result.append(BundleEntry(resource=entry.get("resource"), method=method))
        return result

    def is_in_compartment(self, compartment_name: str, resource: Any, owner: str) -> bool:
        target = parse_reference(owner, default_type=compartment_name)
        if target is None or not isinstance(resource, Mapping):
            return False

        resource_type = resource.get("resourceType")
        if resource_type == compartment_name == target[0] and resource.get("id") == target[1]:
            return True

        paths = self._compartments.get(compartment_name, {}).get(resource_type, ())
        for path in paths:
            for value in _walk(resource, path.split(".")):
                if not isinstance(value, Mapping):
                    continue
                ref = value.get("reference")
                if isinstance(ref, str) and parse_reference(ref) == target:
                    return True
        return False
