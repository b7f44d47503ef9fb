"""Context oracles — resource type lookup, bundle decomposition, compartments."""

from authrules.context.base import ContextOracle, RequestContext
from authrules.context.fhir_json import DEFAULT_COMPARTMENTS, FhirJsonContext, parse_reference
from authrules.rules.models import BundleEntry, BundleKind

__all__ = [
    "DEFAULT_COMPARTMENTS",
    "BundleEntry",
    "BundleKind",
    "ContextOracle",
    "FhirJsonContext",
    "RequestContext",
    "parse_reference",
]
