"""authrules — resource-level authorization rules for FHIR-style REST APIs."""

__version__ = "0.3.0"
