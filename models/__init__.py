from .base import (
    DEFAULT_SCHEMA_VERSION,
    EventType,
    JsonObject,
    OpaqueJson,
    OsvBaseModel,
    OsvError,
    RangeType,
    ReferenceType,
    SeverityType,
    ValidationError,
    freeze_json,
    thaw_json,
)
from .affected import Affected, Event, Package, Range
from .vulnerability import Credit, Reference, Severity, Vulnerability

__all__ = [
    # Base infrastructure
    "OsvBaseModel",
    "OpaqueJson",
    "JsonObject",
    "freeze_json",
    "thaw_json",
    "DEFAULT_SCHEMA_VERSION",
    "OsvError",
    "ValidationError",

    # Tags
    "EventType",
    "RangeType",
    "ReferenceType",
    "SeverityType",

    # Affected packages
    "Affected",
    "Package",
    "Range",
    "Event",

    # Vulnerability records
    "Vulnerability",
    "Reference",
    "Severity",
    "Credit",
]
