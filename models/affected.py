from typing import Optional, Tuple

from pydantic import Field, model_validator

from .base import (
    EventType,
    OpaqueJson,
    OsvBaseModel,
    RangeType,
    ValidationError,
)


class Event(OsvBaseModel):
    type: EventType = Field(..., description="Kind of range boundary")
    value: str = Field(..., description="Version or commit the boundary refers to")


class Package(OsvBaseModel):
    ecosystem: str = Field(..., description="Package-manager namespace")
    name: str = Field(..., description="Package name within the ecosystem")
    purl: Optional[str] = Field(default=None, description="Package URL")


class Range(OsvBaseModel):
    type: RangeType = Field(..., description="How event values are interpreted")
    repo: Optional[str] = Field(default=None, description="Origin repository URL")
    events: Tuple[Event, ...] = Field(
        ..., description="Ordered timeline of range boundaries"
    )
    database_specific: OpaqueJson = Field(
        default=None, description="Database-specific passthrough data"
    )

    @model_validator(mode="after")
    def check_invariants(self) -> "Range":
        # Only these two rules are enforced; event ordering is left to consumers.
        if self.type == RangeType.GIT and (self.repo is None or not self.repo.strip()):
            raise ValidationError("git range requires non-blank repo")

        if not any(event.type == EventType.INTRODUCED for event in self.events):
            raise ValidationError("range requires an introduced event")

        return self


class Affected(OsvBaseModel):
    pkg: Package = Field(..., description="The affected package")
    ranges: Tuple[Range, ...] = Field(
        default=(), description="Affected version or commit ranges"
    )
    versions: Tuple[str, ...] = Field(
        default=(), description="Explicitly enumerated affected versions"
    )
    ecosystem_specific: OpaqueJson = Field(
        default=None, description="Ecosystem-specific passthrough data"
    )
    database_specific: OpaqueJson = Field(
        default=None, description="Database-specific passthrough data"
    )
