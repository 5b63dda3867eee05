from datetime import datetime
from typing import Optional, Tuple

from pydantic import AwareDatetime, Field, field_validator

from .affected import Affected
from .base import (
    DEFAULT_SCHEMA_VERSION,
    OpaqueJson,
    OsvBaseModel,
    ReferenceType,
    SeverityType,
    normalize_instant,
)


class Reference(OsvBaseModel):
    type: ReferenceType = Field(..., description="Kind of referenced resource")
    url: str = Field(..., description="Reference URL")


class Severity(OsvBaseModel):
    type: SeverityType = Field(..., description="Scoring system")
    score: str = Field(..., description="Raw score or vector string, not parsed")


class Credit(OsvBaseModel):
    name: str = Field(..., description="Credited party")
    contact: Tuple[str, ...] = Field(default=(), description="Contact addresses")


class Vulnerability(OsvBaseModel):
    """Root entity of an OSV record.

    Timestamps are held as UTC datetimes; collection fields are tuples so a
    constructed record cannot be changed in place.
    """

    schema_version: str = Field(
        default=DEFAULT_SCHEMA_VERSION, description="OSV schema version"
    )
    id: str = Field(..., description="Unique identifier, e.g. a CVE or GHSA id")
    modified: AwareDatetime = Field(..., description="Last modification time")
    published: Optional[AwareDatetime] = Field(
        default=None, description="Publication time"
    )
    withdrawn: Optional[AwareDatetime] = Field(
        default=None, description="Withdrawal time"
    )
    aliases: Tuple[str, ...] = Field(default=(), description="Equivalent ids")
    related: Tuple[str, ...] = Field(default=(), description="Related ids")
    summary: Optional[str] = Field(default=None, description="One-line summary")
    details: Optional[str] = Field(default=None, description="Full description")
    severity: Tuple[Severity, ...] = Field(default=(), description="Severity scores")
    affected: Tuple[Affected, ...] = Field(default=(), description="Affected packages")
    references: Tuple[Reference, ...] = Field(default=(), description="References")
    database_specific: OpaqueJson = Field(
        default=None, description="Database-specific passthrough data"
    )
    credits: Tuple[Credit, ...] = Field(default=(), description="Credited parties")

    @field_validator("modified", "published", "withdrawn")
    @classmethod
    def validate_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None:
            return normalize_instant(v)
        return v
