from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Iterable, Iterator, Optional, Tuple

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    JsonValue,
    PlainSerializer,
)

DEFAULT_SCHEMA_VERSION = "1.0.0"


class JsonObject(Mapping):
    """Read-only, hashable JSON object used inside opaque payloads"""

    __slots__ = ("_items", "_hash")

    def __init__(self, items: Iterable[Tuple[str, Any]] = ()):
        self._items = dict(items)
        self._hash: Optional[int] = None

    def __getitem__(self, key: str) -> Any:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = hash(frozenset(self._items.items()))
        return self._hash

    def __repr__(self) -> str:
        return f"JsonObject({self._items!r})"


def freeze_json(value: Any) -> Any:
    """Turn a JSON tree into JsonObject/tuple form so it cannot be changed"""
    if isinstance(value, dict):
        return JsonObject((key, freeze_json(item)) for key, item in value.items())
    if isinstance(value, list):
        return tuple(freeze_json(item) for item in value)
    return value


def thaw_json(value: Any) -> Any:
    """Turn a frozen JSON tree back into plain dicts and lists"""
    if isinstance(value, Mapping):
        return {key: thaw_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw_json(item) for item in value]
    return value


# Opaque extension payloads (database_specific, ecosystem_specific) are kept
# as generic JSON trees and never inspected.
OpaqueJson = Annotated[
    Optional[JsonValue],
    BeforeValidator(thaw_json),
    AfterValidator(freeze_json),
    PlainSerializer(thaw_json),
]


class OsvError(Exception):
    """Base class for errors raised by the OSV model and its parsers"""

    pass


class ValidationError(OsvError):
    """Raised when a constructed entity violates a model invariant"""

    def __init__(self, rule: str):
        self.rule = rule
        super().__init__(rule)


class EventType(str, Enum):
    INTRODUCED = "INTRODUCED"
    FIXED = "FIXED"
    LAST_AFFECTED = "LAST_AFFECTED"
    LIMIT = "LIMIT"


class RangeType(str, Enum):
    ECOSYSTEM = "ECOSYSTEM"
    GIT = "GIT"
    SEMVER = "SEMVER"


class ReferenceType(str, Enum):
    ADVISORY = "ADVISORY"
    ARTICLE = "ARTICLE"
    FIX = "FIX"
    PACKAGE = "PACKAGE"
    REPORT = "REPORT"
    WEB = "WEB"


class SeverityType(str, Enum):
    CVSS_V3 = "CVSS_V3"


class OsvBaseModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


def normalize_instant(value: datetime) -> datetime:
    """Convert an offset-aware timestamp to the equivalent UTC instant"""
    return value.astimezone(timezone.utc)
