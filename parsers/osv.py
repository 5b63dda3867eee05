import json
import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar, Union

import pydantic

from models import (
    Affected,
    Credit,
    Event,
    OsvBaseModel,
    Package,
    Range,
    RangeType,
    Reference,
    ReferenceType,
    Severity,
    SeverityType,
    ValidationError,
    Vulnerability,
    thaw_json,
)

from .errors import DecodeError
from .event import decode_event, encode_event
from .timestamp import decode_timestamp, encode_timestamp

logger = logging.getLogger(__name__)

RawDocument = Union[str, bytes, Dict[str, Any]]
ModelT = TypeVar("ModelT", bound=OsvBaseModel)
EnumT = TypeVar("EnumT", bound=Enum)

DEFAULT_CONFIG: Dict[str, Any] = {
    "indent": None,
    "sort_keys": False,
    "skip_invalid": False,
}


class OsvParser:
    """
    Converts OSV JSON documents to and from the entity model.

    Decoding walks the JSON tree field by field, hands events and timestamps
    to their codecs and lets the models enforce their own invariants. Keys
    outside the schema are ignored; database_specific and ecosystem_specific
    payloads are carried through untouched.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        self.config = {**DEFAULT_CONFIG, **(config or {})}

        self.entity_dumpers = {
            Vulnerability: self._dump_vulnerability,
            Affected: self._dump_affected,
            Package: self._dump_package,
            Range: self._dump_range,
            Event: encode_event,
            Reference: self._dump_reference,
            Severity: self._dump_severity,
            Credit: self._dump_credit,
        }

    def parse(self, data: RawDocument) -> Vulnerability:
        """Decode a complete OSV document"""
        return self._parse_vulnerability(self._load(data), "")

    def parse_batch(self, records: Iterable[RawDocument]) -> List[Vulnerability]:
        """Decode several documents, optionally skipping the invalid ones"""
        vulnerabilities = []
        skipped = 0

        for index, record in enumerate(records):
            try:
                vulnerabilities.append(self.parse(record))
            except (DecodeError, ValidationError) as e:
                if not self.config["skip_invalid"]:
                    raise
                skipped += 1
                logger.warning(f"Skipping invalid OSV record #{index}: {e}")

        logger.debug(
            f"Decoded {len(vulnerabilities)} OSV records, skipped {skipped}"
        )
        return vulnerabilities

    def parse_affected(self, tree: Any) -> Affected:
        return self._parse_affected(tree, "")

    def parse_package(self, tree: Any) -> Package:
        return self._parse_package(tree, "")

    def parse_range(self, tree: Any) -> Range:
        return self._parse_range(tree, "")

    def parse_event(self, tree: Any) -> Event:
        return decode_event(tree, "")

    def parse_reference(self, tree: Any) -> Reference:
        return self._parse_reference(tree, "")

    def parse_severity(self, tree: Any) -> Severity:
        return self._parse_severity(tree, "")

    def parse_credit(self, tree: Any) -> Credit:
        return self._parse_credit(tree, "")

    def to_dict(self, entity: OsvBaseModel) -> Dict[str, Any]:
        """Encode any entity into its JSON tree"""
        dumper = self.entity_dumpers.get(type(entity))
        if not dumper:
            raise TypeError(f"Not an OSV entity: {type(entity).__name__}")
        return dumper(entity)

    def dump(self, entity: OsvBaseModel) -> str:
        """Encode any entity into JSON text"""
        return json.dumps(
            self.to_dict(entity),
            indent=self.config["indent"],
            sort_keys=self.config["sort_keys"],
            ensure_ascii=False,
        )

    def _load(self, data: RawDocument) -> Dict[str, Any]:
        if isinstance(data, bytes):
            try:
                data = data.decode("utf-8")
            except UnicodeDecodeError as e:
                raise DecodeError("", f"Invalid UTF-8 input: {e}")

        if isinstance(data, str):
            try:
                data = json.loads(data)
            except (json.JSONDecodeError, RecursionError) as e:
                raise DecodeError("", f"Invalid JSON format: {e}")

        return _expect_object(data, "")

    def _parse_vulnerability(self, tree: Any, path: str) -> Vulnerability:
        obj = _expect_object(tree, path)

        fields: Dict[str, Any] = {
            "id": _required(obj, "id", path),
            "modified": decode_timestamp(
                _required(obj, "modified", path), _join(path, "modified")
            ),
            "aliases": _optional_list(obj, "aliases", path),
            "related": _optional_list(obj, "related", path),
            "summary": obj.get("summary"),
            "details": obj.get("details"),
            "severity": [
                self._parse_severity(item, item_path)
                for item_path, item in _items(obj, "severity", path)
            ],
            "affected": [
                self._parse_affected(item, item_path)
                for item_path, item in _items(obj, "affected", path)
            ],
            "references": [
                self._parse_reference(item, item_path)
                for item_path, item in _items(obj, "references", path)
            ],
            "database_specific": obj.get("database_specific"),
            "credits": [
                self._parse_credit(item, item_path)
                for item_path, item in _items(obj, "credits", path)
            ],
        }

        for key in ("published", "withdrawn"):
            if obj.get(key) is not None:
                fields[key] = decode_timestamp(obj[key], _join(path, key))

        if obj.get("schema_version") is not None:
            fields["schema_version"] = obj["schema_version"]

        return _build(Vulnerability, fields, path)

    def _parse_affected(self, tree: Any, path: str) -> Affected:
        obj = _expect_object(tree, path)

        fields = {
            "pkg": self._parse_package(
                _required(obj, "package", path), _join(path, "package")
            ),
            "ranges": [
                self._parse_range(item, item_path)
                for item_path, item in _items(obj, "ranges", path)
            ],
            "versions": _optional_list(obj, "versions", path),
            "ecosystem_specific": obj.get("ecosystem_specific"),
            "database_specific": obj.get("database_specific"),
        }
        return _build(Affected, fields, path)

    def _parse_package(self, tree: Any, path: str) -> Package:
        obj = _expect_object(tree, path)

        fields = {
            "ecosystem": _required(obj, "ecosystem", path),
            "name": _required(obj, "name", path),
            "purl": obj.get("purl"),
        }
        return _build(Package, fields, path)

    def _parse_range(self, tree: Any, path: str) -> Range:
        obj = _expect_object(tree, path)

        events_path = _join(path, "events")
        raw_events = _expect_list(_required(obj, "events", path), events_path)

        fields = {
            "type": _enum(
                RangeType, _required(obj, "type", path), _join(path, "type"), "range type"
            ),
            "repo": obj.get("repo"),
            "events": [
                decode_event(event, f"{events_path}[{index}]")
                for index, event in enumerate(raw_events)
            ],
            "database_specific": obj.get("database_specific"),
        }
        return _build(Range, fields, path)

    def _parse_reference(self, tree: Any, path: str) -> Reference:
        obj = _expect_object(tree, path)

        fields = {
            "type": _enum(
                ReferenceType,
                _required(obj, "type", path),
                _join(path, "type"),
                "reference type",
            ),
            "url": _required(obj, "url", path),
        }
        return _build(Reference, fields, path)

    def _parse_severity(self, tree: Any, path: str) -> Severity:
        obj = _expect_object(tree, path)

        fields = {
            "type": _enum(
                SeverityType,
                _required(obj, "type", path),
                _join(path, "type"),
                "severity type",
            ),
            "score": _required(obj, "score", path),
        }
        return _build(Severity, fields, path)

    def _parse_credit(self, tree: Any, path: str) -> Credit:
        obj = _expect_object(tree, path)

        fields = {
            "name": _required(obj, "name", path),
            "contact": _optional_list(obj, "contact", path),
        }
        return _build(Credit, fields, path)

    def _dump_vulnerability(self, vuln: Vulnerability) -> Dict[str, Any]:
        tree: Dict[str, Any] = {
            "schema_version": vuln.schema_version,
            "id": vuln.id,
            "modified": encode_timestamp(vuln.modified),
        }

        if vuln.published is not None:
            tree["published"] = encode_timestamp(vuln.published)
        if vuln.withdrawn is not None:
            tree["withdrawn"] = encode_timestamp(vuln.withdrawn)

        _put_list(tree, "aliases", vuln.aliases)
        _put_list(tree, "related", vuln.related)
        _put_value(tree, "summary", vuln.summary)
        _put_value(tree, "details", vuln.details)
        _put_list(tree, "severity", [self._dump_severity(s) for s in vuln.severity])
        _put_list(tree, "affected", [self._dump_affected(a) for a in vuln.affected])
        _put_list(
            tree, "references", [self._dump_reference(r) for r in vuln.references]
        )
        _put_opaque(tree, "database_specific", vuln.database_specific)
        _put_list(tree, "credits", [self._dump_credit(c) for c in vuln.credits])

        return tree

    def _dump_affected(self, affected: Affected) -> Dict[str, Any]:
        tree: Dict[str, Any] = {
            "package": self._dump_package(affected.pkg),
            "ranges": [self._dump_range(r) for r in affected.ranges],
        }

        _put_list(tree, "versions", affected.versions)
        _put_opaque(tree, "ecosystem_specific", affected.ecosystem_specific)
        _put_opaque(tree, "database_specific", affected.database_specific)

        return tree

    def _dump_package(self, package: Package) -> Dict[str, Any]:
        tree = {"ecosystem": package.ecosystem, "name": package.name}
        _put_value(tree, "purl", package.purl)
        return tree

    def _dump_range(self, range_: Range) -> Dict[str, Any]:
        tree: Dict[str, Any] = {"type": range_.type.value}
        _put_value(tree, "repo", range_.repo)
        tree["events"] = [encode_event(event) for event in range_.events]
        _put_opaque(tree, "database_specific", range_.database_specific)
        return tree

    def _dump_reference(self, reference: Reference) -> Dict[str, Any]:
        return {"type": reference.type.value, "url": reference.url}

    def _dump_severity(self, severity: Severity) -> Dict[str, Any]:
        return {"type": severity.type.value, "score": severity.score}

    def _dump_credit(self, credit: Credit) -> Dict[str, Any]:
        tree: Dict[str, Any] = {"name": credit.name}
        _put_list(tree, "contact", credit.contact)
        return tree


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _expect_object(value: Any, path: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise DecodeError(
            path, f"expected a JSON object, got {type(value).__name__}", value
        )
    return value


def _expect_list(value: Any, path: str) -> List[Any]:
    if not isinstance(value, list):
        raise DecodeError(
            path, f"expected a JSON array, got {type(value).__name__}", value
        )
    return value


def _required(obj: Dict[str, Any], key: str, path: str) -> Any:
    value = obj.get(key)
    if value is None:
        raise DecodeError(_join(path, key), "missing required field")
    return value


def _optional_list(obj: Dict[str, Any], key: str, path: str) -> List[Any]:
    # null is treated the same as an absent key
    value = obj.get(key)
    if value is None:
        return []
    return _expect_list(value, _join(path, key))


def _items(obj: Dict[str, Any], key: str, path: str):
    list_path = _join(path, key)
    for index, item in enumerate(_optional_list(obj, key, path)):
        yield f"{list_path}[{index}]", item


def _enum(enum_cls: Type[EnumT], value: Any, path: str, label: str) -> EnumT:
    if not isinstance(value, str):
        raise DecodeError(path, f"{label} must be a string", value)
    try:
        return enum_cls(value)
    except ValueError:
        raise DecodeError(path, f"unknown {label}: {value}", value) from None


def _build(model_cls: Type[ModelT], fields: Dict[str, Any], path: str) -> ModelT:
    # Invariant violations (models.ValidationError) are not caught here.
    try:
        return model_cls(**fields)
    except pydantic.ValidationError as e:
        error = e.errors()[0]
        location = path
        for part in error["loc"]:
            if isinstance(part, int):
                location += f"[{part}]"
            else:
                location = _join(location, str(part))
        raise DecodeError(location, error["msg"], error.get("input")) from e
    except RecursionError as e:
        raise DecodeError(path, f"payload nested too deeply: {e}") from None


def _put_value(tree: Dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        tree[key] = value


def _put_list(tree: Dict[str, Any], key: str, values: Iterable[Any]) -> None:
    values = list(values)
    if values:
        tree[key] = values


def _put_opaque(tree: Dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        tree[key] = thaw_json(value)


_default_parser = OsvParser()


def decode(data: RawDocument) -> Vulnerability:
    """Decode an OSV document with the default parser settings"""
    return _default_parser.parse(data)


def encode(vuln: Vulnerability) -> str:
    """Encode a vulnerability as compact JSON text"""
    return _default_parser.dump(vuln)
