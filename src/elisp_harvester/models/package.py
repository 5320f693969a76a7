"""
Package Metadata Model.

Defines the record produced for one package by the metadata aggregator, the
fill-in merge used for incremental re-scans, and the reconstruction of a
record from its persisted field/value form.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from elisp_harvester.errors import MalformedVersionError
from elisp_harvester.parsers.version import parse as parse_version

logger = logging.getLogger(__name__)

RECORD_SCHEMA_VERSION = "1.0.0"

# (owning package or None when unresolved, sorted feature names)
Requirement = tuple[str | None, list[str]]


@dataclass(frozen=True)
class Person:
    """An author or maintainer. Either part may be unknown."""

    name: str | None = None
    address: str | None = None

    def to_list(self) -> list[str | None]:
        return [self.name, self.address]

    @classmethod
    def from_value(cls, value: Any) -> "Person | None":
        """Rebuild from a persisted [name, address] pair or {"name", "address"} mapping."""
        if isinstance(value, Person):
            return value
        if isinstance(value, dict):
            name, address = value.get("name"), value.get("address")
        elif isinstance(value, (list, tuple)) and len(value) == 2:
            name, address = value
        else:
            return None
        if name is None and address is None:
            return None
        return cls(name=name, address=address)


@dataclass
class PackageMetadata:
    """
    Metadata of one Emacs Lisp package.

    Absent values are None or empty collections, never empty strings.
    """

    name: str
    version: tuple[int, ...] | None = None
    version_raw: str | None = None
    summary: str | None = None
    created: date | None = None
    updated: date | None = None
    license: str | None = None
    authors: list[Person] = field(default_factory=list)
    maintainer: Person | None = None
    provides: list[str] = field(default_factory=list)
    requires_hard: list[Requirement] = field(default_factory=list)
    requires_soft: list[Requirement] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    homepage: str | None = None
    wikipage: str | None = None
    commentary: str | None = None

    def __post_init__(self):
        if self.maintainer is None and self.authors:
            self.maintainer = self.authors[0]

    def to_dict(self) -> dict:
        """Flat JSON-compatible mapping; absent fields are omitted."""
        data: dict[str, Any] = {"name": self.name}
        if self.version is not None:
            data["version"] = list(self.version)
        if self.version_raw is not None:
            data["version_raw"] = self.version_raw
        for key in ("summary", "license", "homepage", "wikipage", "commentary"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.created is not None:
            data["created"] = self.created.isoformat()
        if self.updated is not None:
            data["updated"] = self.updated.isoformat()
        if self.authors:
            data["authors"] = [person.to_list() for person in self.authors]
        if self.maintainer is not None:
            data["maintainer"] = self.maintainer.to_list()
        if self.provides:
            data["provides"] = list(self.provides)
        if self.requires_hard:
            data["requires_hard"] = [[package, list(features)] for package, features in self.requires_hard]
        if self.requires_soft:
            data["requires_soft"] = [[package, list(features)] for package, features in self.requires_soft]
        if self.keywords:
            data["keywords"] = list(self.keywords)
        data["schema_version"] = RECORD_SCHEMA_VERSION
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "PackageMetadata":
        """Deserialize from dictionary."""
        return cls.from_pairs(data.items())

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, Any]]) -> "PackageMetadata":
        """
        Rebuild a record from an ordered field/value sequence.

        Unknown fields are ignored and missing fields default to absent, so
        records written by older or newer versions still load.
        """
        values: dict[str, Any] = {}
        for key, value in pairs:
            if key in _READERS:
                if value is None:
                    continue
                try:
                    values[key] = _READERS[key](value)
                except (MalformedVersionError, ValueError, TypeError) as e:
                    logger.debug(f"[RECORD] Ignoring malformed {key} {value!r}: {e}")
            elif key != "schema_version":
                logger.debug(f"[RECORD] Ignoring unknown field {key!r}")

        record = cls(name=values.pop("name", None) or "")
        for key, value in values.items():
            if value is not None:
                setattr(record, key, value)
        if record.maintainer is None and record.authors:
            record.maintainer = record.authors[0]
        return record


def _read_date(value: Any) -> date | None:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        logger.debug(f"[RECORD] Ignoring malformed date {value!r}")
        return None


def _read_version(value: Any) -> tuple[int, ...] | None:
    if isinstance(value, str):
        return parse_version(value)
    return tuple(int(segment) for segment in value)


def _read_people(value: Any) -> list[Person]:
    return [person for person in (Person.from_value(item) for item in value) if person]


def _read_requirements(value: Any) -> list[Requirement]:
    return [(package, sorted(set(features))) for package, features in value]


def _read_strings(value: Any) -> list[str]:
    return sorted(set(value))


_READERS = {
    "name": str,
    "version": _read_version,
    "version_raw": str,
    "summary": str,
    "created": _read_date,
    "updated": _read_date,
    "license": str,
    "authors": _read_people,
    "maintainer": Person.from_value,
    "provides": _read_strings,
    "requires_hard": _read_requirements,
    "requires_soft": _read_requirements,
    "keywords": _read_strings,
    "homepage": str,
    "wikipage": str,
    "commentary": str,
}


def _pick(new, previous):
    """Take the new value unless it is absent."""
    if new is None or (isinstance(new, (list, tuple, str)) and not new):
        return previous
    return new


def fill_in(new: PackageMetadata, previous: PackageMetadata | None) -> PackageMetadata:
    """
    Merge a fresh extraction into the previous record.

    Every field the new extraction found wins; every field it did not find
    keeps its previous value. A previously known field is never cleared.
    """
    if previous is None:
        return new

    authors = _pick(new.authors, previous.authors)
    return PackageMetadata(
        name=new.name or previous.name,
        version=_pick(new.version, previous.version),
        version_raw=_pick(new.version_raw, previous.version_raw),
        summary=_pick(new.summary, previous.summary),
        created=_pick(new.created, previous.created),
        updated=_pick(new.updated, previous.updated),
        license=_pick(new.license, previous.license),
        authors=list(authors),
        maintainer=_pick(new.maintainer, previous.maintainer),
        provides=list(_pick(new.provides, previous.provides)),
        requires_hard=list(_pick(new.requires_hard, previous.requires_hard)),
        requires_soft=list(_pick(new.requires_soft, previous.requires_soft)),
        keywords=list(_pick(new.keywords, previous.keywords)),
        homepage=_pick(new.homepage, previous.homepage),
        wikipage=_pick(new.wikipage, previous.wikipage),
        commentary=_pick(new.commentary, previous.commentary),
    )
