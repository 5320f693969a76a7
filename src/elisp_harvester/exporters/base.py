"""
Exporter Protocol — Interface of the catalog record writers.

The harvester hands every extracted record to each configured exporter and
reads `count` back for its final statistics.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from elisp_harvester.models.package import PackageMetadata


@runtime_checkable
class Exporter(Protocol):
    """A destination for PackageMetadata records (JSON files, SQLite catalog)."""

    # Records written so far.
    count: int

    async def export(self, package: PackageMetadata) -> None:
        """Persist one record, replacing any earlier record of the same package."""
        ...

    async def finalize(self) -> None:
        """Flush and release resources once the harvest is over."""
        ...


def describe_exporter(exporter: Exporter) -> str:
    """One-line summary used in the harvest statistics, e.g. 'JSONExporter: 12 exported'."""
    return f"{type(exporter).__name__}: {exporter.count} exported"
