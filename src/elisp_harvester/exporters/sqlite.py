"""
SQLite Exporter — Writes package records into a catalog database.

Scalar fields get their own columns so the catalog can be queried
directly; list fields are stored as JSON strings.
"""

import json
import logging
import sqlite3
from pathlib import Path

from elisp_harvester.models.package import PackageMetadata
from elisp_harvester.parsers.version import canonicalize

logger = logging.getLogger(__name__)


CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS packages (
    name TEXT PRIMARY KEY,
    version TEXT,
    version_raw TEXT,
    summary TEXT,
    created TEXT,
    updated TEXT,
    license TEXT,
    maintainer TEXT,
    homepage TEXT,
    provides TEXT,
    requires_hard TEXT,
    requires_soft TEXT,
    keywords TEXT,
    record TEXT NOT NULL
)
"""

INSERT_SQL = """
INSERT OR REPLACE INTO packages
(name, version, version_raw, summary, created, updated, license, maintainer,
 homepage, provides, requires_hard, requires_soft, keywords, record)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


class SQLiteExporter:
    """
    Exports PackageMetadata records to a SQLite database.

    Creates a 'packages' table keyed by package name; the full record is
    kept as JSON in the 'record' column.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(db_path))
        self.conn.execute(CREATE_TABLE_SQL)
        self.conn.commit()
        self.count = 0

    async def export(self, package: PackageMetadata) -> None:
        """Export a single package to the SQLite database."""
        record = package.to_dict()
        maintainer = package.maintainer
        self.conn.execute(
            INSERT_SQL,
            (
                package.name,
                canonicalize(package.version) if package.version else None,
                package.version_raw,
                package.summary,
                record.get("created"),
                record.get("updated"),
                package.license,
                (maintainer.name or maintainer.address) if maintainer else None,
                package.homepage,
                json.dumps(record.get("provides", [])),
                json.dumps(record.get("requires_hard", [])),
                json.dumps(record.get("requires_soft", [])),
                json.dumps(record.get("keywords", [])),
                json.dumps(record),
            ),
        )
        self.count += 1

        # Commit every 100 items for performance
        if self.count % 100 == 0:
            self.conn.commit()

    async def finalize(self) -> None:
        """Commit remaining changes and close the connection."""
        self.conn.commit()
        self.conn.close()
        logger.info(f"[SQLite] Export complete: {self.count} packages exported to {self.db_path}")
