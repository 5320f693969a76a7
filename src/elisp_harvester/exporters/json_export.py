"""
JSON Exporter — One JSON record file per package.

The files double as the previous snapshots of an incremental harvest:
`load_record` reads one back into a PackageMetadata.
"""

import json
import logging
from pathlib import Path

import aiofiles

from elisp_harvester.models.package import PackageMetadata

logger = logging.getLogger(__name__)


def record_path(output_dir: Path, name: str) -> Path:
    return output_dir / f"{name}.json"


def load_record(path: Path) -> PackageMetadata | None:
    """
    Read a record written by JSONExporter.

    Returns None if the file does not exist or is not a valid record.
    """
    if not path.exists():
        return None
    try:
        with open(path) as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"[JSON] Failed to load record {path}: {e}")
        return None
    if not isinstance(data, dict):
        logger.warning(f"[JSON] Not a record: {path}")
        return None
    return PackageMetadata.from_dict(data)


class JSONExporter:
    """
    Exports PackageMetadata records as individual JSON files.

    Output structure:
        output_dir/
        ├── magit.json
        └── dash.json
    """

    def __init__(self, output_dir: Path):
        self.output_dir = output_dir
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.count = 0

    async def export(self, package: PackageMetadata) -> None:
        """Export a single package as a JSON file."""
        filepath = record_path(self.output_dir, package.name)

        async with aiofiles.open(filepath, "w") as f:
            await f.write(json.dumps(package.to_dict(), indent=2))

        self.count += 1
        logger.debug(f"[JSON] Exported {package.name}")

    async def finalize(self) -> None:
        """Log export summary."""
        logger.info(f"[JSON] Export complete: {self.count} packages exported to {self.output_dir}")
