"""Export backends for extracted package records."""

from elisp_harvester.exporters.base import Exporter
from elisp_harvester.exporters.json_export import JSONExporter, load_record
from elisp_harvester.exporters.sqlite import SQLiteExporter


def get_exporter(format_name: str, output_dir: str) -> Exporter:
    """Factory function to create an exporter by format name."""
    from pathlib import Path

    out = Path(output_dir)
    match format_name:
        case "json":
            return JSONExporter(output_dir=out)
        case "sqlite":
            return SQLiteExporter(db_path=out / "catalog.db")
        case _:
            raise ValueError(f"Unknown export format: {format_name!r}. Use 'json' or 'sqlite'.")


__all__ = ["Exporter", "JSONExporter", "SQLiteExporter", "get_exporter", "load_record"]
