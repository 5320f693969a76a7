"""
Package Harvester — Catalog builder over a tree of Emacs Lisp packages.

Runs the metadata aggregator over every package found below one or more
root directories:
- Two passes: the first maps every provided feature to its package, the
  second extracts each package and resolves its requirements against it
- Incremental re-scans that fill in from previously exported records
- Pluggable export backends
- Statistics and progress tracking
"""

import logging
import time
from pathlib import Path

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
)

from elisp_harvester.core.extractor import extract, provided_features
from elisp_harvester.core.sources import Directory, SingleFile, Source, is_source_file, source_files
from elisp_harvester.errors import HarvesterError
from elisp_harvester.exporters.base import Exporter, describe_exporter
from elisp_harvester.exporters.json_export import load_record, record_path
from elisp_harvester.models.package import PackageMetadata

logger = logging.getLogger("PackageHarvester")


class PackageHarvester:
    """
    Builds a package catalog from directories of Emacs Lisp packages.

    Every direct child of a root is one package: a directory holding
    `*.el` files, or a single `*.el` file.
    """

    def __init__(
        self,
        exporters: list[Exporter] | None = None,
        previous_dir: Path | None = None,
        features_table: dict[str, str] | None = None,
    ):
        self.exporters = exporters or []
        self.previous_dir = previous_dir
        # Extra feature -> package entries, e.g. features built into Emacs.
        self.features_table = dict(features_table or {})
        self.missing: list[str] = []

        self.stats: dict = {
            "packages": 0,
            "extracted": 0,
            "failed": 0,
            "incremental": 0,
            "start_time": 0.0,
        }

    # ──────────────────────────────────────────────
    # Discovery
    # ──────────────────────────────────────────────

    def discover_packages(self, roots: list[Path], limit: int | None = None) -> list[Source]:
        """List the package sources below the given roots."""
        sources: list[Source] = []
        for root in roots:
            root = Path(root)
            if not root.is_dir():
                logger.warning(f"Skipping {root}: not a directory")
                continue
            for entry in sorted(root.iterdir()):
                if entry.name.startswith(".") or entry.is_symlink():
                    continue
                if entry.is_dir():
                    source: Source = Directory(entry)
                    if not source_files(source):
                        logger.debug(f"Skipping {entry}: no source files")
                        continue
                elif entry.is_file() and is_source_file(entry):
                    source = SingleFile(entry)
                else:
                    continue
                sources.append(source)
                if limit and len(sources) >= limit:
                    return sources
        return sources

    def build_features_table(self, sources: list[Source]) -> dict[str, str]:
        """Map every feature provided by the given packages to its package."""
        table = dict(self.features_table)
        for source in sources:
            for feature in provided_features(source):
                owner = table.setdefault(feature, source.name)
                if owner != source.name:
                    logger.warning(f"Feature {feature!r} provided by both {owner} and {source.name}")
        logger.info(f"Feature table holds {len(table)} features.")
        return table

    # ──────────────────────────────────────────────
    # Extraction
    # ──────────────────────────────────────────────

    def _load_previous(self, name: str, resume: bool) -> PackageMetadata | None:
        if not resume or self.previous_dir is None:
            return None
        previous = load_record(record_path(self.previous_dir, name))
        if previous is not None:
            self.stats["incremental"] += 1
        return previous

    def extract_one(self, source: Source, table: dict[str, str], resume: bool = True) -> PackageMetadata | None:
        """Extract one package; failures are logged and counted, not raised."""
        try:
            record = extract(
                source,
                previous=self._load_previous(source.name, resume),
                features_table=table,
                missing=self.missing,
            )
        except (HarvesterError, OSError) as e:
            logger.error(f"Error extracting {source.name}: {e}")
            self.stats["failed"] += 1
            return None
        self.stats["extracted"] += 1
        return record

    async def _export_package(self, package: PackageMetadata) -> None:
        """Send a package to all configured exporters."""
        for exporter in self.exporters:
            try:
                await exporter.export(package)
            except Exception as e:
                logger.error(f"Exporter error ({type(exporter).__name__}): {e}")

    # ──────────────────────────────────────────────
    # Main Run
    # ──────────────────────────────────────────────

    async def run(
        self,
        roots: list[Path],
        limit: int | None = None,
        resume: bool = True,
    ) -> list[PackageMetadata]:
        """
        Harvest every package below the roots.

        Args:
            roots: Directories whose children are packages.
            limit: Maximum number of packages to process.
            resume: Fill in from records found in previous_dir.

        Returns:
            The extracted records, in discovery order.
        """
        self.stats["start_time"] = time.time()
        console = Console()

        # --- 1. DISCOVERY PHASE ---
        sources = self.discover_packages(roots, limit)
        if not sources:
            logger.warning("No packages found.")
            return []
        self.stats["packages"] = len(sources)
        logger.info(f"Starting harvest for {len(sources)} packages.")

        # --- 2. FEATURE TABLE ---
        with console.status("[bold cyan]Collecting provided features...[/bold cyan]"):
            table = self.build_features_table(sources)

        # --- 3. EXTRACTION PHASE ---
        records = await self._process_packages(sources, table, resume, console)

        # --- 4. FINALIZE EXPORTERS ---
        for exporter in self.exporters:
            try:
                await exporter.finalize()
            except Exception as e:
                logger.error(f"Exporter finalization error: {e}")

        # --- 5. PRINT STATS ---
        self._print_final_statistics(console)
        logger.info("Harvesting complete.")
        return records

    async def _process_packages(
        self, sources: list[Source], table: dict[str, str], resume: bool, console: Console
    ) -> list[PackageMetadata]:
        """Extract and export packages one at a time with progress tracking."""
        records = []
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeRemainingColumn(),
            console=console,
        ) as progress:
            task_id = progress.add_task("[green]Extracting...[/green]", total=len(sources))
            for source in sources:
                progress.update(task_id, description=f"[green]Extracting {source.name}...[/green]")
                record = self.extract_one(source, table, resume)
                if record is not None:
                    await self._export_package(record)
                    records.append(record)
                progress.advance(task_id)
        return records

    def _get_stats_summary(self) -> str:
        """Get human-readable statistics summary."""
        elapsed = time.time() - self.stats["start_time"]
        rate = self.stats["extracted"] / elapsed if elapsed > 0 else 0
        return (
            f"Extracted: {self.stats['extracted']}/{self.stats['packages']} | "
            f"Incremental: {self.stats['incremental']} | "
            f"Rate: {rate:.1f} pkg/s | Elapsed: {elapsed:.1f}s"
        )

    def _print_final_statistics(self, console: Console) -> None:
        """Print final harvest statistics."""
        console.print("\n[bold green][DONE] Harvesting Complete[/bold green]")
        console.print(
            f"Total: {self.stats['packages']} | Extracted: {self.stats['extracted']} | "
            f"Failed: {self.stats['failed']}"
        )
        console.print(f"\n[cyan]Final Stats:[/cyan] {self._get_stats_summary()}")
        for exporter in self.exporters:
            console.print(f"  {describe_exporter(exporter)}")
        if self.missing:
            console.print(f"\n[yellow]Features without a known package ({len(self.missing)}):[/yellow]")
            console.print("  " + ", ".join(sorted(self.missing)))
