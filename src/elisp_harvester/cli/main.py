"""
Elisp Harvester CLI — Emacs Lisp package metadata extractor.

Usage:
    elisp-harvester extract ./magit --previous ./catalog/magit.json
    elisp-harvester harvest ./elpa/packages --format json --output-dir ./catalog
    elisp-harvester bump 0.1 0.1
"""

import asyncio
import json
import logging
import sys

import click


def _configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@click.group()
@click.version_option(package_name="elisp-harvester")
def cli():
    """Elisp Harvester — Emacs Lisp package metadata extractor."""
    pass


@cli.command()
@click.argument("source", nargs=-1, required=True, type=click.Path(exists=True))
@click.option("--main-file", "-m", type=click.Path(exists=True), default=None, help="File to read headers from.")
@click.option("--previous", "-p", type=click.Path(), default=None, help="Previous JSON record to fill in from.")
@click.option("--name", "-n", type=str, default=None, help="Package name (defaults to the source name).")
@click.option("--strict-version", is_flag=True, help="Fail on a malformed version instead of keeping it raw.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
def extract(source, main_file, previous, name, strict_version, verbose):
    """Extract the metadata of one package and print it as JSON."""
    from pathlib import Path

    from elisp_harvester.core.extractor import extract as extract_package
    from elisp_harvester.errors import HarvesterError
    from elisp_harvester.exporters.json_export import load_record

    _configure_logging(verbose)

    paths = [Path(path) for path in source]
    missing: list[str] = []
    try:
        record = extract_package(
            paths[0] if len(paths) == 1 else paths,
            main_file=Path(main_file) if main_file else None,
            previous=load_record(Path(previous)) if previous else None,
            name=name,
            missing=missing,
            strict_version=strict_version,
        )
    except HarvesterError as e:
        raise click.ClickException(str(e))

    click.echo(json.dumps(record.to_dict(), indent=2))
    if missing:
        click.echo(f"Features without a known package: {', '.join(missing)}", err=True)


@cli.command()
@click.argument("roots", nargs=-1, required=True, type=click.Path(exists=True, file_okay=False))
@click.option(
    "--format",
    "-f",
    "fmt",
    type=click.Choice(["json", "sqlite"]),
    default="json",
    help="Export format.",
)
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(),
    default="./catalog",
    help="Output directory for package records.",
)
@click.option(
    "--previous-dir",
    type=click.Path(),
    default=None,
    help="Directory of previous JSON records (defaults to the output directory).",
)
@click.option("--limit", "-l", type=int, default=None, help="Limit number of packages.")
@click.option("--no-resume", is_flag=True, help="Don't fill in from previous records.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
def harvest(roots, fmt, output_dir, previous_dir, limit, no_resume, verbose):
    """Extract every package below the given directories into a catalog."""
    from pathlib import Path

    from elisp_harvester.core.harvester import PackageHarvester
    from elisp_harvester.exporters import get_exporter

    _configure_logging(verbose)

    exporter = get_exporter(fmt, output_dir)
    harvester = PackageHarvester(
        exporters=[exporter],
        previous_dir=Path(previous_dir or output_dir),
    )

    asyncio.run(
        harvester.run(
            roots=[Path(root) for root in roots],
            limit=limit,
            resume=not no_resume,
        )
    )


@cli.command()
@click.argument("version")
@click.argument("old_version")
def bump(version, old_version):
    """Print the version to publish after OLD_VERSION.

    Pass '-' as VERSION when the package declares no version.
    """
    from elisp_harvester.errors import HarvesterError
    from elisp_harvester.parsers.version import bump as bump_version

    try:
        click.echo(bump_version(None if version == "-" else version, old_version))
    except HarvesterError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
