"""
Metadata Aggregator.

Combines the per-file scanners into one PackageMetadata record:

- provides/requires are computed over every file of the source
- all single-valued fields are read from the main file only
- the result is merged into a previous record, if one is given, so fields
  the new scan cannot find keep their previously known values
"""

import logging
from collections.abc import Iterable
from pathlib import Path

from elisp_harvester.core.sources import Source, as_source, main_file as find_main_file, source_files
from elisp_harvester.errors import MalformedVersionError
from elisp_harvester.models.package import PackageMetadata, fill_in
from elisp_harvester.parsers import header
from elisp_harvester.parsers.features import FileFeatures, merge_features, requires_packages, scan_window
from elisp_harvester.parsers.license import classify_license
from elisp_harvester.parsers.person import parse_people
from elisp_harvester.parsers.version import parse_lenient
from elisp_harvester.parsers.window import TextWindow

logger = logging.getLogger(__name__)


def scan_source(source: Source) -> FileFeatures:
    """Union the features of every file of a source."""
    return merge_features(scan_window(TextWindow.from_path(path)) for path in source_files(source))


def provided_features(source: Source) -> list[str]:
    return scan_source(source).sorted_provides()


def _read_version(window: TextWindow, strict: bool) -> tuple[tuple[int, ...] | None, str | None]:
    raw = header.version_text(window)
    if raw is None:
        return None, None
    try:
        return parse_lenient(raw), raw
    except MalformedVersionError as e:
        if strict:
            raise
        logger.warning(f"[EXTRACT] {window.name}: {e}")
        return None, raw


def extract_fields(window: TextWindow, name: str, strict_version: bool = False) -> PackageMetadata:
    """Read the single-valued fields of one file."""
    version, version_raw = _read_version(window, strict_version)
    authors = parse_people(header.authors_text(window))
    maintainers = parse_people(header.maintainer_text(window))
    license_header = header.license_text(window)

    return PackageMetadata(
        name=name,
        version=version,
        version_raw=version_raw,
        summary=header.summary(window),
        created=header.created(window),
        updated=header.updated(window),
        license=classify_license(license_header, window.header_text()),
        authors=authors,
        maintainer=maintainers[0] if maintainers else None,
        keywords=header.keywords(window),
        homepage=header.homepage(window),
        wikipage=header.wikipage(window),
        commentary=header.commentary(window),
    )


def extract(
    source: "Source | str | Path | list",
    main_file: Path | None = None,
    previous: PackageMetadata | None = None,
    *,
    name: str | None = None,
    features_table: dict[str, str] | None = None,
    missing: list[str] | None = None,
    include: Iterable[str] = (),
    exclude: Iterable[str] = (),
    strict_version: bool = False,
) -> PackageMetadata:
    """
    Extract the metadata of one package.

    Args:
        source: File, directory, or list of them (or an already built Source).
        main_file: File to read single-valued fields from; determined from
            the source when omitted.
        previous: Earlier record of the same package to fill in from.
        name: Package name; defaults to the source's name.
        features_table: Feature -> package lookup used to group requirements.
        missing: Receives required features with no known package.
        include: Features to force into the hard requirements.
        exclude: Features to drop from the requirements.
        strict_version: Raise MalformedVersionError instead of recording
            only the raw version string.

    Raises:
        MainFileUndeterminableError: if main_file is omitted and cannot be determined.
        MalformedVersionError: if strict_version is set and the version is malformed.
    """
    source = as_source(source)
    package = name or source.name
    if main_file is None:
        main_file = find_main_file(source, package)
    if not package:
        package = Path(main_file).name.removesuffix(".el")

    logger.debug(f"[EXTRACT] {package}: main file {main_file}")
    record = extract_fields(TextWindow.from_path(main_file), package, strict_version)

    features = scan_source(source)
    record.provides = features.sorted_provides()
    record.requires_hard, record.requires_soft = requires_packages(
        features.hard,
        features.soft,
        table=features_table,
        missing=missing,
        include=include,
        exclude=exclude,
        package=package,
    )

    return fill_in(record, previous)
