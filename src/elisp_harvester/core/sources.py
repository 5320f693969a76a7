"""
Package sources.

A package is scanned from a single file, a directory, or an explicit list
of files and directories. The variant is decided once, when a path is
turned into a Source, and everything downstream dispatches on the type.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from elisp_harvester.errors import MainFileUndeterminableError

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".el"
IGNORED_SUFFIXES = ("-pkg.el", "-autoloads.el")
IGNORED_NAMES = {".dir-locals.el"}


@dataclass(frozen=True)
class SingleFile:
    path: Path

    @property
    def name(self) -> str:
        return self.path.name.removesuffix(SOURCE_SUFFIX)


@dataclass(frozen=True)
class Directory:
    path: Path

    @property
    def name(self) -> str:
        return self.path.resolve().name


@dataclass(frozen=True)
class SourceList:
    items: tuple["Source", ...]

    @property
    def name(self) -> str | None:
        return self.items[0].name if self.items else None


Source = SingleFile | Directory | SourceList


def as_source(value: "str | Path | Source | list | tuple") -> Source:
    """Turn a path, or a list of paths, into a Source."""
    if isinstance(value, (SingleFile, Directory, SourceList)):
        return value
    if isinstance(value, (list, tuple)):
        return SourceList(tuple(as_source(item) for item in value))
    path = Path(value)
    if path.is_dir():
        return Directory(path)
    return SingleFile(path)


def is_source_file(path: Path) -> bool:
    name = path.name
    return (
        name.endswith(SOURCE_SUFFIX)
        and name not in IGNORED_NAMES
        and not name.endswith(IGNORED_SUFFIXES)
    )


def _walk(directory: Path) -> Iterator[Path]:
    """Depth-first, sorted; skips hidden entries and symbolic links."""
    try:
        entries = sorted(directory.iterdir())
    except OSError as e:
        logger.warning(f"[SOURCES] Cannot list {directory}: {e}")
        return
    for entry in entries:
        if entry.name.startswith(".") or entry.is_symlink():
            continue
        if entry.is_dir():
            yield from _walk(entry)
        elif entry.is_file() and is_source_file(entry):
            yield entry


def source_files(source: Source) -> list[Path]:
    """Every recognized source file of a source, in a deterministic order."""
    match source:
        case SingleFile(path=path):
            return [path]
        case Directory(path=path):
            return list(_walk(path))
        case SourceList(items=items):
            files: list[Path] = []
            for item in items:
                for path in source_files(item):
                    if path not in files:
                        files.append(path)
            return files
        case _:
            raise TypeError(f"Not a source: {source!r}")


def _toggle_mode_suffix(name: str) -> str:
    return name.removesuffix("-mode") if name.endswith("-mode") else f"{name}-mode"


def main_file(source: Source, name: str | None = None) -> Path:
    """
    Pick the file that single-valued metadata is read from.

    A lone file is always the main file. Otherwise the file named after the
    package is chosen, then the same name with its `-mode` suffix toggled.

    Raises:
        MainFileUndeterminableError: if no file qualifies.
    """
    files = source_files(source)
    if len(files) == 1:
        return files[0]

    package = name or source.name
    if package:
        for candidate in (package, _toggle_mode_suffix(package)):
            filename = f"{candidate}{SOURCE_SUFFIX}"
            for path in files:
                if path.name == filename:
                    return path

    raise MainFileUndeterminableError(str(package or source), [str(path) for path in files])
