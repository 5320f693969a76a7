"""
Elisp Harvester - Emacs Lisp package metadata extractor.

Reads package metadata (version, license, authors, feature dependencies,
dates, commentary) from Emacs Lisp source files by scanning their text,
without evaluating them, and builds package catalogs from it.
"""

__version__ = "0.1.0"


def __getattr__(name: str):
    """Lazy import for heavy dependencies."""
    if name == "PackageHarvester":
        from elisp_harvester.core.harvester import PackageHarvester

        return PackageHarvester
    if name == "PackageMetadata":
        from elisp_harvester.models.package import PackageMetadata

        return PackageMetadata
    if name == "extract":
        from elisp_harvester.core.extractor import extract

        return extract
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["PackageHarvester", "PackageMetadata", "extract", "__version__"]
