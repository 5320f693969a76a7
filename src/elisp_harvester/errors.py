"""
Error taxonomy for metadata extraction.

Only conditions that must stop an extraction are exceptions. Missing or
malformed single-valued fields (license, address, dates) are reported as
absent values instead.
"""


class HarvesterError(Exception):
    """Base class for all elisp-harvester errors."""


class MalformedVersionError(HarvesterError, ValueError):
    """A raw version string cannot be interpreted."""

    def __init__(self, raw: str | None, reason: str = ""):
        self.raw = raw
        message = f"Malformed version {raw!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class OrderingViolationError(HarvesterError):
    """A new version is strictly less than the previously published one."""

    def __init__(self, version: str, old_version: str):
        self.version = version
        self.old_version = old_version
        super().__init__(f"Version {version!r} is older than previous version {old_version!r}")


class MainFileUndeterminableError(HarvesterError):
    """No main file can be chosen among several candidate files."""

    def __init__(self, source: str, candidates: list[str] | None = None):
        self.source = source
        self.candidates = candidates or []
        super().__init__(
            f"Cannot determine main file of {source} among {len(self.candidates)} candidates"
        )
