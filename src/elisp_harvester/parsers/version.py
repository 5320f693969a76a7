"""
Version Engine.

Parses raw version strings into ordered tuples, renders tuples back into a
canonical string, orders them, and computes the next version to publish.

A version tuple holds non-negative integers and negative qualifier codes:

    "1.2"          -> (1, 2)
    "1.0_alpha"    -> (1, 0, -4)
    "2.0rc3"       -> (2, 0, -1, 3)

Qualifiers are negative so that a pre-release sorts before the release it
precedes: (1, 0, -4) < (1, 0) because the missing segment counts as 0.
"""

import logging
import re

from elisp_harvester.errors import MalformedVersionError, OrderingViolationError

logger = logging.getLogger(__name__)

Version = tuple[int, ...]

# Qualifier tag -> code. Lower codes are earlier pre-releases.
QUALIFIERS: dict[str, int] = {
    "snapshot": -5,
    "alpha": -4,
    "beta": -3,
    "pre": -2,
    "rc": -1,
}
QUALIFIER_TAGS: dict[int, str] = {code: tag for tag, code in QUALIFIERS.items()}

DELIMITER = "_"

_QUALIFIER_WORDS = "|".join(sorted(QUALIFIERS, key=len, reverse=True))
_NUMBER = re.compile(r"\d+")
_QUALIFIER = re.compile(rf"[-._+ ]?({_QUALIFIER_WORDS})", re.IGNORECASE)
_SEPARATOR = re.compile(r"[-._+ ]")

# Informal spellings rewritten before parsing, in order.
STANDARDIZE_RULES: list[tuple[re.Pattern, str]] = [
    (re.compile(r"^\s*(?:version|ver\.?|rev\.?|release)\s*[:=]?\s*", re.IGNORECASE), ""),
    (re.compile(r"^[vV](?=\d)"), ""),
    (re.compile(rf"(?<=\d)({_QUALIFIER_WORDS})", re.IGNORECASE), r"_\1"),
    (re.compile(r"\.+$"), ""),
    (re.compile(r"\s+"), ""),
]


def standardize(raw: str) -> str:
    """Rewrite common informal spellings, e.g. 'v1.0' -> '1.0', '0.1alpha' -> '0.1_alpha'."""
    text = raw.strip()
    for pattern, replacement in STANDARDIZE_RULES:
        text = pattern.sub(replacement, text)
    return text


def parse(raw: str | None) -> Version:
    """
    Parse a version string into a tuple.

    Raises:
        MalformedVersionError: if the string is empty, does not start with a
            number, or contains anything other than numbers, dots, and the
            known qualifier words.
    """
    if raw is None:
        raise MalformedVersionError(raw, "no version")
    text = raw.strip()
    if not text:
        raise MalformedVersionError(raw, "empty")

    parts: list[int] = []
    pos = 0
    expect_number = True
    while pos < len(text):
        number = _NUMBER.match(text, pos)
        if number:
            parts.append(int(number.group()))
            pos = number.end()
            expect_number = False
            continue

        if not parts:
            raise MalformedVersionError(raw, "must start with a number")

        qualifier = _QUALIFIER.match(text, pos)
        if qualifier:
            parts.append(QUALIFIERS[qualifier.group(1).lower()])
            pos = qualifier.end()
            expect_number = False
            continue

        separator = _SEPARATOR.match(text, pos)
        if separator and not expect_number and pos + 1 < len(text):
            # A dot separates two numbers; any separator may follow a qualifier.
            if text[pos] != "." and parts[-1] >= 0:
                raise MalformedVersionError(raw, f"unexpected {text[pos]!r} at offset {pos}")
            pos = separator.end()
            expect_number = True
            continue

        raise MalformedVersionError(raw, f"unexpected {text[pos]!r} at offset {pos}")

    if expect_number:
        raise MalformedVersionError(raw, "trailing separator")
    return tuple(parts)


def canonicalize(version: Version) -> str:
    """
    Render a version tuple as a string that parses back to the same tuple.

    Raises:
        MalformedVersionError: for negative segments that are not qualifier codes.
    """
    if not version:
        raise MalformedVersionError(None, "empty version tuple")

    pieces = []
    for segment in version:
        if segment >= 0:
            pieces.append(str(segment))
        elif segment in QUALIFIER_TAGS:
            pieces.append(f"{DELIMITER}{QUALIFIER_TAGS[segment]}{DELIMITER}")
        else:
            raise MalformedVersionError(repr(version), f"unknown qualifier code {segment}")

    text = ".".join(pieces)
    text = text.replace(f".{DELIMITER}", DELIMITER).replace(f"{DELIMITER}.", DELIMITER)
    text = re.sub(f"{DELIMITER}+", DELIMITER, text)
    return text.strip(DELIMITER)


def compare(a: Version, b: Version) -> int:
    """Return -1, 0 or 1. Missing trailing segments count as 0."""
    width = max(len(a), len(b))
    padded_a = tuple(a) + (0,) * (width - len(a))
    padded_b = tuple(b) + (0,) * (width - len(b))
    if padded_a < padded_b:
        return -1
    if padded_a > padded_b:
        return 1
    return 0


def parse_lenient(raw: str) -> Version:
    """Standardize, then parse."""
    return parse(standardize(raw))


# ──────────────────────────────────────────────
# Bumping
# ──────────────────────────────────────────────

_LETTER_SUFFIX = re.compile(rf"^(.*(?:\d|(?i:{_QUALIFIER_WORDS})))([a-z]+)$")
_PSEUDO_VERSION = re.compile(r"^\d+$")


def _split_suffix(raw: str) -> tuple[Version, str]:
    """Split '0.1b' into ((0, 1), 'b') and '1.0_betaa' into ((1, 0, -3), 'a')."""
    try:
        return parse(raw), ""
    except MalformedVersionError:
        match = _LETTER_SUFFIX.match(raw.strip())
        if not match:
            raise
        return parse(match.group(1)), match.group(2)


def _next_suffix(suffix: str) -> str:
    if not suffix:
        return "a"
    if suffix[-1] == "z":
        return suffix + "a"
    return suffix[:-1] + chr(ord(suffix[-1]) + 1)


def _compare_suffixed(a: tuple[Version, str], b: tuple[Version, str]) -> int:
    order = compare(a[0], b[0])
    if order:
        return order
    if a[1] == b[1]:
        return 0
    return -1 if a[1] < b[1] else 1


def bump(version: str | None, old_version: str | None) -> str:
    """
    Compute the version to publish given the previously published one.

    - newer version: returned unchanged
    - same version: a letter suffix is appended or incremented ('0.1' -> '0.1a')
    - no version: the numeric successor of the previous pseudo-version
      ('0002' -> '0003'), or '0001' when there is no previous version

    Raises:
        OrderingViolationError: if version is older than old_version.
        MalformedVersionError: if either version cannot be parsed.
    """
    if version is None:
        if old_version is None:
            return "0001"
        if not _PSEUDO_VERSION.match(old_version.strip()):
            raise MalformedVersionError(old_version, "not a pseudo-version")
        old = old_version.strip()
        return str(int(old) + 1).zfill(len(old))

    if old_version is None:
        return version

    new = _split_suffix(version)
    old = _split_suffix(old_version)
    order = _compare_suffixed(new, old)
    if order > 0:
        return version
    if order < 0:
        raise OrderingViolationError(version, old_version)

    bumped = version.strip()
    if new[1]:
        bumped = bumped[: -len(new[1])]
    bumped += _next_suffix(new[1])
    logger.debug(f"[VERSION] {version} unchanged since last release, bumped to {bumped}")
    return bumped
