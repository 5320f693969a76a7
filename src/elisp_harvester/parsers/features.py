"""
Feature Graph Scanner
=====================

Finds what an Emacs Lisp file provides and requires:

    (provide 'foo)
    (provide 'foo '(sub-a sub-b))
    (require 'bar)                  ; hard
    (require 'baz nil t)            ; soft, NOERROR is non-nil

Declarations inside strings and comments are ignored, so example code in
docstrings or the commentary does not leak into the dependency graph. This
is done with a small lexer that tracks string/comment state, not with
regexes over the whole file.

A feature required both hard and soft is recorded as hard only.
"""

import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from elisp_harvester.parsers.window import TextWindow

logger = logging.getLogger(__name__)

_SYMBOL = r"[^\s()\"';`,\[\]]+"
_ARG = r"(?:\"(?:[^\"\\]|\\.)*\"|\(\)|'?" + _SYMBOL + r")"

PROVIDE_RE = re.compile(
    rf"\(provide\s+'({_SYMBOL})(?:\s+'\(([^()]*)\))?\s*\)"
)
REQUIRE_RE = re.compile(
    rf"\(require\s+'({_SYMBOL})(?:\s+({_ARG})(?:\s+({_ARG}))?)?\s*\)"
)

FALSE_VALUES = {"nil", "'nil", "()", "'()"}


@dataclass
class FileFeatures:
    """Features declared by one file or merged over a whole source."""

    provides: set[str] = field(default_factory=set)
    subfeatures: dict[str, set[str]] = field(default_factory=dict)
    hard: set[str] = field(default_factory=set)
    soft: set[str] = field(default_factory=set)

    def add_requirement(self, feature: str, soft: bool) -> None:
        if soft:
            if feature not in self.hard:
                self.soft.add(feature)
        else:
            self.hard.add(feature)
            self.soft.discard(feature)

    def update(self, other: "FileFeatures") -> None:
        self.provides.update(other.provides)
        for feature, subs in other.subfeatures.items():
            self.subfeatures.setdefault(feature, set()).update(subs)
        for feature in other.hard:
            self.add_requirement(feature, soft=False)
        for feature in other.soft:
            self.add_requirement(feature, soft=True)

    def drop_self_requirements(self) -> None:
        """Remove requirements satisfied by features provided alongside them."""
        self.hard -= self.provides
        self.soft -= self.provides

    def sorted_provides(self) -> list[str]:
        return sorted(self.provides)

    def sorted_hard(self) -> list[str]:
        return sorted(self.hard)

    def sorted_soft(self) -> list[str]:
        return sorted(self.soft)


# ──────────────────────────────────────────────
# Lexer
# ──────────────────────────────────────────────


class ElispLexer:
    """
    Minimal Emacs Lisp lexer.

    Tracks whether the scan position is in code, a string literal or a
    comment, and yields the offsets of opening parentheses that are in code.
    Handles backslash escapes, character literals such as ?\\" and ?;,
    and #| ... |# block comments.
    """

    def __init__(self, text: str):
        self.text = text

    def code_parens(self) -> Iterator[int]:
        text = self.text
        length = len(text)
        pos = 0
        while pos < length:
            char = text[pos]
            if char == ";":
                newline = text.find("\n", pos)
                pos = length if newline < 0 else newline + 1
            elif char == '"':
                pos = self._skip_string(pos + 1)
            elif char == "?" and not self._inside_symbol(pos):
                # Character literal: ?x, ?\x
                pos += 3 if text.startswith("?\\", pos) else 2
            elif char == "\\":
                pos += 2
            elif text.startswith("#|", pos):
                end = text.find("|#", pos + 2)
                pos = length if end < 0 else end + 2
            elif char == "(":
                yield pos
                pos += 1
            else:
                pos += 1

    def _inside_symbol(self, pos: int) -> bool:
        """A '?' preceded by a symbol character (as in `foo?`) is not a character literal."""
        if pos == 0:
            return False
        before = self.text[pos - 1]
        return not before.isspace() and before not in "()'`,[\"#"

    def _skip_string(self, pos: int) -> int:
        text = self.text
        length = len(text)
        while pos < length:
            char = text[pos]
            if char == "\\":
                pos += 2
            elif char == '"':
                return pos + 1
            else:
                pos += 1
        return length


# ──────────────────────────────────────────────
# Scanning
# ──────────────────────────────────────────────


def scan_features(text: str, name: str | None = None) -> FileFeatures:
    """Scan one file's text for provide and require forms in code context."""
    features = FileFeatures()
    for pos in ElispLexer(text).code_parens():
        provide = PROVIDE_RE.match(text, pos)
        if provide:
            feature = provide.group(1)
            features.provides.add(feature)
            if provide.group(2):
                features.subfeatures.setdefault(feature, set()).update(provide.group(2).split())
            continue

        require = REQUIRE_RE.match(text, pos)
        if require:
            noerror = require.group(3)
            soft = noerror is not None and noerror not in FALSE_VALUES
            features.add_requirement(require.group(1), soft)

    if name:
        logger.debug(
            f"[FEATURES] {name}: provides {len(features.provides)}, "
            f"requires {len(features.hard)} hard / {len(features.soft)} soft"
        )
    return features


def scan_window(window: TextWindow) -> FileFeatures:
    return scan_features(window.text, window.name)


def merge_features(per_file: Iterable[FileFeatures]) -> FileFeatures:
    """Union per-file results; requirements provided within the set are dropped."""
    merged = FileFeatures()
    for features in per_file:
        merged.update(features)
    merged.drop_self_requirements()
    return merged


# ──────────────────────────────────────────────
# Package resolution
# ──────────────────────────────────────────────


def _group(features: Iterable[str], table: dict[str, str], missing: list[str]) -> list[tuple[str | None, list[str]]]:
    groups: dict[str | None, set[str]] = {}
    for feature in features:
        package = table.get(feature)
        if package is None and feature not in missing:
            missing.append(feature)
        groups.setdefault(package, set()).add(feature)
    return [
        (package, sorted(groups[package]))
        for package in sorted(groups, key=lambda p: (p is not None, p or ""))
    ]


def requires_packages(
    hard: Iterable[str],
    soft: Iterable[str],
    table: dict[str, str] | None = None,
    missing: list[str] | None = None,
    include: Iterable[str] = (),
    exclude: Iterable[str] = (),
    package: str | None = None,
) -> tuple[list[tuple[str | None, list[str]]], list[tuple[str | None, list[str]]]]:
    """
    Group required features by the package that provides them.

    Args:
        hard: Features required unconditionally.
        soft: Features required only if available.
        table: Feature -> owning package lookup.
        missing: Receives features with no known package (appended, deduplicated).
        include: Features to add as hard requirements although not detected.
        exclude: Features to drop although detected.
        package: Name of the package being resolved; its own features are dropped.

    Returns:
        (hard_groups, soft_groups), each a list of (package, features) sorted
        by package with the unresolved (None) group first.
    """
    table = table or {}
    if missing is None:
        missing = []
    excluded = set(exclude)

    hard_set = (set(hard) | set(include)) - excluded
    soft_set = set(soft) - excluded - hard_set
    if package is not None:
        hard_set = {feature for feature in hard_set if table.get(feature) != package}
        soft_set = {feature for feature in soft_set if table.get(feature) != package}

    before = len(missing)
    hard_groups = _group(sorted(hard_set), table, missing)
    soft_groups = _group(sorted(soft_set), table, missing)
    if len(missing) > before:
        logger.info(f"[FEATURES] {package or 'package'}: {len(missing) - before} features with unknown package")
    return hard_groups, soft_groups
