"""
Header Field Locator.

Emacs Lisp libraries describe themselves in a comment header:

    ;;; foo.el --- Frobnicate the bar  -*- lexical-binding: t -*-

    ;; Author: Jane Doe <jane@example.com>
    ;;         John Roe <john@example.com>
    ;; Version: 1.2
    ;; Keywords: convenience, tools

    ;;; Commentary:

    ;; Long description.

    ;;; Code:

Headers are not written consistently, so every field is looked up through a
chain of alternative field names, taking the first non-empty result.
"""

import logging
import re
from datetime import date

from elisp_harvester.parsers.window import TextWindow

logger = logging.getLogger(__name__)

HEADER_LINE = re.compile(r"^(;+)([ \t]*)([A-Za-z][-A-Za-z0-9 ]*?)[ \t]*:[ \t]*(.*?)\s*$")
CONTINUATION_LINE = re.compile(r"^(;+)[ \t]+(\S.*?)\s*$")
# A continuation must not itself look like "Field-Name: value".
FIELD_LIKE = re.compile(r"^[A-Za-z][-A-Za-z0-9 ]*?[ \t]*:(?:\s|$)")

VERSION_FIELDS = ["Version", "Package-Version"]
UPDATED_FIELDS = ["Updated", "Last[- ]Updated", "Last[- ]Modified", "Modified", "Time-stamp"]
HOMEPAGE_FIELDS = ["Homepage", "URL", "Website", "Home[- ]Page"]
WIKIPAGE_FIELDS = ["EmacsWiki", "Wiki"]
AUTHOR_FIELDS = ["Authors?"]
MAINTAINER_FIELDS = ["Maintainers?"]
LICENSE_FIELDS = ["License", "Licence", "SPDX-License-Identifier"]

VERSION_VARIABLE = re.compile(
    r'^\((?:defconst|defvar|defcustom)\s+[^\s()]*-version\s+"([^"]+)"', re.MULTILINE
)
RCS_ID = re.compile(r"\$Id:\s+\S+,v\s+(\d[\d.]*)\s")
RCS_REVISION = re.compile(r"\$Revision:\s+(\d[\d.]*)\s*\$")

FIRST_LINE = re.compile(r"^;;;\s*\S+\s+---\s*(.*?)\s*$")
MODE_COOKIE = re.compile(r"-\*-.*?-\*-")
COMMENTARY_START = re.compile(r"^;;;+\s*Commentary:?\s*$", re.MULTILINE | re.IGNORECASE)
SECTION_HEADING = re.compile(r"^;;;+\s*\S", re.MULTILINE)
COMMENT_MARKER = re.compile(r"^;+ ?")
KEYWORD_RE = re.compile(r"^[-a-z]+$")

MONTHS = {
    name: index
    for index, names in enumerate(
        [
            ("jan", "january"), ("feb", "february"), ("mar", "march"), ("apr", "april"),
            ("may",), ("jun", "june"), ("jul", "july"), ("aug", "august"),
            ("sep", "sept", "september"), ("oct", "october"), ("nov", "november"),
            ("dec", "december"),
        ],
        start=1,
    )
    for name in names
}
_MONTH = r"([A-Za-z]{3,9})\.?"
DATE_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})"), "ymd"),
    (re.compile(rf"(\d{{1,2}})(?:st|nd|rd|th)?[-\s]+{_MONTH}[-\s,]+(\d{{4}})"), "dmy"),
    (re.compile(rf"{_MONTH}\s+(\d{{1,2}})(?:st|nd|rd|th)?,?\s+(\d{{4}})"), "mdy"),
    (re.compile(rf"{_MONTH}[-\s,]+(\d{{4}})"), "my"),
    (re.compile(r"(\d{4})[-/](\d{1,2})\b"), "ym"),
    (re.compile(r"\b(\d{4})\b"), "y"),
]


# ──────────────────────────────────────────────
# Locator
# ──────────────────────────────────────────────


def locate(window: TextWindow, field: str, multiline: bool = False) -> list[str]:
    """
    Find a header field.

    Args:
        window: Text to search; only the part before `;;; Code:` is used.
        field: Regex fragment matching the field name, case-insensitively.
        multiline: Also collect continuation lines.

    Returns:
        The value of the first matching line, followed by its continuation
        lines in multiline mode. Empty when the field is absent.
    """
    name_re = re.compile(rf"(?:{field})", re.IGNORECASE)
    lines = window.header_text().splitlines()
    for index, line in enumerate(lines):
        match = HEADER_LINE.match(line)
        if not match or not name_re.fullmatch(match.group(3).strip()):
            continue

        values = [match.group(4)] if match.group(4) else []
        if multiline:
            prefix = match.group(1)
            for following in lines[index + 1 :]:
                continuation = CONTINUATION_LINE.match(following)
                if not continuation or continuation.group(1) != prefix:
                    break
                text = continuation.group(2)
                if FIELD_LIKE.match(text):
                    break
                values.append(text)
        return values
    return []


def first_of(window: TextWindow, fields: list[str], multiline: bool = False) -> list[str]:
    """Try each field name in priority order and return the first non-empty result."""
    for field in fields:
        values = locate(window, field, multiline)
        if values:
            return values
    return []


def first_value(window: TextWindow, fields: list[str]) -> str | None:
    values = first_of(window, fields)
    return values[0] if values else None


# ──────────────────────────────────────────────
# Single-valued fields
# ──────────────────────────────────────────────


def version_text(window: TextWindow) -> str | None:
    """
    Raw version string, trying in order: the Version headers, a
    `(defconst foo-version "x.y")` form, the RCS $Id$ tag and the RCS
    $Revision$ tag.
    """
    header = first_value(window, VERSION_FIELDS)
    if header:
        return header
    for pattern in (VERSION_VARIABLE, RCS_ID, RCS_REVISION):
        window.goto(0)
        match = window.search(pattern)
        if match:
            logger.debug(f"[HEADER] {window.name}: version from {pattern.pattern[:20]!r}")
            return match.group(1)
    return None


def summary(window: TextWindow) -> str | None:
    """The one-line description after `---` on the first line."""
    first_line = window.text.split("\n", 1)[0]
    match = FIRST_LINE.match(first_line)
    if not match:
        return None
    text = MODE_COOKIE.sub("", match.group(1)).strip().rstrip(".").strip()
    if not text:
        return None
    return text[0].upper() + text[1:]


def keywords(window: TextWindow) -> list[str]:
    values = locate(window, "Keywords", multiline=True)
    words = set()
    for value in values:
        for word in re.split(r"[,\s]+", value.lower()):
            word = word.strip("\"'.;")
            if KEYWORD_RE.match(word):
                words.add(word)
    return sorted(words)


def parse_date(text: str | None) -> date | None:
    """Best-effort date parsing; returns None for anything unrecognized."""
    if not text:
        return None
    for pattern, order in DATE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        groups = match.groups()
        try:
            if order == "ymd":
                return date(int(groups[0]), int(groups[1]), int(groups[2]))
            if order == "dmy":
                return date(int(groups[2]), MONTHS[groups[1].lower()], int(groups[0]))
            if order == "mdy":
                return date(int(groups[2]), MONTHS[groups[0].lower()], int(groups[1]))
            if order == "my":
                return date(int(groups[1]), MONTHS[groups[0].lower()], 1)
            if order == "ym":
                return date(int(groups[0]), int(groups[1]), 1)
            return date(int(groups[0]), 1, 1)
        except (KeyError, ValueError):
            continue
    logger.debug(f"[HEADER] Unparseable date {text!r}")
    return None


def created(window: TextWindow) -> date | None:
    return parse_date(first_value(window, ["Created"]))


def updated(window: TextWindow) -> date | None:
    return parse_date(first_value(window, UPDATED_FIELDS))


def homepage(window: TextWindow) -> str | None:
    return first_value(window, HOMEPAGE_FIELDS)


def wikipage(window: TextWindow) -> str | None:
    return first_value(window, WIKIPAGE_FIELDS)


def license_text(window: TextWindow) -> str | None:
    return first_value(window, LICENSE_FIELDS)


def authors_text(window: TextWindow) -> list[str]:
    return first_of(window, AUTHOR_FIELDS, multiline=True)


def maintainer_text(window: TextWindow) -> list[str]:
    return first_of(window, MAINTAINER_FIELDS, multiline=True)


def commentary(window: TextWindow) -> str | None:
    """
    The `;;; Commentary:` section with comment markers stripped.

    Blank-line runs collapse to one blank line and the result ends with
    exactly one newline.
    """
    window.goto(0)
    start = window.search(COMMENTARY_START)
    if not start:
        return None
    end = SECTION_HEADING.search(window.text, start.end())
    section = window.text[start.end() : end.start() if end else len(window.text)]

    lines: list[str] = []
    for line in section.splitlines():
        line = COMMENT_MARKER.sub("", line).rstrip()
        if not line and (not lines or not lines[-1]):
            continue
        lines.append(line)
    while lines and not lines[-1]:
        lines.pop()
    if not lines:
        return None
    return "\n".join(lines) + "\n"
