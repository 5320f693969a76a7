"""
License Classifier.

Maps a declared license (the `License:` header) or, when there is none, the
license boilerplate in the file's commentary to a canonical identifier such
as "GPL-3", "MIT" or "as-is".

Both rule tables are evaluated first-match-wins, so narrower patterns must be
listed before broader ones (LGPL before GPL, "version 3" before bare GPL).
"""

import logging
import re

logger = logging.getLogger(__name__)

LicenseRule = tuple[str, re.Pattern]

_I = re.IGNORECASE | re.DOTALL


def _rule(identifier: str, pattern: str) -> LicenseRule:
    return identifier, re.compile(pattern, _I)


# Body-text rules, tried in order against the text before the code section.
LICENSE_RULES: tuple[LicenseRule, ...] = (
    _rule("AGPL-3", r"GNU\s+Affero\s+General\s+Public\s+License.{0,200}?version\s+3"),
    _rule("LGPL-3", r"GNU\s+Lesser\s+General\s+Public\s+License.{0,200}?version\s+3"),
    _rule("LGPL-2.1", r"GNU\s+(?:Library|Lesser)\s+General\s+Public\s+License.{0,200}?version\s+2\.1"),
    _rule("LGPL-2", r"GNU\s+Library\s+General\s+Public\s+License.{0,200}?version\s+2"),
    _rule("GPL-3", r"GNU\s+General\s+Public\s+License.{0,200}?version\s+3"),
    _rule("GPL-3", r"(?:GPL|General\s+Public\s+License)\s*v?3\b"),
    _rule("GPL-2", r"GNU\s+General\s+Public\s+License.{0,200}?version\s+2"),
    _rule("GPL-2", r"(?:GPL|General\s+Public\s+License)\s*v?2\b"),
    _rule("GPL-1", r"GNU\s+General\s+Public\s+License.{0,200}?version\s+1"),
    _rule("FDL-1.3", r"GNU\s+Free\s+Documentation\s+License.{0,200}?version\s+1\.3"),
    _rule("Apache-2.0", r"Apache\s+License.{0,40}?Version\s+2\.0"),
    _rule("MPL-2.0", r"Mozilla\s+Public\s+License.{0,40}?(?:Version\s+)?2\.0"),
    _rule("EPL-1.0", r"Eclipse\s+Public\s+License"),
    _rule("Artistic-2.0", r"Artistic\s+License\s+2\.0"),
    _rule("BSD-3-clause", r"Neither\s+the\s+name\s+of.{0,200}?may\s+be\s+used\s+to\s+endorse"),
    _rule("BSD-2-clause", r"Redistributions?\s+of\s+source\s+code\s+must\s+retain"),
    _rule("MIT", r"Permission\s+is\s+hereby\s+granted,\s+free\s+of\s+charge"),
    _rule("MIT", r"\bMIT\s+License\b"),
    _rule("ISC", r"Permission\s+to\s+use,\s+copy,\s+modify,\s+and(?:/or)?\s+distribute\s+this\s+software\s+for\s+any\s+purpose"),
    _rule("WTFPL", r"Do\s+What\s+The\s+F\S*\s+You\s+Want\s+To\s+Public\s+License"),
    _rule("CC0-1.0", r"CC0\s+1\.0|creativecommons\.org/publicdomain/zero/1\.0"),
    _rule("Unlicense", r"This\s+is\s+free\s+and\s+unencumbered\s+software\s+released\s+into\s+the\s+public\s+domain"),
    _rule("public-domain", r"(?:placed|released|put)\s+(?:in|into)\s+the\s+public\s+domain"),
    _rule("as-is", r"\bas[-\s]is\b.{0,60}?without\s+(?:any\s+)?warranty"),
    _rule("as-is", r"without\s+(?:any\s+)?warranty.{0,60}?\bas[-\s]is\b"),
    _rule("GPL", r"GNU\s+General\s+Public\s+License"),
    _rule("GPL", r"\bGPL\b"),
)


# Alias rules, tried in order against the candidate string. Fullmatch only.
LICENSE_ALIASES: tuple[LicenseRule, ...] = (
    _rule("AGPL-3", r"(?:GNU\s+)?(?:AGPL|Affero\s+General\s+Public\s+License)[-\s]*v?(?:ersion\s*)?3(?:\.0)?\+?(?:[-\s]+(?:only|or[-\s]+(?:any[-\s]+)?later))?"),
    _rule("LGPL-3", r"(?:GNU\s+)?(?:LGPL|Lesser\s+General\s+Public\s+License)[-\s]*v?(?:ersion\s*)?3(?:\.0)?\+?(?:[-\s]+(?:only|or[-\s]+(?:any[-\s]+)?later))?"),
    _rule("LGPL-2.1", r"(?:GNU\s+)?(?:LGPL|Lesser\s+General\s+Public\s+License)[-\s]*v?(?:ersion\s*)?2\.1\+?(?:[-\s]+(?:only|or[-\s]+(?:any[-\s]+)?later))?"),
    _rule("LGPL-2", r"(?:GNU\s+)?(?:LGPL|Library\s+General\s+Public\s+License)[-\s]*v?(?:ersion\s*)?2(?:\.0)?\+?(?:[-\s]+(?:only|or[-\s]+(?:any[-\s]+)?later))?"),
    _rule("GPL-3", r"(?:GNU\s+)?(?:GPL|General\s+Public\s+License)[-\s]*v?(?:ersion\s*)?3(?:\.0)?\+?(?:[-\s]+(?:only|or[-\s]+(?:any[-\s]+)?later))?"),
    _rule("GPL-2", r"(?:GNU\s+)?(?:GPL|General\s+Public\s+License)[-\s]*v?(?:ersion\s*)?2(?:\.0)?\+?(?:[-\s]+(?:only|or[-\s]+(?:any[-\s]+)?later))?"),
    _rule("GPL-1", r"(?:GNU\s+)?(?:GPL|General\s+Public\s+License)[-\s]*v?(?:ersion\s*)?1(?:\.0)?\+?(?:[-\s]+(?:only|or[-\s]+(?:any[-\s]+)?later))?"),
    _rule("GPL", r"(?:GNU\s+)?(?:GPL|General\s+Public\s+License)\+?"),
    _rule("Apache-2.0", r"Apache(?:\s+License)?[-\s]*v?(?:ersion\s*)?2(?:\.0)?"),
    _rule("MPL-2.0", r"MPL[-\s]*v?2(?:\.0)?|Mozilla\s+Public\s+License[-\s]*v?2(?:\.0)?"),
    _rule("BSD-3-clause", r"(?:New\s+|Modified\s+)?BSD[-\s]*3[-\s]*clause|New\s+BSD|Modified\s+BSD"),
    _rule("BSD-2-clause", r"(?:Simplified\s+)?BSD[-\s]*2[-\s]*clause|Simplified\s+BSD|FreeBSD"),
    _rule("MIT", r"MIT(?:\s+License)?|Expat"),
    _rule("ISC", r"ISC(?:\s+License)?"),
    _rule("public-domain", r"Public[-\s]+Domain"),
    _rule("as-is", r"as[-\s]is"),
    _rule("WTFPL", r"WTFPL(?:\s+v?2)?"),
)

IDENTIFIER_RE = re.compile(r"^[-_.A-Za-z0-9]+$")
COMMENT_PREFIX = re.compile(r"^[ \t]*;+", re.MULTILINE)


def classify_body(body: str, rules: tuple[LicenseRule, ...] = LICENSE_RULES) -> str | None:
    """Return the identifier of the first rule matching body, comment markers ignored."""
    text = COMMENT_PREFIX.sub(" ", body)
    for identifier, pattern in rules:
        if pattern.search(text):
            logger.debug(f"[LICENSE] Body matched rule {identifier!r}")
            return identifier
    return None


def normalize_license(candidate: str, aliases: tuple[LicenseRule, ...] = LICENSE_ALIASES) -> str | None:
    """
    Fold a spelling variant onto its canonical identifier.

    Unknown spellings are kept as they are if they fit the identifier
    charset; anything else is dropped.
    """
    text = re.sub(r"\s+", " ", candidate).strip().rstrip(".,;")
    for identifier, pattern in aliases:
        if pattern.fullmatch(text):
            return identifier
    if IDENTIFIER_RE.match(text):
        return text
    logger.debug(f"[LICENSE] Discarding unrecognized license text {candidate!r}")
    return None


def classify_license(
    header: str | None,
    body: str | None = None,
    rules: tuple[LicenseRule, ...] = LICENSE_RULES,
    aliases: tuple[LicenseRule, ...] = LICENSE_ALIASES,
) -> str | None:
    """
    Determine the canonical license identifier of a file.

    Args:
        header: Value of the License header, if the file declares one.
        body: Text before the code section, searched when there is no header.
        rules: Ordered body-text rules.
        aliases: Ordered alias rules applied to the candidate.

    Returns:
        Canonical identifier, or None if no license could be determined.
    """
    candidate = header.strip() if header and header.strip() else None
    if candidate is None and body:
        candidate = classify_body(body, rules)
    if candidate is None:
        return None
    return normalize_license(candidate, aliases)
