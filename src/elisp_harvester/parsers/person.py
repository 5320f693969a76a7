"""
Person/Address Parser.

Splits free-text author and maintainer fields into a name and an email
address. Addresses in library headers are often obfuscated against spam
harvesters ("jane AT example DOT com", "jane (at) example.com"), so they are
de-obfuscated before validation.
"""

import logging
import re

from elisp_harvester.models.package import Person

logger = logging.getLogger(__name__)

_AT = r"(?:@|\s+at\s+|\s*\(at\)\s*|\s*\[at\]\s*|\s*<at>\s*)"
_DOT = r"(?:\.|\s+dot\s+|\s*\(dot\)\s*|\s*\[dot\]\s*|\s*<dot>\s*)"
_OBFUSCATED_ADDRESS = rf"[\w.+-]+{_AT}[\w-]+(?:{_DOT}[\w-]+)+"

# Tried in order; the first match wins.
PERSON_PATTERNS: list[re.Pattern] = [
    # Jane Doe <jane@example.com>
    re.compile(r"^(?P<name>[^<]*?)\s*<(?P<address>[^<>]+)>\s*$"),
    # jane@example.com (Jane Doe)
    re.compile(r"^(?P<address>[^\s()]+@[^\s()]+)\s*\((?P<name>[^()]*)\)\s*$"),
    # Jane Doe (jane@example.com)
    re.compile(rf"^(?P<name>[^()]*?)\s*\((?P<address>{_OBFUSCATED_ADDRESS})\)\s*$", re.IGNORECASE),
    # Jane Doe jane AT example DOT com
    re.compile(rf"^(?P<name>.*?)\s*(?P<address>{_OBFUSCATED_ADDRESS})\s*$", re.IGNORECASE),
    # Jane Doe
    re.compile(r"^(?P<name>[^<>@]+)$"),
]

ADDRESS_RE = re.compile(r"^[\w.+-]+@[\w-]+(?:\.[\w-]+)+$")
CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_DEOBFUSCATE = [
    (re.compile(rf"{_AT}", re.IGNORECASE), "@"),
    (re.compile(rf"{_DOT}", re.IGNORECASE), "."),
]
# Splits "A <a@x>, B <b@y>" into its people.
_MULTI_PERSON = re.compile(r"(?<=>)\s*,\s*")


def normalize_address(text: str | None) -> str | None:
    """De-obfuscate, validate and lowercase an address; None if invalid."""
    if not text:
        return None
    address = text.strip().strip("<>").removeprefix("mailto:")
    for pattern, replacement in _DEOBFUSCATE:
        address = pattern.sub(replacement, address)
    address = re.sub(r"\s+", "", address).lower()
    if ADDRESS_RE.match(address):
        return address
    logger.debug(f"[PERSON] Invalid address {text!r}")
    return None


def normalize_name(text: str | None) -> str | None:
    if not text:
        return None
    name = text.strip().strip(",;").strip()
    if not name or CONTROL_CHARS.search(name):
        return None
    return name


def parse_person(text: str | None) -> Person | None:
    """
    Parse one "Name <address>" style value.

    Returns:
        Person with either part possibly None, or None if neither a name nor
        an address could be recovered.
    """
    if not text or not text.strip():
        return None
    value = text.strip().rstrip(",")
    for pattern in PERSON_PATTERNS:
        match = pattern.match(value)
        if not match:
            continue
        groups = match.groupdict()
        name = normalize_name(groups.get("name"))
        address = normalize_address(groups.get("address"))
        if name is None and address is None:
            return None
        return Person(name=name, address=address)
    return None


def parse_people(lines: list[str]) -> list[Person]:
    """Parse every person in a (multiline) field, in declaration order."""
    people = []
    for line in lines:
        for part in _MULTI_PERSON.split(line):
            person = parse_person(part)
            if person:
                people.append(person)
    return people
