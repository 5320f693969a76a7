"""
Text Window — the materialized content of one source file.

Every scanner works against a TextWindow instead of a file handle, so the
window is the only place where raw file I/O happens.
"""

import re
from pathlib import Path

CODE_MARKER = re.compile(r"^;;;+\s*Code:", re.MULTILINE | re.IGNORECASE)


class TextWindow:
    """Text content of a file or buffer with a movable cursor."""

    def __init__(self, text: str, name: str | None = None):
        self.text = text
        self.name = name
        self.pos = 0

    @classmethod
    def from_path(cls, path: Path) -> "TextWindow":
        """Read a file as UTF-8, replacing undecodable bytes."""
        path = Path(path)
        return cls(path.read_text(encoding="utf-8", errors="replace"), name=path.name)

    def __len__(self) -> int:
        return len(self.text)

    def __repr__(self) -> str:
        return f"TextWindow(name={self.name!r}, size={len(self.text)}, pos={self.pos})"

    def goto(self, pos: int) -> None:
        self.pos = max(0, min(pos, len(self.text)))

    def search(self, pattern: str | re.Pattern, flags: int = 0) -> re.Match | None:
        """
        Search forward from the cursor.

        On success the cursor moves to the end of the match; on failure it
        stays where it was.
        """
        if isinstance(pattern, str):
            pattern = re.compile(pattern, flags)
        match = pattern.search(self.text, self.pos)
        if match:
            self.pos = match.end()
        return match

    def lines(self) -> list[str]:
        return self.text.splitlines()

    def code_start(self) -> int | None:
        """Offset of the `;;; Code:` marker, or None when the file has none."""
        match = CODE_MARKER.search(self.text)
        return match.start() if match else None

    def header_text(self) -> str:
        """Everything before the code section (the whole text if unmarked)."""
        start = self.code_start()
        return self.text if start is None else self.text[:start]
