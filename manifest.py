"""Manifest parser for META-INF/MANIFEST.MF.

Format:
    Manifest-Version: 1.0        main section, up to the first blank line
    Built-By: someone
     continued                   a leading space continues the previous value

    Name: com/example/           each further section starts with Name
    Sealed: true

Header names are case-insensitive. Every line, including the last, must end
with a line terminator.
"""

import re
from collections.abc import Mapping

from archive import ArchiveError

MAX_LINE_LENGTH = 512
_HEADER_NAME = re.compile(rb"[A-Za-z0-9_-]{1,70}")


class ManifestError(ArchiveError, OSError):
    """Manifest bytes are truncated or malformed."""
    pass


class Attributes(Mapping):
    """Read-only attribute mapping with case-insensitive keys."""

    def __init__(self, items=()):
        self._items: dict[str, tuple[str, str]] = {}
        for key, value in items:
            self._items[key.lower()] = (key, value)

    def __getitem__(self, key: str) -> str:
        return self._items[key.lower()][1]

    def __contains__(self, key) -> bool:
        return isinstance(key, str) and key.lower() in self._items

    def __iter__(self):
        for key, _ in self._items.values():
            yield key

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"Attributes({dict(self.items())!r})"


class Manifest:
    """Main attributes plus per-entry sections keyed by their Name header."""

    def __init__(self, main_attributes: Attributes | None = None, entries: dict | None = None):
        self.main_attributes = main_attributes if main_attributes is not None else Attributes()
        self.entries: dict[str, Attributes] = entries if entries is not None else {}

    def get(self, key: str, default: str | None = None) -> str | None:
        """Shortcut for a main attribute."""
        return self.main_attributes.get(key, default)

    def __eq__(self, other):
        if not isinstance(other, Manifest):
            return NotImplemented
        return self.main_attributes == other.main_attributes and self.entries == other.entries

    def __repr__(self) -> str:
        return f"Manifest({dict(self.main_attributes.items())!r}, sections={list(self.entries)!r})"

    @classmethod
    def parse(cls, data: bytes) -> "Manifest":
        """Parse manifest bytes. Raises ManifestError on malformed input."""
        lines = bytes(data).splitlines(keepends=True)
        if lines and not lines[-1].endswith((b"\n", b"\r")):
            raise ManifestError("Truncated manifest: last line has no line terminator")

        sections: list[list[list[bytes]]] = []
        headers: list[list[bytes]] = []
        for number, raw in enumerate(lines, 1):
            if len(raw) > MAX_LINE_LENGTH:
                raise ManifestError(f"Manifest line {number} too long")
            line = raw.rstrip(b"\r\n")
            if not line:
                sections.append(headers)
                headers = []
                continue
            if line.startswith(b" "):
                if not headers:
                    raise ManifestError(f"Misplaced continuation on manifest line {number}")
                headers[-1][1] += line[1:]
                continue
            name, sep, value = line.partition(b": ")
            if not sep or not _HEADER_NAME.fullmatch(name):
                raise ManifestError(f"Invalid header on manifest line {number}: {line[:40]!r}")
            headers.append([name, value])
        sections.append(headers)

        main = _attributes(sections[0])
        entries = {}
        for headers in sections[1:]:
            if not headers:
                continue
            first = headers[0]
            if first[0].lower() != b"name":
                raise ManifestError("Invalid manifest: section does not start with a Name header")
            entries[_decode(first[1])] = _attributes(headers[1:])
        return cls(main, entries)


def _decode(value: bytes) -> str:
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ManifestError(f"Manifest value is not valid UTF-8: {e}") from e


def _attributes(headers: list[list[bytes]]) -> Attributes:
    return Attributes((name.decode("ascii"), _decode(value)) for name, value in headers)
