"""Base archive interface: entry names, entries, errors and the shared view algorithms."""

import dataclasses
import functools
import os
from types import MappingProxyType
from typing import Callable, Iterator, Mapping

from helpers import get_logger

logger = get_logger("jarchive.archive")


class ArchiveError(Exception):
    """Base error for archive operations."""
    pass


class InvalidSourceError(ArchiveError, ValueError):
    """The archive root does not exist or is not a directory."""
    pass


class ArchiveOpenError(ArchiveError):
    """A container could not be opened or parsed as an archive."""
    pass


class NotFoundError(ArchiveError, FileNotFoundError):
    """Resource does not exist, or is hidden by a filtered view."""

    def __init__(self, name: str):
        super().__init__(f"Not found: {name}")
        self.name = name


@functools.total_ordering
class EntryName:
    """Raw-bytes name of an entry, relative to the archive root.

    Directories end with '/'. Names compare byte-wise and are never
    normalized; text is encoded with the filesystem encoding so names read
    from disk round-trip exactly.
    """

    __slots__ = ("_raw", "_hash")

    def __init__(self, value):
        if isinstance(value, EntryName):
            raw = value._raw
        elif isinstance(value, str):
            raw = os.fsencode(value)
        elif isinstance(value, (bytes, bytearray, memoryview)):
            raw = bytes(value)
        else:
            raise TypeError(f"Cannot make an entry name from {type(value).__name__}")
        object.__setattr__(self, "_raw", raw)
        object.__setattr__(self, "_hash", hash(raw))

    def __setattr__(self, name, value):
        raise AttributeError("EntryName is immutable")

    def __bytes__(self) -> bytes:
        return self._raw

    @property
    def text(self) -> str:
        """The name as filesystem text (undecodable bytes kept as surrogates)."""
        return os.fsdecode(self._raw)

    @property
    def is_directory_name(self) -> bool:
        return self._raw.endswith(b"/")

    def startswith(self, prefix) -> bool:
        return self._raw.startswith(bytes(EntryName(prefix)))

    def endswith(self, suffix) -> bool:
        return self._raw.endswith(bytes(EntryName(suffix)))

    def __len__(self) -> int:
        return len(self._raw)

    def __eq__(self, other):
        if not isinstance(other, EntryName):
            return NotImplemented
        return self._raw == other._raw

    def __lt__(self, other):
        if not isinstance(other, EntryName):
            return NotImplemented
        return self._raw < other._raw

    def __hash__(self) -> int:
        return self._hash

    def __str__(self) -> str:
        return self._raw.decode("utf-8", errors="replace")

    def __repr__(self) -> str:
        return f"EntryName({self._raw!r})"


MANIFEST_NAME = EntryName(b"META-INF/MANIFEST.MF")


@dataclasses.dataclass(frozen=True)
class Entry:
    """One named resource (file or directory) inside an archive."""
    name: EntryName
    is_directory: bool


# rename(name, entry) -> new name, or None to drop the entry
RenameFilter = Callable[[EntryName, Entry], "EntryName | bytes | str | None"]
EntryPredicate = Callable[[Entry], bool]

_UNSET = object()


class Archive:
    """Read-only, ordered collection of entries.

    Two variants exist: ExplodedArchive (a directory tree) and
    PackagedArchive (a zip container). The entry index is fixed when the
    archive is constructed and is safe to share between threads.
    """

    def __init__(self, entries: dict, filtered: bool = False):
        self._entries: Mapping[EntryName, Entry] = MappingProxyType(entries)
        self._filtered = filtered
        self._manifest = _UNSET

    @property
    def url(self) -> str:
        """URL of the archive root; resource URLs are formed relative to it."""
        raise NotImplementedError

    @property
    def filtered(self) -> bool:
        return self._filtered

    def entries(self) -> tuple:
        """Return all entries in index order."""
        return tuple(self._entries.values())

    def entry(self, name) -> Entry | None:
        """Return the entry with the given name, or None."""
        return self._entries.get(EntryName(name))

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name) -> bool:
        return EntryName(name) in self._entries

    def manifest(self) -> "Manifest | None":
        """Return the parsed META-INF/MANIFEST.MF, or None if there is none.

        Parsed on first call and cached. Concurrent first calls may both
        parse; the results are equal, so whichever is stored last wins.
        """
        manifest = self._manifest
        if manifest is _UNSET:
            manifest = self._read_manifest()
            self._manifest = manifest
        return manifest

    def _read_manifest(self) -> "Manifest | None":
        from manifest import Manifest
        entry = self._entries.get(MANIFEST_NAME)
        if entry is None or entry.is_directory:
            return None
        data = self._entry_resource(entry).read()
        manifest = Manifest.parse(data)
        logger.debug(f"Parsed manifest of {self.url} ({len(manifest.main_attributes)} main attributes)")
        return manifest

    def resource_location(self):
        """Return the ResourceLocation resolving resource names against this archive.

        Filtered archives get a location that reports names outside the
        filtered index as missing, even when the backing data still exists.
        """
        from locator import FilteredLocation
        if self._filtered:
            return FilteredLocation(self.url, self._entries, self._entry_resource)
        return self._location()

    def nested_archive(self, entry: Entry) -> "Archive":
        """Open the given entry as an archive in its own right."""
        from resolver import open_nested
        return open_nested(self, entry)

    def nested_archives(self, predicate: EntryPredicate) -> tuple:
        """Open every entry matching predicate, in entry order.

        All matching entries are opened before returning; if any of them
        fails, the error propagates and no archives are returned.
        """
        return tuple(self.nested_archive(entry) for entry in self._entries.values() if predicate(entry))

    def filtered_view(self, rename: RenameFilter) -> "Archive":
        """Return a new archive exposing a renamed subset of this one's entries.

        rename(name, entry) returns the name to publish the entry under, or
        None to leave it out. This archive is not modified.
        """
        entries = {}
        for name, entry in self._entries.items():
            new_name = rename(name, entry)
            if new_name is not None:
                new_name = EntryName(new_name)
                entries[new_name] = dataclasses.replace(entry, name=new_name)
        logger.debug(f"Filtered view of {self.url} keeps {len(entries)} of {len(self._entries)} entries")
        return self._with_entries(entries)

    def _location(self):
        """Return the unfiltered ResourceLocation for this archive."""
        raise NotImplementedError

    def _entry_resource(self, entry: Entry):
        """Return a Resource reading the backing data of one of this archive's entries."""
        raise NotImplementedError

    def _with_entries(self, entries: dict) -> "Archive":
        """Return a filtered archive of the same kind over the given entries."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.url!r}, entries={len(self._entries)}, filtered={self._filtered})"
