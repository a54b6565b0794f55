"""Exploded archive: a directory tree on disk presented as an archive."""

import dataclasses
import os
from pathlib import Path

from archive import Archive, Entry, EntryName, InvalidSourceError
from helpers import get_logger
from locator import FileLocation, FileResource, _resource_url

logger = get_logger("jarchive.exploded")

SKIPPED_NAMES = frozenset({b".", b".."})
META_INF = b"META-INF"


@dataclasses.dataclass(frozen=True)
class FileEntry(Entry):
    """Entry backed by a filesystem object."""
    path: str


class ExplodedArchive(Archive):
    """Archive backed by a directory.

    With recursive=False only the root's immediate children are indexed,
    plus everything below a top-level META-INF directory, which keeps the
    manifest reachable on very large trees.
    """

    def __init__(self, root, recursive: bool = True):
        root = os.path.abspath(os.fsdecode(os.fspath(root)))
        if not os.path.isdir(root):
            raise InvalidSourceError(f"Invalid source directory: {root}")
        self._root = root
        self._recursive = recursive
        super().__init__(_index(root, recursive))
        logger.verbose(f"Indexed {len(self)} entries under {root} (recursive={recursive})")

    @classmethod
    def _from_entries(cls, root: str, recursive: bool, entries: dict) -> "ExplodedArchive":
        archive = cls.__new__(cls)
        archive._root = root
        archive._recursive = recursive
        Archive.__init__(archive, entries, filtered=True)
        return archive

    @property
    def root(self) -> str:
        return self._root

    @property
    def recursive(self) -> bool:
        return self._recursive

    @property
    def url(self) -> str:
        url = Path(self._root).as_uri()
        return url if url.endswith("/") else url + "/"

    def _location(self) -> FileLocation:
        return FileLocation(self.url, self._root)

    def _entry_resource(self, entry: FileEntry) -> FileResource:
        return FileResource(entry.name.text, _resource_url(self.url, entry.name), entry.path)

    def _with_entries(self, entries: dict) -> "ExplodedArchive":
        return ExplodedArchive._from_entries(self._root, self._recursive, entries)


def _index(root: str, recursive: bool) -> dict:
    """Walk root depth-first and return its entries keyed by EntryName.

    Directories precede their children and keep a trailing '/'. Order is
    whatever the filesystem enumerates. A directory whose real location is
    already on the current walk path (a symlink loop) is indexed but not
    entered.
    """
    entries: dict[EntryName, FileEntry] = {}
    root_stat = os.stat(root)

    def walk(directory: bytes, prefix: bytes, in_meta_inf: bool, active: frozenset):
        try:
            with os.scandir(directory) as it:
                children = list(it)
        except OSError as e:
            if not prefix:
                raise InvalidSourceError(f"Cannot list source directory {root}: {e}") from e
            logger.warning(f"Cannot list {os.fsdecode(directory)}: {e}")
            return
        for child in children:
            if child.name in SKIPPED_NAMES:
                continue
            is_dir = child.is_dir()
            name = EntryName(prefix + child.name + (b"/" if is_dir else b""))
            entries[name] = FileEntry(name, is_dir, os.fsdecode(child.path))
            logger.spam(f"Indexed {name}")
            if not is_dir:
                continue
            meta_inf = in_meta_inf or child.name == META_INF
            if not (recursive or meta_inf):
                continue
            st = child.stat()
            key = (st.st_dev, st.st_ino)
            if key in active:
                logger.warning(f"Not descending into {os.fsdecode(child.path)}: directory loop")
                continue
            walk(child.path, bytes(name), meta_inf, active | {key})

    walk(os.fsencode(root), b"", False, frozenset({(root_stat.st_dev, root_stat.st_ino)}))
    return entries
