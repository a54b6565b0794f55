"""Nested archive resolution.

This is the one place that decides which archive variant opens a given
backing object:

    directory on disk             -> ExplodedArchive
    file on disk                  -> PackagedArchive
    directory member of a package -> PackagedArchive view below that member
    file member of a package      -> PackagedArchive over the member's bytes
"""

import os

from archive import Archive, Entry, InvalidSourceError
from archive_exploded import ExplodedArchive, FileEntry
from archive_packaged import PackagedArchive, PackagedEntry
from helpers import get_logger

logger = get_logger("jarchive.resolver")


def open_archive(path, recursive: bool = True) -> Archive:
    """Open a directory or a container file as an archive."""
    if os.path.isdir(path):
        return ExplodedArchive(path, recursive)
    if not os.path.exists(path):
        raise InvalidSourceError(f"Invalid source: {os.fsdecode(path)}")
    return PackagedArchive(path)


def open_nested(parent: Archive, entry: Entry) -> Archive:
    """Open an entry of parent as an archive. Raises ArchiveOpenError if it is not one."""
    logger.debug(f"Opening nested archive {entry.name} of {parent.url}")
    if isinstance(entry, FileEntry):
        if os.path.isdir(entry.path):
            return ExplodedArchive(entry.path)
        return PackagedArchive(entry.path)
    if isinstance(entry, PackagedEntry) and isinstance(parent, PackagedArchive):
        if entry.is_directory:
            return parent.directory_view(entry)
        return parent.nested_package(entry)
    raise TypeError(f"Cannot open {type(entry).__name__} of {type(parent).__name__} as an archive")
