"""Packaged archive: a jar-like zip container presented as an archive."""

import dataclasses
import io
import os
import zipfile
from pathlib import Path

from archive import Archive, ArchiveOpenError, Entry, EntryName
from helpers import get_logger
from locator import ZipLocation, ZipResource, _resource_url

logger = get_logger("jarchive.packaged")

# general purpose flag bit 11: member name is UTF-8
_UTF8_FLAG = 0x800


@dataclasses.dataclass(frozen=True)
class PackagedEntry(Entry):
    """Entry backed by a member of the container."""
    member: str
    size: int


def _raw_name(info: zipfile.ZipInfo, name: str) -> bytes:
    """Re-encode a member name (or a suffix of it) to the bytes stored in the central directory."""
    return name.encode("utf-8" if info.flag_bits & _UTF8_FLAG else "cp437")


class PackagedArchive(Archive):
    """Archive backed by a zip container.

    source is a path to the container, or the container's bytes when it is
    nested inside another packaged archive. prefix restricts the view to
    the members below one directory of the container. No file handle is
    kept open: every read opens the container and closes it again.
    """

    def __init__(self, source, prefix: str = "", container_url: str | None = None):
        if isinstance(source, (bytes, bytearray)):
            if container_url is None:
                raise ValueError("container_url is required for in-memory containers")
            self._source = bytes(source)
        else:
            self._source = os.path.abspath(os.fsdecode(os.fspath(source)))
            if container_url is None:
                container_url = f"jar:{Path(self._source).as_uri()}!/"
        self._prefix = prefix
        self._container_url = container_url

        try:
            with self._open_zip() as zf:
                infos = zf.infolist()
        except (zipfile.BadZipFile, OSError) as e:
            raise ArchiveOpenError(f"Cannot open packaged archive {self.url}: {e}") from e

        entries: dict[EntryName, PackagedEntry] = {}
        for info in infos:
            member = info.filename
            if not member.startswith(prefix) or member == prefix:
                continue
            name = EntryName(_raw_name(info, member[len(prefix):]))
            entries[name] = PackagedEntry(name, info.is_dir(), member, info.file_size)
        self._members = {name: entry.member for name, entry in entries.items()}
        super().__init__(entries)
        logger.verbose(f"Opened packaged archive {self.url} with {len(self)} entries")

    @classmethod
    def _from_entries(cls, parent: "PackagedArchive", entries: dict) -> "PackagedArchive":
        archive = cls.__new__(cls)
        archive._source = parent._source
        archive._prefix = parent._prefix
        archive._container_url = parent._container_url
        archive._members = {name: entry.member for name, entry in entries.items()}
        Archive.__init__(archive, entries, filtered=True)
        return archive

    @property
    def source(self) -> str | None:
        """Path of the container file, or None for a nested in-memory container."""
        return self._source if isinstance(self._source, str) else None

    @property
    def url(self) -> str:
        return self._container_url + self._prefix

    def _open_zip(self) -> zipfile.ZipFile:
        if isinstance(self._source, bytes):
            return zipfile.ZipFile(io.BytesIO(self._source))
        return zipfile.ZipFile(self._source)

    def _location(self) -> ZipLocation:
        return ZipLocation(self.url, self._open_zip, self._members)

    def _entry_resource(self, entry: PackagedEntry) -> ZipResource:
        return ZipResource(entry.name.text, _resource_url(self.url, entry.name), self._open_zip, entry.member)

    def _with_entries(self, entries: dict) -> "PackagedArchive":
        return PackagedArchive._from_entries(self, entries)

    def directory_view(self, entry: PackagedEntry) -> "PackagedArchive":
        """Open a directory entry as an archive over the members below it."""
        return PackagedArchive(self._source, prefix=entry.member, container_url=self._container_url)

    def nested_package(self, entry: PackagedEntry) -> "PackagedArchive":
        """Open a file entry holding a zip container as an archive."""
        url = f"{self._container_url}{entry.member}!/"
        try:
            with self._open_zip() as zf:
                data = zf.read(entry.member)
        except (zipfile.BadZipFile, OSError, KeyError) as e:
            raise ArchiveOpenError(f"Cannot read nested archive {url}: {e}") from e
        return PackagedArchive(data, container_url=url)
