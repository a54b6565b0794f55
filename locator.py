"""Resource locations: resolve resource names against an archive.

Resolving never fails. The returned Resource reports whether it exists, and
only reading its content raises NotFoundError for names that are absent or
hidden by a filtered archive.
"""

import io
import os
from typing import BinaryIO, Callable, Mapping
from urllib.parse import quote

from archive import Entry, EntryName, NotFoundError


def _resource_url(base: str, name: EntryName) -> str:
    return base + quote(bytes(name))


class Resource:
    """A named resource that may or may not exist."""

    def __init__(self, name: str, url: str):
        self.name = name
        self.url = url

    def exists(self) -> bool:
        raise NotImplementedError

    def open(self) -> BinaryIO:
        """Return a binary stream over the content. Raises NotFoundError if absent."""
        raise NotImplementedError

    def read(self) -> bytes:
        with self.open() as stream:
            return stream.read()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.url!r})"


class FileResource(Resource):
    """Resource backed by a file on disk."""

    def __init__(self, name: str, url: str, path: str):
        super().__init__(name, url)
        self.path = path

    def exists(self) -> bool:
        return os.path.exists(self.path)

    def open(self) -> BinaryIO:
        try:
            return open(self.path, "rb")
        except (FileNotFoundError, NotADirectoryError) as e:
            raise NotFoundError(self.name) from e


class ZipResource(Resource):
    """Resource backed by a member of a zip container.

    The container is opened for each read and closed before returning.
    """

    def __init__(self, name: str, url: str, open_zip: Callable, member: str):
        super().__init__(name, url)
        self._open_zip = open_zip
        self.member = member

    def exists(self) -> bool:
        with self._open_zip() as zf:
            try:
                zf.getinfo(self.member)
            except KeyError:
                return False
        return True

    def open(self) -> BinaryIO:
        with self._open_zip() as zf:
            try:
                data = zf.read(self.member)
            except KeyError:
                raise NotFoundError(self.name) from None
        return io.BytesIO(data)


class MissingResource(Resource):
    """Resource that does not exist; reading it raises NotFoundError."""

    def exists(self) -> bool:
        return False

    def open(self) -> BinaryIO:
        raise NotFoundError(self.name)


class ResourceLocation:
    """Resolves resource names relative to an archive root URL."""

    def __init__(self, url: str):
        self.url = url

    def resolve(self, name) -> Resource:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.url

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.url!r})"


class FileLocation(ResourceLocation):
    """Plain filesystem lookup below a root directory."""

    def __init__(self, url: str, root: str):
        super().__init__(url)
        self.root = root

    def resolve(self, name) -> Resource:
        name = EntryName(name)
        path = os.path.normpath(os.path.join(self.root, name.text))
        url = _resource_url(self.url, name)
        if os.path.commonpath([self.root, path]) != self.root:
            return MissingResource(name.text, url)
        return FileResource(name.text, url, path)


class ZipLocation(ResourceLocation):
    """Member lookup inside a zip container.

    members maps each entry name, as the raw bytes stored in the central
    directory, to the member name zipfile decoded from them.
    """

    def __init__(self, url: str, open_zip: Callable, members: Mapping[EntryName, str]):
        super().__init__(url)
        self._open_zip = open_zip
        self._members = members

    def resolve(self, name) -> Resource:
        name = EntryName(name)
        member = self._members.get(name)
        url = _resource_url(self.url, name)
        if member is None:
            return MissingResource(name.text, url)
        return ZipResource(name.text, url, self._open_zip, member)


class FilteredLocation(ResourceLocation):
    """Lookup restricted to the entries of a filtered archive.

    Names in the index resolve to the entry's original backing data, so a
    renamed entry reads the bytes of the object it was renamed from. Any
    other name resolves to a MissingResource.
    """

    def __init__(self, url: str, entries: Mapping[EntryName, Entry], entry_resource: Callable[[Entry], Resource]):
        super().__init__(url)
        self._entries = entries
        self._entry_resource = entry_resource

    def resolve(self, name) -> Resource:
        name = EntryName(name)
        entry = self._entries.get(name)
        if entry is None:
            return MissingResource(name.text, _resource_url(self.url, name))
        return self._entry_resource(entry)
