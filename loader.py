"""Class-path style resource lookup over an ordered list of archives."""

from typing import BinaryIO, Iterable

from archive import Archive, EntryPredicate, NotFoundError
from locator import Resource


class ResourceLoader:
    """Look resources up in each archive's resource location, first match wins."""

    def __init__(self, archives: Iterable[Archive]):
        self._locations = tuple(archive.resource_location() for archive in archives)

    @classmethod
    def from_archive(cls, archive: Archive, predicate: EntryPredicate) -> "ResourceLoader":
        """Loader over archive followed by its nested archives matching predicate."""
        return cls([archive, *archive.nested_archives(predicate)])

    @property
    def locations(self) -> tuple:
        return self._locations

    def find(self, name) -> Resource | None:
        for location in self._locations:
            resource = location.resolve(name)
            if resource.exists():
                return resource
        return None

    def find_all(self, name) -> list[Resource]:
        resources = (location.resolve(name) for location in self._locations)
        return [resource for resource in resources if resource.exists()]

    def open(self, name) -> BinaryIO:
        resource = self.find(name)
        if resource is None:
            raise NotFoundError(str(name))
        return resource.open()

    def read(self, name) -> bytes:
        with self.open(name) as stream:
            return stream.read()
