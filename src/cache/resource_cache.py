"""
Working-set resource caches.

These tiers live for the duration of a single command and are wiped by
``CacheService.clean_caches``. Writes are first-write-wins: a second ``set``
for a key that already holds data is ignored, so two resolutions of the same
key can never land data out of order.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class CachedResource:
    """A cached resource payload plus relations discovered during traversal."""

    resource_type: str
    uuid: str
    data: Any = None
    relations: dict[str, str] = field(default_factory=dict)

    @property
    def has_data(self) -> bool:
        return self.data is not None


@dataclass
class QueryCacheEntry:
    """A cached search result keyed by its resolved query string."""

    resource_type: str
    query: str
    data: Any


class ByUuidCache:
    """Resources keyed by ``(resource_type, uuid)``."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], CachedResource] = {}

    def _entry(self, resource_type: str, uuid: str) -> CachedResource:
        key = (resource_type, uuid)
        if key not in self._entries:
            self._entries[key] = CachedResource(resource_type=resource_type, uuid=uuid)
        return self._entries[key]

    def exists(self, resource_type: str, uuid: str) -> bool:
        entry = self._entries.get((resource_type, uuid))
        return entry is not None and entry.has_data

    def get(self, resource_type: str, uuid: str) -> Any:
        entry = self._entries.get((resource_type, uuid))
        return entry.data if entry else None

    def set(self, resource_type: str, uuid: str, data: Any) -> None:
        entry = self._entry(resource_type, uuid)
        if entry.has_data:
            return
        entry.data = data

    def set_related_uuid(
        self, resource_type: str, uuid: str, relation: str, value: str
    ) -> None:
        self._entry(resource_type, uuid).relations[relation] = value

    def get_related_uuid(self, resource_type: str, uuid: str, relation: str) -> str | None:
        entry = self._entries.get((resource_type, uuid))
        return entry.relations.get(relation) if entry else None

    def exists_related_uuid(self, resource_type: str, uuid: str, relation: str) -> bool:
        return self.get_related_uuid(resource_type, uuid, relation) is not None

    def delete_all(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class ByQueryCache:
    """Search results keyed by ``(resource_type, query)``."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], QueryCacheEntry] = {}

    def exists(self, resource_type: str, query: str) -> bool:
        return (resource_type, query) in self._entries

    def get(self, resource_type: str, query: str) -> Any:
        entry = self._entries.get((resource_type, query))
        return entry.data if entry else None

    def set(self, resource_type: str, query: str, data: Any) -> None:
        key = (resource_type, query)
        if key in self._entries:
            return
        self._entries[key] = QueryCacheEntry(resource_type=resource_type, query=query, data=data)

    def delete_all(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class ResourceCache:
    """The by-UUID and by-query tiers."""

    def __init__(self) -> None:
        self.by_uuid = ByUuidCache()
        self.by_query = ByQueryCache()

    def delete_all(self) -> None:
        self.by_uuid.delete_all()
        self.by_query.delete_all()


class FetchCache:
    """
    In-flight markers for references and query strings.

    A marker only records that a fetch has started. Markers are never removed
    individually, not even when the fetch fails; ``delete_all`` at the end of
    the command is the only way to clear them.
    """

    def __init__(self) -> None:
        self._keys: set[str] = set()

    def exists(self, key: str) -> bool:
        return key in self._keys

    def set(self, key: str) -> None:
        self._keys.add(key)

    def delete_all(self) -> None:
        self._keys.clear()

    def __len__(self) -> int:
        return len(self._keys)
