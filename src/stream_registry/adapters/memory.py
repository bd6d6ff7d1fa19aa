"""In-memory Storage Port for tests and embedded use.

Entities are kept in insertion order in a dict keyed by their (hashable)
key. Every entity is deep-copied on the way in and on the way out, so
callers never share mutable state with the store.
"""

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from stream_registry.core.keys import RegistryKey
from stream_registry.core.models import Entity

K = TypeVar("K", bound=RegistryKey)
E = TypeVar("E", bound=Entity[Any])


class InMemoryRepository(Generic[K, E]):
    """Dict-backed implementation of IRepository for one entity type."""

    def __init__(self, entities: Sequence[E] = ()) -> None:
        self._entities: dict[K, E] = {}
        for entity in entities:
            self._entities[entity.key] = entity.model_copy(deep=True)

    def __len__(self) -> int:
        return len(self._entities)

    async def save_specification(self, entity: E) -> E | None:
        existing = self._entities.get(entity.key)
        stored = entity.model_copy(update={"status": existing.status if existing else None}, deep=True)
        self._entities[entity.key] = stored
        return stored.model_copy(deep=True)

    async def save_status(self, entity: E) -> E | None:
        existing = self._entities.get(entity.key)
        if existing is None:
            # Status-only record: no specification has been accepted for this key.
            stored = entity.model_copy(update={"specification": None}, deep=True)
        else:
            status = entity.status.model_copy(deep=True) if entity.status is not None else None
            stored = existing.model_copy(update={"status": status}, deep=True)
        self._entities[entity.key] = stored
        return stored.model_copy(deep=True)

    async def find_by_id(self, key: K) -> E | None:
        entity = self._entities.get(key)
        return entity.model_copy(deep=True) if entity is not None else None

    async def find_all(self) -> list[E]:
        return [entity.model_copy(deep=True) for entity in self._entities.values()]

    async def delete(self, entity: E) -> None:
        self._entities.pop(entity.key, None)
