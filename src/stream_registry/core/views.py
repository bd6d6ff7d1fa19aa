"""Read-side views over the Storage Port.

A View never mutates. It gives services and the referential integrity
engine one read path that applies predicates in-process over find_all(), so
a scan costs O(stored entities of that type) unless the backend indexes
find_by_id.

Reads made on behalf of an actor are filtered through the permission
evaluator (READ denied == absent). Reads with ``actor=None`` are system
reads: the integrity engine scans without filtering so that a dependent the
caller cannot see still blocks deletion.
"""

from collections.abc import AsyncIterator, Callable
from typing import Any, Generic, TypeVar

from stream_registry.core.authorization import Action, Actor, AllowAllPermissionEvaluator
from stream_registry.core.interfaces import IPermissionEvaluator, IRepository
from stream_registry.core.keys import RegistryKey
from stream_registry.core.models import Entity

K = TypeVar("K", bound=RegistryKey)
E = TypeVar("E", bound=Entity[Any])

Predicate = Callable[[E], bool]


class View(Generic[K, E]):
    """Authorization-filtering read wrapper for one entity type.

    Args:
        repository: The Storage Port for this entity type.
        permissions: Evaluator used for actor-scoped reads.
    """

    def __init__(
        self,
        repository: IRepository[K, E],
        permissions: IPermissionEvaluator | None = None,
    ) -> None:
        self._repository = repository
        self._permissions = permissions or AllowAllPermissionEvaluator()

    def _readable(self, entity: E, actor: Actor | None) -> bool:
        return actor is None or self._permissions.has_permission(actor, entity, Action.READ)

    async def get(self, key: K, actor: Actor | None = None) -> E | None:
        """Return the entity stored under key, or None if absent or unreadable."""
        entity = await self._repository.find_by_id(key)
        if entity is None or not self._readable(entity, actor):
            return None
        return entity

    async def find_all(
        self,
        predicate: Predicate[E] | None = None,
        actor: Actor | None = None,
    ) -> AsyncIterator[E]:
        """Lazily yield stored entities matching predicate and readable by actor.

        Both filters are pure, so the order they are applied in does not
        change the result set.
        """
        for entity in await self._repository.find_all():
            if predicate is not None and not predicate(entity):
                continue
            if self._readable(entity, actor):
                yield entity

    async def first(self, predicate: Predicate[E], actor: Actor | None = None) -> E | None:
        """Return the first matching entity, stopping the scan there."""
        async for entity in self.find_all(predicate, actor):
            return entity
        return None
