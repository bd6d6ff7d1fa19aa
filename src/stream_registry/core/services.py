"""Entity lifecycle services for the stream registry.

EntityService is the one lifecycle engine shared by every entity type. It is
instantiated per type with that type's view, Storage Port, validator,
handler service and (for shared resources) referential integrity engine,
and it is the only writer of its Storage Port.

Lifecycle:
- create        - reject live keys, validate, compute the accepted specification, persist it
- update        - require a live key, validate against the existing entity, persist the new specification
- update_status - persist an observed status; no existence check, validation or handler call
- get/find_all  - actor-scoped reads, READ-denied entities are treated as absent
- delete        - handler reaction, integrity check, child cascade, then storage delete

Subclasses add type-specific behaviour:
- ConsumerService / ProducerService cascade deletion to their bindings
- ConsumerBindingService / ProducerBindingService look bindings up by parent key
"""

import logging
from typing import Any, Generic, TypeVar

from stream_registry.core.authorization import Action, Actor, requires_permission
from stream_registry.core.integrity import ReferentialIntegrityEngine
from stream_registry.core.interfaces import IHandlerService, IPermissionEvaluator, IRepository, IValidator
from stream_registry.core.keys import ConsumerBindingKey, ConsumerKey, ProducerBindingKey, ProducerKey, RegistryKey
from stream_registry.core.locking import KeyLocks
from stream_registry.core.models import (
    Consumer,
    ConsumerBinding,
    Entity,
    Producer,
    ProducerBinding,
    Status,
)
from stream_registry.core.views import Predicate, View
from stream_registry.errors import AlreadyExistsError, NotFoundError

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=RegistryKey)
E = TypeVar("E", bound=Entity[Any])


class EntityService(Generic[K, E]):
    """Generic create/update/status/delete lifecycle for one entity type.

    Args:
        view: Read view over this type's Storage Port.
        repository: The Storage Port; only this service writes to it.
        validator: Rule checker invoked before create and update.
        handler_service: Computes accepted specifications and reacts to deletes.
        permissions: Authorization collaborator for writes and reads.
        locks: Key locks shared across every service of the registry.
        integrity: Engine guarding deletion of this type, if it is a shared resource.
    """

    def __init__(
        self,
        view: View[K, E],
        repository: IRepository[K, E],
        validator: IValidator[E],
        handler_service: IHandlerService,
        permissions: IPermissionEvaluator,
        locks: KeyLocks | None = None,
        integrity: ReferentialIntegrityEngine[Any] | None = None,
    ) -> None:
        self._view = view
        self._repository = repository
        self._validator = validator
        self._handler_service = handler_service
        self._permissions = permissions
        self._locks = locks or KeyLocks()
        self._integrity = integrity

    @property
    def view(self) -> View[K, E]:
        return self._view

    @requires_permission(Action.CREATE)
    async def create(self, actor: Actor, entity: E) -> E | None:
        """Create a new entity from its desired state.

        Args:
            actor: The acting principal.
            entity: Desired entity; its key must not be live.

        Returns:
            The persisted entity, or None if the Storage Port returned no result.

        Raises:
            AlreadyExistsError: If an entity with the same key exists.
            ValidationError: If the validator or handler rejects the entity.
            AuthorizationDeniedError: If actor may not CREATE the entity.
        """
        async with self._locks.hold(entity.referenced_keys()):
            if await self._view.get(entity.key) is not None:
                raise AlreadyExistsError(entity.kind.value, repr(entity.key))
            await self._validator.validate_for_create(entity)
            specification = await self._handler_service.handle_insert(entity)
            saved = await self._repository.save_specification(entity.model_copy(update={"specification": specification}))

        logger.info("Entity created", extra={"kind": entity.kind.value, "key": repr(entity.key), "actor": actor.name})
        return saved

    @requires_permission(Action.UPDATE)
    async def update(self, actor: Actor, entity: E) -> E | None:
        """Replace the specification of an existing entity.

        Args:
            actor: The acting principal.
            entity: Desired entity; its key must be live.

        Returns:
            The persisted entity, or None if the Storage Port returned no result.

        Raises:
            NotFoundError: If no entity exists for the key.
            ValidationError: If the validator or handler rejects the entity.
            AuthorizationDeniedError: If actor may not UPDATE the entity.
        """
        async with self._locks.hold(entity.referenced_keys()):
            existing = await self._view.get(entity.key)
            if existing is None:
                raise NotFoundError(entity.kind.value, repr(entity.key))
            await self._validator.validate_for_update(entity, existing)
            specification = await self._handler_service.handle_update(entity, existing)
            saved = await self._repository.save_specification(entity.model_copy(update={"specification": specification}))

        logger.info("Entity updated", extra={"kind": entity.kind.value, "key": repr(entity.key), "actor": actor.name})
        return saved

    @requires_permission(Action.UPDATE_STATUS)
    async def update_status(self, actor: Actor, entity: E, status: Status) -> E | None:
        """Record an observed status for the entity.

        Status is an observation channel decoupled from the validated
        specification path: the key is not required to exist and neither the
        validator nor the handler service is consulted. The write holds the
        same key locks as create; a status-only record is visible to
        integrity scans.

        Returns:
            The persisted entity, or None if the Storage Port returned no result.
        """
        async with self._locks.hold(entity.referenced_keys()):
            saved = await self._repository.save_status(entity.model_copy(update={"status": status}))
        logger.info(
            "Entity status updated",
            extra={"kind": entity.kind.value, "key": repr(entity.key), "actor": actor.name},
        )
        return saved

    async def get(self, actor: Actor, key: K) -> E | None:
        """Return the entity for key, or None if absent or not readable by actor."""
        return await self._view.get(key, actor=actor)

    async def find_all(self, actor: Actor, predicate: Predicate[E] | None = None) -> list[E]:
        """Return entities matching predicate that actor may read, in storage order."""
        return [entity async for entity in self._view.find_all(predicate, actor=actor)]

    @requires_permission(Action.DELETE)
    async def delete(self, actor: Actor, entity: E) -> None:
        """Delete an entity once nothing depends on it.

        The handler service reacts first; it does not gate the deletion. For
        shared resources the integrity engine must then find no dependent,
        otherwise nothing is deleted.

        Raises:
            ResourceInUseError: If a dependent still references the entity.
            AuthorizationDeniedError: If actor may not DELETE the entity.
        """
        async with self._locks.hold([entity.key]):
            await self._delete(actor, entity)

    @requires_permission(Action.DELETE)
    async def delete_owned(self, actor: Actor, entity: E) -> None:
        """Delete a child entity while the caller holds its owner's lock.

        Creating or updating the child requires the owner's lock too, so the
        child cannot change underneath; its own lock is not taken.
        """
        await self._delete(actor, entity)

    async def _delete(self, actor: Actor, entity: E) -> None:
        await self._handler_service.handle_delete(entity)
        if self._integrity is not None:
            await self._integrity.ensure_deletable(entity.key)
        await self._delete_children(actor, entity)
        await self._repository.delete(entity)
        logger.info("Entity deleted", extra={"kind": entity.kind.value, "key": repr(entity.key), "actor": actor.name})

    async def _delete_children(self, actor: Actor, entity: E) -> None:
        """Hook for types whose deletion cascades to owned children."""


class ConsumerBindingService(EntityService[ConsumerBindingKey, ConsumerBinding]):
    async def find(self, actor: Actor, consumer_key: ConsumerKey) -> ConsumerBinding | None:
        """Return the first binding of the consumer readable by actor."""
        return await self._view.first(lambda b: b.key.consumer_key == consumer_key, actor=actor)


class ProducerBindingService(EntityService[ProducerBindingKey, ProducerBinding]):
    async def find(self, actor: Actor, producer_key: ProducerKey) -> ProducerBinding | None:
        """Return the first binding of the producer readable by actor."""
        return await self._view.first(lambda b: b.key.producer_key == producer_key, actor=actor)


class ConsumerService(EntityService[ConsumerKey, Consumer]):
    """Consumer lifecycle; deleting a consumer deletes its consumer bindings first."""

    def __init__(self, *args: Any, binding_service: ConsumerBindingService, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._binding_service = binding_service

    async def _delete_children(self, actor: Actor, entity: Consumer) -> None:
        bindings = [b async for b in self._binding_service.view.find_all(lambda b: b.key.consumer_key == entity.key)]
        for binding in bindings:
            await self._binding_service.delete_owned(actor, binding)


class ProducerService(EntityService[ProducerKey, Producer]):
    """Producer lifecycle; deleting a producer deletes its producer bindings first."""

    def __init__(self, *args: Any, binding_service: ProducerBindingService, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._binding_service = binding_service

    async def _delete_children(self, actor: Actor, entity: Producer) -> None:
        bindings = [b async for b in self._binding_service.view.find_all(lambda b: b.key.producer_key == entity.key)]
        for binding in bindings:
            await self._binding_service.delete_owned(actor, binding)
