"""Abstract interfaces (Protocol classes) for the governance engine.

Defines the contracts between the lifecycle engine and its collaborators
using typing.Protocol. Services depend on these protocols, never on concrete
adapter implementations, so they can be tested with mock collaborators.

Protocols defined:
- IRepository           - per-entity-type Storage Port
- IValidator            - stateless create/update rule checker
- IHandler              - computes the accepted specification for one kind/type
- IHandlerService       - dispatches insert/update/delete to handlers
- IPermissionEvaluator  - allow/deny for (actor, entity, action)
"""

from collections.abc import Sequence
from typing import Any, Protocol, TypeVar

from stream_registry.core.authorization import Action, Actor
from stream_registry.core.keys import RegistryKey
from stream_registry.core.models import Entity, EntityKind, Specification

K = TypeVar("K", bound=RegistryKey)
E = TypeVar("E", bound=Entity[Any])


class IRepository(Protocol[K, E]):
    """Storage Port contract for one entity type.

    Implementations must make each call atomic for a single entity and must
    not enforce any cross-entity constraint. Backend failures propagate.
    """

    async def save_specification(self, entity: E) -> E | None:
        """Persist the key, specification and structural fields of an entity.

        Any status already stored under the key is kept unchanged.

        Args:
            entity: The entity carrying the accepted specification.

        Returns:
            The stored entity, or None when the backend reports no result.
        """
        ...

    async def save_status(self, entity: E) -> E | None:
        """Persist only the status of an entity.

        Any specification already stored under the key is kept unchanged.

        Args:
            entity: The entity carrying the new status.

        Returns:
            The stored entity, or None when the backend reports no result.
        """
        ...

    async def find_by_id(self, key: K) -> E | None:
        """Return the entity stored under key, or None."""
        ...

    async def find_all(self) -> Sequence[E]:
        """Return every stored entity of this type in storage order."""
        ...

    async def delete(self, entity: E) -> None:
        """Remove the entity. A missing key is not an error."""
        ...


class IValidator(Protocol[E]):
    """Rule checker invoked before create and update. Never mutates."""

    async def validate_for_create(self, entity: E) -> None:
        """Raise ValidationError if entity may not be created."""
        ...

    async def validate_for_update(self, entity: E, existing: E) -> None:
        """Raise ValidationError if existing may not be replaced by entity."""
        ...


class IHandler(Protocol):
    """Computes the accepted specification for one entity kind and specification type."""

    kind: EntityKind
    type: str

    async def handle_insert(self, entity: Entity[Any]) -> Specification:
        ...

    async def handle_update(self, entity: Entity[Any], existing: Entity[Any]) -> Specification:
        ...

    async def handle_delete(self, entity: Entity[Any]) -> None:
        ...


class IHandlerService(Protocol):
    """Dispatches lifecycle events to the handler registered for an entity."""

    async def handle_insert(self, entity: Entity[Any]) -> Specification:
        """Return the accepted specification for a new entity.

        Raises:
            ValidationError: If the desired specification is rejected.
        """
        ...

    async def handle_update(self, entity: Entity[Any], existing: Entity[Any]) -> Specification:
        """Return the accepted specification replacing existing's.

        Raises:
            ValidationError: If the desired specification is rejected.
        """
        ...

    async def handle_delete(self, entity: Entity[Any]) -> None:
        """React to a deletion. Does not gate it."""
        ...


class IPermissionEvaluator(Protocol):
    """Authorization collaborator."""

    def has_permission(self, actor: Actor, entity: Entity[Any], action: Action) -> bool:
        """Return True if actor may perform action on entity."""
        ...
