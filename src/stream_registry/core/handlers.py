"""Handler service: turns a desired specification into the accepted one.

Handlers are registered per (entity kind, specification type). Provisioning
side effects live in handlers, outside this engine; the registry installs a
PassthroughHandler for every kind under the configured default type, which
accepts the desired specification unchanged.
"""

import logging
from collections.abc import Iterable
from typing import Any

from stream_registry.core.interfaces import IHandler
from stream_registry.core.models import Entity, EntityKind, Specification
from stream_registry.errors import ValidationError

logger = logging.getLogger(__name__)


class PassthroughHandler:
    """Accepts the desired specification as-is and has no delete side effects."""

    def __init__(self, kind: EntityKind, type: str = "default") -> None:
        self.kind = kind
        self.type = type

    async def handle_insert(self, entity: Entity[Any]) -> Specification:
        return entity.specification.model_copy(deep=True)  # type: ignore[union-attr]

    async def handle_update(self, entity: Entity[Any], existing: Entity[Any]) -> Specification:
        return entity.specification.model_copy(deep=True)  # type: ignore[union-attr]

    async def handle_delete(self, entity: Entity[Any]) -> None:
        return None


class HandlerService:
    """Dispatches insert/update/delete to the handler for the entity's kind and type.

    Args:
        handlers: Handlers to register. A later handler replaces an earlier one
            registered for the same (kind, type).
    """

    def __init__(self, handlers: Iterable[IHandler] = ()) -> None:
        self._handlers: dict[tuple[EntityKind, str], IHandler] = {}
        for handler in handlers:
            self.register(handler)

    def register(self, handler: IHandler) -> None:
        self._handlers[(handler.kind, handler.type)] = handler

    def _handler_for(self, entity: Entity[Any]) -> IHandler:
        if entity.specification is None:
            raise ValidationError(
                f"{entity.kind.value} {entity.key!r} has no specification",
                field="specification",
            )
        handler = self._handlers.get((entity.kind, entity.specification.type))
        if handler is None:
            raise ValidationError(
                f"There is no handler for {entity.kind.value} type '{entity.specification.type}'",
                field="specification.type",
            )
        return handler

    async def handle_insert(self, entity: Entity[Any]) -> Specification:
        return await self._handler_for(entity).handle_insert(entity)

    async def handle_update(self, entity: Entity[Any], existing: Entity[Any]) -> Specification:
        return await self._handler_for(entity).handle_update(entity, existing)

    async def handle_delete(self, entity: Entity[Any]) -> None:
        """Run the delete handler if one is registered; never blocks the deletion."""
        spec_type = entity.specification.type if entity.specification is not None else None
        handler = self._handlers.get((entity.kind, spec_type)) if spec_type is not None else None
        if handler is None:
            logger.warning(
                "No delete handler registered, skipping",
                extra={"kind": entity.kind.value, "type": spec_type},
            )
            return
        await handler.handle_delete(entity)
