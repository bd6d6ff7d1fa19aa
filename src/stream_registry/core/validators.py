"""Default validator applied to every entity type before create and update.

Checks performed:
- a specification is present (the desired state must be declared),
- every parent key the entity references resolves to a created entity
  (e.g. a producer binding needs its producer and its stream binding);
  a status-only record does not count.

Validators are stateless with respect to the registry: they only read
through system views and never mutate.
"""

import logging
from collections.abc import Mapping
from typing import Any

from stream_registry.core.models import KEY_ENTITY_KINDS, Entity, EntityKind
from stream_registry.core.views import View
from stream_registry.errors import ValidationError

logger = logging.getLogger(__name__)


class EntityValidator:
    """Specification-presence and parent-existence validator.

    Args:
        views: System views keyed by entity kind, used to resolve parent keys.
    """

    def __init__(self, views: Mapping[EntityKind, View[Any, Any]]) -> None:
        self._views = views

    async def validate_for_create(self, entity: Entity[Any]) -> None:
        """Validate a desired entity before creation.

        Raises:
            ValidationError: If the specification is missing or a parent does not exist.
        """
        self._require_specification(entity)
        await self._require_parents(entity)

    async def validate_for_update(self, entity: Entity[Any], existing: Entity[Any]) -> None:
        """Validate a desired entity before it replaces existing.

        Raises:
            ValidationError: If the keys differ, the specification is missing
                or a parent does not exist.
        """
        if entity.key != existing.key:
            raise ValidationError(f"Can't change the key of {entity.kind.value} {existing.key!r}", field="key")
        self._require_specification(entity)
        await self._require_parents(entity)

    @staticmethod
    def _require_specification(entity: Entity[Any]) -> None:
        if entity.specification is None:
            raise ValidationError(
                f"{entity.kind.value} {entity.key!r} has no specification",
                field="specification",
            )

    async def _require_parents(self, entity: Entity[Any]) -> None:
        for parent_key in entity.parent_keys():
            parent_kind = KEY_ENTITY_KINDS[type(parent_key)]
            parent = await self._views[parent_kind].get(parent_key)
            # A status-only record has never been created.
            if parent is None or parent.specification is None:
                logger.info(
                    "Parent entity missing",
                    extra={"kind": entity.kind.value, "parent_kind": parent_kind.value, "parent_key": repr(parent_key)},
                )
                raise ValidationError(
                    f"{parent_kind.value} {parent_key!r} does not exist",
                    field=parent_kind.value,
                )
