"""SQLAlchemy Storage Port for the registry metadata database.

SqlAlchemyRepository implements IRepository for one entity type over the
shared sr_registry_entities table. Writes flush but never commit; the owner
of the session (see adapters/database.get_session) decides the transaction
boundary. SQLAlchemy errors propagate unchanged and are never retried here.
"""

import logging
from typing import Any, Generic, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from stream_registry.adapters.database import EntityRecord
from stream_registry.core.keys import RegistryKey
from stream_registry.core.models import Entity

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=RegistryKey)
E = TypeVar("E", bound=Entity[Any])


class SqlAlchemyRepository(Generic[K, E]):
    """Repository for one entity type on the metadata database.

    Args:
        session: The async session for the metadata database.
        entity_type: The entity model class stored by this repository.
    """

    def __init__(self, session: AsyncSession, entity_type: type[E]) -> None:
        self._session = session
        self._entity_type = entity_type
        self._kind = entity_type.kind.value

    def _to_entity(self, record: EntityRecord) -> E:
        return self._entity_type.model_validate({**record.document, "status": record.status})

    async def _find_record(self, key: K) -> EntityRecord | None:
        stmt = select(EntityRecord).where(
            EntityRecord.kind == self._kind,
            EntityRecord.entity_key == key.model_dump_json(),
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def save_specification(self, entity: E) -> E | None:
        """Write the entity document, keeping any stored status."""
        document = entity.model_dump(mode="json", exclude={"status"})
        record = await self._find_record(entity.key)
        if record is None:
            record = EntityRecord(
                kind=self._kind,
                entity_key=entity.key.model_dump_json(),
                document=document,
                status=None,
            )
            self._session.add(record)
        else:
            record.document = document
        await self._session.flush()
        logger.debug("Specification saved", extra={"kind": self._kind, "key": record.entity_key})
        return self._to_entity(record)

    async def save_status(self, entity: E) -> E | None:
        """Write the entity status, keeping any stored specification.

        A key with no stored row gets a status-only record whose document
        carries no specification.
        """
        status = entity.status.model_dump(mode="json") if entity.status is not None else None
        record = await self._find_record(entity.key)
        if record is None:
            record = EntityRecord(
                kind=self._kind,
                entity_key=entity.key.model_dump_json(),
                document=entity.model_dump(mode="json", exclude={"status"}) | {"specification": None},
                status=status,
            )
            self._session.add(record)
        else:
            record.status = status
        await self._session.flush()
        logger.debug("Status saved", extra={"kind": self._kind, "key": record.entity_key})
        return self._to_entity(record)

    async def find_by_id(self, key: K) -> E | None:
        record = await self._find_record(key)
        return self._to_entity(record) if record is not None else None

    async def find_all(self) -> list[E]:
        stmt = select(EntityRecord).where(EntityRecord.kind == self._kind).order_by(EntityRecord.id)
        result = await self._session.execute(stmt)
        return [self._to_entity(record) for record in result.scalars().all()]

    async def delete(self, entity: E) -> None:
        stmt = delete(EntityRecord).where(
            EntityRecord.kind == self._kind,
            EntityRecord.entity_key == entity.key.model_dump_json(),
        )
        await self._session.execute(stmt)
        await self._session.flush()
