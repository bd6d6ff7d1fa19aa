"""Registry wiring: one lifecycle service per entity type.

build_registry() assembles, over a set of Storage Ports:
- one system View per entity type (shared by validators and integrity engines),
- one KeyLocks instance shared by every service,
- the default EntityValidator and HandlerService,
- the referential integrity engines from core/integrity.DEPENDENCY_TABLE,
- the consumer/producer binding cascades.

in_memory_registry() and registry_session() are the two entry points: the
first for tests and embedded use, the second for the SQLAlchemy-backed
metadata database.
"""

import logging
from collections.abc import AsyncIterator, Callable, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from stream_registry.adapters.database import get_session
from stream_registry.adapters.memory import InMemoryRepository
from stream_registry.adapters.repositories import SqlAlchemyRepository
from stream_registry.core.authorization import AllowAllPermissionEvaluator, RolePermissionEvaluator
from stream_registry.core.handlers import HandlerService, PassthroughHandler
from stream_registry.core.integrity import ReferentialIntegrityEngine, build_integrity_engines
from stream_registry.core.interfaces import IHandlerService, IPermissionEvaluator, IRepository, IValidator
from stream_registry.core.keys import (
    DomainKey,
    InfrastructureKey,
    ProcessBindingKey,
    ProcessKey,
    SchemaKey,
    StreamBindingKey,
    StreamKey,
    ZoneKey,
)
from stream_registry.core.locking import KeyLocks
from stream_registry.core.models import (
    ENTITY_TYPES,
    Domain,
    EntityKind,
    Infrastructure,
    Process,
    ProcessBinding,
    Schema,
    Stream,
    StreamBinding,
    Zone,
)
from stream_registry.core.services import (
    ConsumerBindingService,
    ConsumerService,
    EntityService,
    ProducerBindingService,
    ProducerService,
)
from stream_registry.core.validators import EntityValidator
from stream_registry.core.views import View
from stream_registry.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class StreamRegistry:
    """All entity services of one registry, plus its integrity engines."""

    domains: EntityService[DomainKey, Domain]
    schemas: EntityService[SchemaKey, Schema]
    streams: EntityService[StreamKey, Stream]
    zones: EntityService[ZoneKey, Zone]
    infrastructures: EntityService[InfrastructureKey, Infrastructure]
    producers: ProducerService
    consumers: ConsumerService
    processes: EntityService[ProcessKey, Process]
    stream_bindings: EntityService[StreamBindingKey, StreamBinding]
    producer_bindings: ProducerBindingService
    consumer_bindings: ConsumerBindingService
    process_bindings: EntityService[ProcessBindingKey, ProcessBinding]
    integrity: dict[EntityKind, ReferentialIntegrityEngine[Any]]

    def service_for(self, kind: EntityKind) -> EntityService[Any, Any]:
        """Return the lifecycle service for an entity kind."""
        return {
            EntityKind.DOMAIN: self.domains,
            EntityKind.SCHEMA: self.schemas,
            EntityKind.STREAM: self.streams,
            EntityKind.ZONE: self.zones,
            EntityKind.INFRASTRUCTURE: self.infrastructures,
            EntityKind.PRODUCER: self.producers,
            EntityKind.CONSUMER: self.consumers,
            EntityKind.PROCESS: self.processes,
            EntityKind.STREAM_BINDING: self.stream_bindings,
            EntityKind.PRODUCER_BINDING: self.producer_bindings,
            EntityKind.CONSUMER_BINDING: self.consumer_bindings,
            EntityKind.PROCESS_BINDING: self.process_bindings,
        }[kind]


def default_handler_service(specification_type: str = "default") -> HandlerService:
    """Build a HandlerService accepting ``specification_type`` unchanged for every kind."""
    return HandlerService(PassthroughHandler(kind, specification_type) for kind in EntityKind)


def permission_evaluator(settings: Settings) -> IPermissionEvaluator:
    """Build the permission evaluator selected by settings."""
    if not settings.authorization_enabled:
        return AllowAllPermissionEvaluator()
    return RolePermissionEvaluator(settings.admin_roles, settings.writer_roles)


def build_registry(
    repositories: Mapping[EntityKind, IRepository[Any, Any]],
    handler_service: IHandlerService | None = None,
    permissions: IPermissionEvaluator | None = None,
    validators: Mapping[EntityKind, IValidator[Any]] | None = None,
    locks: KeyLocks | None = None,
) -> StreamRegistry:
    """Wire a StreamRegistry over one Storage Port per entity kind.

    Args:
        repositories: Storage Port for every EntityKind.
        handler_service: Handler service; defaults to passthrough handlers.
        permissions: Authorization collaborator; defaults to allow-all.
        validators: Per-kind validator overrides; others get EntityValidator.
        locks: Shared key locks; a fresh KeyLocks by default.

    Returns:
        The wired StreamRegistry.

    Raises:
        ValueError: If a repository is missing for any entity kind.
    """
    missing = [kind.value for kind in EntityKind if kind not in repositories]
    if missing:
        raise ValueError(f"Missing repositories for: {', '.join(missing)}")

    handler_service = handler_service or default_handler_service()
    permissions = permissions or AllowAllPermissionEvaluator()
    locks = locks or KeyLocks()

    views: dict[EntityKind, View[Any, Any]] = {
        kind: View(repositories[kind], permissions) for kind in EntityKind
    }
    default_validator = EntityValidator(views)
    validators = validators or {}
    integrity = build_integrity_engines(views)

    def make(kind: EntityKind, service_class: Callable[..., Any] = EntityService, **extra: Any) -> Any:
        return service_class(
            views[kind],
            repositories[kind],
            validators.get(kind, default_validator),
            handler_service,
            permissions,
            locks=locks,
            integrity=integrity.get(kind),
            **extra,
        )

    producer_bindings = make(EntityKind.PRODUCER_BINDING, ProducerBindingService)
    consumer_bindings = make(EntityKind.CONSUMER_BINDING, ConsumerBindingService)

    return StreamRegistry(
        domains=make(EntityKind.DOMAIN),
        schemas=make(EntityKind.SCHEMA),
        streams=make(EntityKind.STREAM),
        zones=make(EntityKind.ZONE),
        infrastructures=make(EntityKind.INFRASTRUCTURE),
        producers=make(EntityKind.PRODUCER, ProducerService, binding_service=producer_bindings),
        consumers=make(EntityKind.CONSUMER, ConsumerService, binding_service=consumer_bindings),
        processes=make(EntityKind.PROCESS),
        stream_bindings=make(EntityKind.STREAM_BINDING),
        producer_bindings=producer_bindings,
        consumer_bindings=consumer_bindings,
        process_bindings=make(EntityKind.PROCESS_BINDING),
        integrity=integrity,
    )


def in_memory_registry(
    handler_service: IHandlerService | None = None,
    permissions: IPermissionEvaluator | None = None,
) -> StreamRegistry:
    """Build a registry over fresh InMemoryRepository instances."""
    return build_registry(
        {kind: InMemoryRepository() for kind in EntityKind},
        handler_service=handler_service,
        permissions=permissions,
    )


@asynccontextmanager
async def registry_session(
    settings: Settings,
    handler_service: IHandlerService | None = None,
    locks: KeyLocks | None = None,
) -> AsyncIterator[StreamRegistry]:
    """Yield a registry bound to one metadata database session.

    The session commits when the block exits normally and rolls back when it
    raises. init_database() must have been called beforehand. Pass the same
    ``locks`` to every session of a process to keep writes serialized across
    sessions.

    Args:
        settings: Service settings (handler type, authorization).
        handler_service: Handler service; defaults to passthrough handlers.
        locks: Key locks shared across sessions.

    Yields:
        A StreamRegistry whose Storage Ports share the session.
    """
    async with get_session() as session:
        logger.debug("Opening registry session", extra={"service": settings.service_name})
        yield build_registry(
            {kind: SqlAlchemyRepository(session, entity_type) for kind, entity_type in ENTITY_TYPES.items()},
            handler_service=handler_service or default_handler_service(settings.default_specification_type),
            permissions=permission_evaluator(settings),
            locks=locks,
        )
