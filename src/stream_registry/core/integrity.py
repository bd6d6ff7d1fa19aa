"""Referential integrity engine.

The Storage Port has no foreign keys, so before a shared resource (a zone,
domain, schema, stream, infrastructure or process) is deleted, the engine
scans every dependent collection through its View and refuses the deletion
if any dependent still references the resource's key.

Each dependent kind contributes one DependencyRule: a View plus a pure
function ``(dependent, resource_key) -> bool`` that digs the resource key
out of the dependent's (possibly deeply nested) key structure. Rules are
checked in registration order so the reported blocker is deterministic; a
rule stops at its first matching instance, but every rule runs until one
matches. Nothing is ever cascade-deleted.

The check is point-in-time. EntityService.delete runs it while holding the
resource key's lock, and dependent creation takes the same lock (see
core/locking.py), which closes the scan-then-delete window in-process.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from stream_registry.core.keys import (
    DomainKey,
    InfrastructureKey,
    ProcessKey,
    RegistryKey,
    SchemaKey,
    StreamKey,
    ZoneKey,
)
from stream_registry.core.models import (
    Consumer,
    ConsumerBinding,
    EntityKind,
    Infrastructure,
    Process,
    ProcessBinding,
    Producer,
    ProducerBinding,
    Schema,
    Stream,
    StreamBinding,
)
from stream_registry.core.views import View
from stream_registry.errors import ResourceInUseError

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=RegistryKey)


@dataclass(frozen=True)
class DependencyRule(Generic[R]):
    """One dependent collection and how its members reference the resource.

    Attributes:
        kind: Kind of the dependent entities, reported when blocking.
        view: System view over the dependent collection.
        references: Pure predicate ``(dependent, resource_key) -> bool``.
    """

    kind: EntityKind
    view: View[Any, Any]
    references: Callable[[Any, R], bool]


@dataclass(frozen=True)
class Blocker:
    kind: EntityKind
    key: RegistryKey


class ReferentialIntegrityEngine(Generic[R]):
    """Refuses deletion of a resource while any dependent references it.

    Args:
        resource: Kind of the guarded resource.
        rules: Dependency rules, checked in order.
    """

    def __init__(self, resource: EntityKind, rules: Sequence[DependencyRule[R]]) -> None:
        self.resource = resource
        self.rules = tuple(rules)

    async def find_blocker(self, resource_key: R) -> Blocker | None:
        """Return the first dependent referencing resource_key, or None."""
        for rule in self.rules:
            dependent = await rule.view.first(lambda d, rule=rule: rule.references(d, resource_key))
            if dependent is not None:
                return Blocker(kind=rule.kind, key=dependent.key)
        return None

    async def can_delete(self, resource_key: R) -> bool:
        return await self.find_blocker(resource_key) is None

    async def ensure_deletable(self, resource_key: R) -> None:
        """Raise ResourceInUseError if any dependent references resource_key.

        Raises:
            ResourceInUseError: Naming the first dependent's kind and key.
        """
        blocker = await self.find_blocker(resource_key)
        if blocker is None:
            return
        logger.warning(
            "Deletion blocked by dependent",
            extra={
                "resource": self.resource.value,
                "resource_key": repr(resource_key),
                "dependent_kind": blocker.kind.value,
                "dependent_key": repr(blocker.key),
            },
        )
        raise ResourceInUseError(
            resource=self.resource.value,
            resource_id=repr(resource_key),
            dependent_kind=blocker.kind.value,
            dependent_key=blocker.key,
        )


# ---------------------------------------------------------------------------
# Reference predicates: (dependent, resource_key) -> bool
# ---------------------------------------------------------------------------


def stream_binding_uses_zone(binding: StreamBinding, zone_key: ZoneKey) -> bool:
    return binding.key.infrastructure_key.zone_key == zone_key


def consumer_binding_uses_zone(binding: ConsumerBinding, zone_key: ZoneKey) -> bool:
    return binding.key.consumer_key.zone_key == zone_key


def producer_binding_uses_zone(binding: ProducerBinding, zone_key: ZoneKey) -> bool:
    return binding.key.producer_key.zone_key == zone_key


def process_binding_uses_zone(binding: ProcessBinding, zone_key: ZoneKey) -> bool:
    """A process binding uses a zone through its own key, any input or any output."""
    return (
        binding.key.zone_key == zone_key
        or any(i.stream_binding_key.infrastructure_key.zone_key == zone_key for i in binding.inputs)
        or any(o.stream_binding_key.infrastructure_key.zone_key == zone_key for o in binding.outputs)
    )


def process_uses_zone(process: Process, zone_key: ZoneKey) -> bool:
    return zone_key in process.zones


def infrastructure_uses_zone(infrastructure: Infrastructure, zone_key: ZoneKey) -> bool:
    return infrastructure.key.zone_key == zone_key


def schema_in_domain(schema: Schema, domain_key: DomainKey) -> bool:
    return schema.key.domain_key == domain_key


def stream_in_domain(stream: Stream, domain_key: DomainKey) -> bool:
    return stream.key.domain_key == domain_key


def process_in_domain(process: Process, domain_key: DomainKey) -> bool:
    return process.key.domain_key == domain_key


def process_binding_in_domain(binding: ProcessBinding, domain_key: DomainKey) -> bool:
    return binding.key.domain_key == domain_key


def stream_uses_schema(stream: Stream, schema_key: SchemaKey) -> bool:
    return stream.schema_key == schema_key


def stream_binding_of_stream(binding: StreamBinding, stream_key: StreamKey) -> bool:
    return binding.key.stream_key == stream_key


def producer_of_stream(producer: Producer, stream_key: StreamKey) -> bool:
    return producer.key.stream_key == stream_key


def consumer_of_stream(consumer: Consumer, stream_key: StreamKey) -> bool:
    return consumer.key.stream_key == stream_key


def process_uses_stream(process: Process, stream_key: StreamKey) -> bool:
    return any(i.stream_key == stream_key for i in process.inputs) or any(
        o.stream_key == stream_key for o in process.outputs
    )


def stream_binding_on_infrastructure(binding: StreamBinding, infrastructure_key: InfrastructureKey) -> bool:
    return binding.key.infrastructure_key == infrastructure_key


def producer_binding_on_infrastructure(binding: ProducerBinding, infrastructure_key: InfrastructureKey) -> bool:
    return binding.key.infrastructure_key == infrastructure_key


def consumer_binding_on_infrastructure(binding: ConsumerBinding, infrastructure_key: InfrastructureKey) -> bool:
    return binding.key.infrastructure_key == infrastructure_key


def process_binding_on_infrastructure(binding: ProcessBinding, infrastructure_key: InfrastructureKey) -> bool:
    return any(i.stream_binding_key.infrastructure_key == infrastructure_key for i in binding.inputs) or any(
        o.stream_binding_key.infrastructure_key == infrastructure_key for o in binding.outputs
    )


def process_binding_of_process(binding: ProcessBinding, process_key: ProcessKey) -> bool:
    return binding.key.process_key == process_key


# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------

# (dependent kind, reference predicate) per guarded resource, in check order.
DEPENDENCY_TABLE: dict[EntityKind, list[tuple[EntityKind, Callable[[Any, Any], bool]]]] = {
    EntityKind.ZONE: [
        (EntityKind.STREAM_BINDING, stream_binding_uses_zone),
        (EntityKind.CONSUMER_BINDING, consumer_binding_uses_zone),
        (EntityKind.PRODUCER_BINDING, producer_binding_uses_zone),
        (EntityKind.PROCESS_BINDING, process_binding_uses_zone),
        (EntityKind.PROCESS, process_uses_zone),
        (EntityKind.INFRASTRUCTURE, infrastructure_uses_zone),
    ],
    EntityKind.DOMAIN: [
        (EntityKind.SCHEMA, schema_in_domain),
        (EntityKind.STREAM, stream_in_domain),
        (EntityKind.PROCESS, process_in_domain),
        (EntityKind.PROCESS_BINDING, process_binding_in_domain),
    ],
    EntityKind.SCHEMA: [
        (EntityKind.STREAM, stream_uses_schema),
    ],
    EntityKind.STREAM: [
        (EntityKind.STREAM_BINDING, stream_binding_of_stream),
        (EntityKind.PRODUCER, producer_of_stream),
        (EntityKind.CONSUMER, consumer_of_stream),
        (EntityKind.PROCESS, process_uses_stream),
    ],
    EntityKind.INFRASTRUCTURE: [
        (EntityKind.STREAM_BINDING, stream_binding_on_infrastructure),
        (EntityKind.PRODUCER_BINDING, producer_binding_on_infrastructure),
        (EntityKind.CONSUMER_BINDING, consumer_binding_on_infrastructure),
        (EntityKind.PROCESS_BINDING, process_binding_on_infrastructure),
    ],
    EntityKind.PROCESS: [
        (EntityKind.PROCESS_BINDING, process_binding_of_process),
    ],
}


def build_integrity_engines(
    views: dict[EntityKind, View[Any, Any]],
    table: dict[EntityKind, list[tuple[EntityKind, Callable[[Any, Any], bool]]]] | None = None,
) -> dict[EntityKind, ReferentialIntegrityEngine[Any]]:
    """Build one engine per guarded resource kind from a dependency table.

    Args:
        views: System views keyed by entity kind.
        table: Dependency table; defaults to DEPENDENCY_TABLE.

    Returns:
        Integrity engines keyed by the resource kind they guard.
    """
    table = DEPENDENCY_TABLE if table is None else table
    return {
        resource: ReferentialIntegrityEngine(
            resource,
            [DependencyRule(kind=kind, view=views[kind], references=references) for kind, references in rules],
        )
        for resource, rules in table.items()
    }
