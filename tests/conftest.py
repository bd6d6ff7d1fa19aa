"""Test fixtures for the stream registry.

Provides:
- actor / reader: Actor principals for service calls
- mock_repository: AsyncMock Storage Port with an empty store
- mock_validator / mock_handler_service: AsyncMock collaborators
- allow_all: a MagicMock permission evaluator that allows everything
- registry: an in-memory StreamRegistry with the default collaborators
- make_* helpers: deterministic keys and entities for a small topology
"""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from stream_registry.core.authorization import Actor
from stream_registry.core.keys import (
    ConsumerBindingKey,
    ConsumerKey,
    DomainKey,
    InfrastructureKey,
    ProcessBindingKey,
    ProcessKey,
    ProducerBindingKey,
    ProducerKey,
    SchemaKey,
    StreamBindingKey,
    StreamKey,
    ZoneKey,
)
from stream_registry.core.models import (
    Consumer,
    ConsumerBinding,
    Domain,
    Infrastructure,
    Process,
    ProcessBinding,
    ProcessInputStreamBinding,
    ProcessOutputStreamBinding,
    Producer,
    ProducerBinding,
    Schema,
    Specification,
    Stream,
    StreamBinding,
    Zone,
)
from stream_registry.registry import StreamRegistry, in_memory_registry

DOMAIN = DomainKey(name="orders")
ZONE = ZoneKey(name="z1")
OTHER_ZONE = ZoneKey(name="z2")
SCHEMA = SchemaKey(domain_key=DOMAIN, name="order_event")
STREAM = StreamKey(domain_key=DOMAIN, name="order-events", version=1)


def make_spec(description: str = "", **configuration: Any) -> Specification:
    return Specification(description=description, configuration=configuration)


def infrastructure_key(zone: ZoneKey = ZONE, name: str = "kafka") -> InfrastructureKey:
    return InfrastructureKey(zone_key=zone, name=name)


def stream_binding_key(zone: ZoneKey = ZONE, infrastructure: str = "kafka") -> StreamBindingKey:
    return StreamBindingKey(stream_key=STREAM, infrastructure_key=infrastructure_key(zone, infrastructure))


def make_zone(zone: ZoneKey = ZONE) -> Zone:
    return Zone(key=zone, specification=make_spec(f"zone {zone.name}"))


def make_infrastructure(zone: ZoneKey = ZONE, name: str = "kafka") -> Infrastructure:
    return Infrastructure(key=infrastructure_key(zone, name), specification=make_spec("cluster"))


def make_stream_binding(zone: ZoneKey = ZONE, infrastructure: str = "kafka") -> StreamBinding:
    return StreamBinding(key=stream_binding_key(zone, infrastructure), specification=make_spec())


def make_producer(zone: ZoneKey = ZONE, name: str = "checkout") -> Producer:
    return Producer(key=ProducerKey(stream_key=STREAM, zone_key=zone, name=name), specification=make_spec())


def make_consumer(zone: ZoneKey = ZONE, name: str = "billing") -> Consumer:
    return Consumer(key=ConsumerKey(stream_key=STREAM, zone_key=zone, name=name), specification=make_spec())


def make_producer_binding(zone: ZoneKey = ZONE, name: str = "checkout", infrastructure: str = "kafka") -> ProducerBinding:
    key = ProducerBindingKey(producer_key=make_producer(zone, name).key, infrastructure_name=infrastructure)
    return ProducerBinding(key=key, specification=make_spec())


def make_consumer_binding(zone: ZoneKey = ZONE, name: str = "billing", infrastructure: str = "kafka") -> ConsumerBinding:
    key = ConsumerBindingKey(consumer_key=make_consumer(zone, name).key, infrastructure_name=infrastructure)
    return ConsumerBinding(key=key, specification=make_spec())


def make_process(zones: list[ZoneKey] | None = None, name: str = "enricher") -> Process:
    return Process(
        key=ProcessKey(domain_key=DOMAIN, name=name),
        specification=make_spec(),
        zones=zones if zones is not None else [ZONE],
    )


def make_process_binding(
    zone: ZoneKey = ZONE,
    name: str = "enricher",
    inputs: list[StreamBindingKey] | None = None,
    outputs: list[StreamBindingKey] | None = None,
) -> ProcessBinding:
    return ProcessBinding(
        key=ProcessBindingKey(domain_key=DOMAIN, zone_key=zone, process_name=name),
        specification=make_spec(),
        inputs=[ProcessInputStreamBinding(stream_binding_key=k) for k in inputs or []],
        outputs=[ProcessOutputStreamBinding(stream_binding_key=k) for k in outputs or []],
    )


async def seed_stream(registry: StreamRegistry, actor: Actor) -> None:
    """Create the domain, schema and stream every topology test builds on."""
    await registry.domains.create(actor, Domain(key=DOMAIN, specification=make_spec()))
    await registry.schemas.create(actor, Schema(key=SCHEMA, specification=make_spec()))
    await registry.streams.create(actor, Stream(key=STREAM, schema_key=SCHEMA, specification=make_spec()))


async def seed_zone_topology(registry: StreamRegistry, actor: Actor, zone: ZoneKey = ZONE) -> None:
    """Create a zone with its infrastructure and a stream binding on it."""
    await registry.zones.create(actor, make_zone(zone))
    await registry.infrastructures.create(actor, make_infrastructure(zone))
    await registry.stream_bindings.create(actor, make_stream_binding(zone))


@pytest.fixture()
def actor() -> Actor:
    """Return a principal holding the writer role."""
    return Actor(name="alice", roles=frozenset({"writer"}))


@pytest.fixture()
def reader() -> Actor:
    """Return a principal with no roles."""
    return Actor(name="bob")


@pytest.fixture()
def mock_repository() -> AsyncMock:
    """Create a mock Storage Port whose store is empty.

    Returns:
        AsyncMock with find_by_id returning None, find_all returning [] and
        both saves echoing their argument back.
    """
    repository = AsyncMock()
    repository.find_by_id.return_value = None
    repository.find_all.return_value = []
    repository.save_specification.side_effect = lambda entity: entity
    repository.save_status.side_effect = lambda entity: entity
    repository.delete.return_value = None
    return repository


@pytest.fixture()
def mock_validator() -> AsyncMock:
    """Create a mock validator that accepts everything."""
    validator = AsyncMock()
    validator.validate_for_create.return_value = None
    validator.validate_for_update.return_value = None
    return validator


@pytest.fixture()
def mock_handler_service() -> AsyncMock:
    """Create a mock handler service returning a fixed accepted specification."""
    handler_service = AsyncMock()
    handler_service.handle_insert.return_value = make_spec("accepted on insert")
    handler_service.handle_update.return_value = make_spec("accepted on update")
    handler_service.handle_delete.return_value = None
    return handler_service


@pytest.fixture()
def allow_all() -> MagicMock:
    """Create a permission evaluator mock that allows every action."""
    permissions = MagicMock()
    permissions.has_permission.return_value = True
    return permissions


@pytest.fixture()
def registry() -> StreamRegistry:
    """Create an in-memory registry with default validators and handlers."""
    return in_memory_registry()
