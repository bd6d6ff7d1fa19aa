"""Entity models for the stream registry.

Every entity is (key, specification, status):
- the key is fixed for the entity's life,
- the specification is the validated desired state, set only through
  create/update,
- the status is an observation, set only through update_status.

Models:
- Domain, Schema, Stream, Zone, Infrastructure
- Producer, Consumer, Process
- StreamBinding, ProducerBinding, ConsumerBinding, ProcessBinding

Each model declares its EntityKind, the parent keys that must exist before it
can be created (parent_keys), and every key it references (referenced_keys),
which drives write locking.
"""

from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, Field

from stream_registry.core.keys import (
    ConsumerBindingKey,
    ConsumerKey,
    DomainKey,
    InfrastructureKey,
    ProcessBindingKey,
    ProcessKey,
    ProducerBindingKey,
    ProducerKey,
    RegistryKey,
    SchemaKey,
    StreamBindingKey,
    StreamKey,
    ZoneKey,
)

KeyT = TypeVar("KeyT", bound=RegistryKey)


class EntityKind(str, Enum):
    DOMAIN = "domain"
    SCHEMA = "schema"
    STREAM = "stream"
    ZONE = "zone"
    INFRASTRUCTURE = "infrastructure"
    PRODUCER = "producer"
    CONSUMER = "consumer"
    PROCESS = "process"
    STREAM_BINDING = "stream_binding"
    PRODUCER_BINDING = "producer_binding"
    CONSUMER_BINDING = "consumer_binding"
    PROCESS_BINDING = "process_binding"


# ---------------------------------------------------------------------------
# Specification and status documents
# ---------------------------------------------------------------------------


class Tag(BaseModel):
    name: str
    value: str = ""


class Specification(BaseModel):
    """Desired state of an entity.

    Opaque to the engine except for ``type``, which selects the handler that
    computes the accepted specification.
    """

    description: str = ""
    tags: list[Tag] = Field(default_factory=list)
    type: str = "default"
    configuration: dict[str, Any] = Field(default_factory=dict)
    function: str = ""


class Status(BaseModel):
    """Observed state reported by agents; independent of the specification."""

    agent_status: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


class Entity(BaseModel, Generic[KeyT]):
    """Base entity: a key plus independently versioned specification and status."""

    kind: ClassVar[EntityKind]

    key: KeyT
    specification: Specification | None = None
    status: Status | None = None

    def parent_keys(self) -> list[RegistryKey]:
        """Keys of the entities that must exist for this one to be valid."""
        return []

    def referenced_keys(self) -> set[RegistryKey]:
        """Every key this entity embeds or points at, including its own."""
        keys: set[RegistryKey] = {self.key, *self.key.embedded_keys()}
        for parent in self.parent_keys():
            keys.add(parent)
            keys.update(parent.embedded_keys())
        return keys


class Domain(Entity[DomainKey]):
    kind: ClassVar[EntityKind] = EntityKind.DOMAIN


class Zone(Entity[ZoneKey]):
    kind: ClassVar[EntityKind] = EntityKind.ZONE


class Schema(Entity[SchemaKey]):
    kind: ClassVar[EntityKind] = EntityKind.SCHEMA

    def parent_keys(self) -> list[RegistryKey]:
        return [self.key.domain_key]


class Stream(Entity[StreamKey]):
    kind: ClassVar[EntityKind] = EntityKind.STREAM

    schema_key: SchemaKey

    def parent_keys(self) -> list[RegistryKey]:
        return [self.key.domain_key, self.schema_key]


class Infrastructure(Entity[InfrastructureKey]):
    kind: ClassVar[EntityKind] = EntityKind.INFRASTRUCTURE

    def parent_keys(self) -> list[RegistryKey]:
        return [self.key.zone_key]


class Producer(Entity[ProducerKey]):
    kind: ClassVar[EntityKind] = EntityKind.PRODUCER

    def parent_keys(self) -> list[RegistryKey]:
        return [self.key.stream_key, self.key.zone_key]


class Consumer(Entity[ConsumerKey]):
    kind: ClassVar[EntityKind] = EntityKind.CONSUMER

    def parent_keys(self) -> list[RegistryKey]:
        return [self.key.stream_key, self.key.zone_key]


class ProcessInput(BaseModel):
    stream_key: StreamKey
    configuration: dict[str, Any] = Field(default_factory=dict)


class ProcessOutput(BaseModel):
    stream_key: StreamKey
    configuration: dict[str, Any] = Field(default_factory=dict)


class Process(Entity[ProcessKey]):
    """A logical processing job that reads input streams and writes output streams.

    Attributes:
        zones: Zones the process runs in.
        inputs: Streams the process consumes.
        outputs: Streams the process produces.
    """

    kind: ClassVar[EntityKind] = EntityKind.PROCESS

    zones: list[ZoneKey] = Field(default_factory=list)
    inputs: list[ProcessInput] = Field(default_factory=list)
    outputs: list[ProcessOutput] = Field(default_factory=list)

    def parent_keys(self) -> list[RegistryKey]:
        return [
            self.key.domain_key,
            *self.zones,
            *(i.stream_key for i in self.inputs),
            *(o.stream_key for o in self.outputs),
        ]


class StreamBinding(Entity[StreamBindingKey]):
    kind: ClassVar[EntityKind] = EntityKind.STREAM_BINDING

    def parent_keys(self) -> list[RegistryKey]:
        return [self.key.stream_key, self.key.infrastructure_key]


class ProducerBinding(Entity[ProducerBindingKey]):
    kind: ClassVar[EntityKind] = EntityKind.PRODUCER_BINDING

    def parent_keys(self) -> list[RegistryKey]:
        return [self.key.producer_key, self.key.stream_binding_key]


class ConsumerBinding(Entity[ConsumerBindingKey]):
    kind: ClassVar[EntityKind] = EntityKind.CONSUMER_BINDING

    def parent_keys(self) -> list[RegistryKey]:
        return [self.key.consumer_key, self.key.stream_binding_key]


class ProcessInputStreamBinding(BaseModel):
    stream_binding_key: StreamBindingKey
    configuration: dict[str, Any] = Field(default_factory=dict)


class ProcessOutputStreamBinding(BaseModel):
    stream_binding_key: StreamBindingKey
    configuration: dict[str, Any] = Field(default_factory=dict)


class ProcessBinding(Entity[ProcessBindingKey]):
    """Physical realization of a process in one zone.

    Each input and output names the stream binding (and therefore the
    infrastructure and zone) the process reads from or writes to. These may
    live in zones other than the binding's own.
    """

    kind: ClassVar[EntityKind] = EntityKind.PROCESS_BINDING

    inputs: list[ProcessInputStreamBinding] = Field(default_factory=list)
    outputs: list[ProcessOutputStreamBinding] = Field(default_factory=list)

    def parent_keys(self) -> list[RegistryKey]:
        return [
            self.key.process_key,
            self.key.zone_key,
            *(i.stream_binding_key for i in self.inputs),
            *(o.stream_binding_key for o in self.outputs),
        ]


ENTITY_TYPES: dict[EntityKind, type[Entity[Any]]] = {
    entity_type.kind: entity_type
    for entity_type in (
        Domain,
        Schema,
        Stream,
        Zone,
        Infrastructure,
        Producer,
        Consumer,
        Process,
        StreamBinding,
        ProducerBinding,
        ConsumerBinding,
        ProcessBinding,
    )
}

# Entity type owning each key type, used to resolve parent keys to views.
KEY_ENTITY_KINDS: dict[type[RegistryKey], EntityKind] = {
    DomainKey: EntityKind.DOMAIN,
    SchemaKey: EntityKind.SCHEMA,
    StreamKey: EntityKind.STREAM,
    ZoneKey: EntityKind.ZONE,
    InfrastructureKey: EntityKind.INFRASTRUCTURE,
    ProducerKey: EntityKind.PRODUCER,
    ConsumerKey: EntityKind.CONSUMER,
    ProcessKey: EntityKind.PROCESS,
    StreamBindingKey: EntityKind.STREAM_BINDING,
    ProducerBindingKey: EntityKind.PRODUCER_BINDING,
    ConsumerBindingKey: EntityKind.CONSUMER_BINDING,
    ProcessBindingKey: EntityKind.PROCESS_BINDING,
}
