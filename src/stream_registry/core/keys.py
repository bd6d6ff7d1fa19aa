"""Structural keys for every registry entity.

Keys are immutable pydantic models with value equality. They nest: a
producer-binding key embeds a producer key, which embeds a stream key and a
zone key. Keys of different types never compare equal, even when their
fields match (a DomainKey and a ZoneKey both named "eu" are distinct).
"""

from collections.abc import Iterator
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints


class RegistryKey(BaseModel):
    """Base class for all entity keys."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    def lock_name(self) -> str:
        """Return a process-wide unique name for this key, including its type."""
        return f"{type(self).__name__}:{self.model_dump_json()}"

    def embedded_keys(self) -> Iterator["RegistryKey"]:
        """Yield every key nested inside this one, depth first (excluding self)."""
        for name in type(self).model_fields:
            value = getattr(self, name)
            if isinstance(value, RegistryKey):
                yield value
                yield from value.embedded_keys()


Name = Annotated[str, StringConstraints(min_length=1, pattern=r"\S")]


class DomainKey(RegistryKey):
    name: Name


class ZoneKey(RegistryKey):
    name: Name


class SchemaKey(RegistryKey):
    domain_key: DomainKey
    name: Name


class StreamKey(RegistryKey):
    domain_key: DomainKey
    name: Name
    version: Annotated[int, Field(ge=1)] = 1


class InfrastructureKey(RegistryKey):
    zone_key: ZoneKey
    name: Name


class ProducerKey(RegistryKey):
    stream_key: StreamKey
    zone_key: ZoneKey
    name: Name


class ConsumerKey(RegistryKey):
    stream_key: StreamKey
    zone_key: ZoneKey
    name: Name


class ProcessKey(RegistryKey):
    domain_key: DomainKey
    name: Name


class StreamBindingKey(RegistryKey):
    stream_key: StreamKey
    infrastructure_key: InfrastructureKey


class ProducerBindingKey(RegistryKey):
    """Binds a producer to infrastructure in the producer's own zone."""

    producer_key: ProducerKey
    infrastructure_name: Name

    @property
    def infrastructure_key(self) -> InfrastructureKey:
        return InfrastructureKey(zone_key=self.producer_key.zone_key, name=self.infrastructure_name)

    @property
    def stream_binding_key(self) -> StreamBindingKey:
        return StreamBindingKey(stream_key=self.producer_key.stream_key, infrastructure_key=self.infrastructure_key)


class ConsumerBindingKey(RegistryKey):
    """Binds a consumer to infrastructure in the consumer's own zone."""

    consumer_key: ConsumerKey
    infrastructure_name: Name

    @property
    def infrastructure_key(self) -> InfrastructureKey:
        return InfrastructureKey(zone_key=self.consumer_key.zone_key, name=self.infrastructure_name)

    @property
    def stream_binding_key(self) -> StreamBindingKey:
        return StreamBindingKey(stream_key=self.consumer_key.stream_key, infrastructure_key=self.infrastructure_key)


class ProcessBindingKey(RegistryKey):
    domain_key: DomainKey
    zone_key: ZoneKey
    process_name: Name

    @property
    def process_key(self) -> ProcessKey:
        return ProcessKey(domain_key=self.domain_key, name=self.process_name)
