"""Tests for structural keys and entity reference helpers."""

import pydantic
import pytest

from stream_registry.core.keys import (
    DomainKey,
    InfrastructureKey,
    ProcessKey,
    StreamKey,
    ZoneKey,
)
from stream_registry.core.models import KEY_ENTITY_KINDS, EntityKind
from tests.conftest import (
    DOMAIN,
    STREAM,
    ZONE,
    infrastructure_key,
    make_consumer_binding,
    make_process_binding,
    make_producer_binding,
    stream_binding_key,
)


class TestKeys:
    def test_value_equality_and_hashing(self) -> None:
        assert ZoneKey(name="z1") == ZONE
        assert len({ZoneKey(name="z1"), ZONE}) == 1

    def test_keys_of_different_types_are_distinct(self) -> None:
        assert DomainKey(name="z1") != ZoneKey(name="z1")

    def test_keys_are_immutable(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            ZONE.name = "z2"  # type: ignore[misc]

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_names_are_rejected(self, name: str) -> None:
        with pytest.raises(pydantic.ValidationError):
            ZoneKey(name=name)

    def test_stream_version_defaults_to_one_and_must_be_positive(self) -> None:
        assert StreamKey(domain_key=DOMAIN, name="s").version == 1
        with pytest.raises(pydantic.ValidationError):
            StreamKey(domain_key=DOMAIN, name="s", version=0)

    def test_embedded_keys_are_depth_first(self) -> None:
        key = make_producer_binding().key

        assert list(key.embedded_keys()) == [key.producer_key, STREAM, DOMAIN, ZONE]

    def test_binding_keys_derive_infrastructure_in_own_zone(self) -> None:
        key = make_consumer_binding(infrastructure="pulsar").key

        assert key.infrastructure_key == InfrastructureKey(zone_key=ZONE, name="pulsar")
        assert key.stream_binding_key == stream_binding_key(infrastructure="pulsar")

    def test_process_binding_key_derives_process_key(self) -> None:
        assert make_process_binding().key.process_key == ProcessKey(domain_key=DOMAIN, name="enricher")

    def test_every_key_type_maps_to_an_entity_kind(self) -> None:
        assert set(KEY_ENTITY_KINDS.values()) == set(EntityKind)


class TestEntityReferences:
    def test_producer_binding_parents(self) -> None:
        binding = make_producer_binding()

        assert binding.parent_keys() == [binding.key.producer_key, stream_binding_key()]

    def test_process_binding_references_include_cross_zone_outputs(self) -> None:
        other = ZoneKey(name="z2")
        binding = make_process_binding(outputs=[stream_binding_key(other)])

        referenced = binding.referenced_keys()

        assert binding.key in referenced
        assert other in referenced
        assert infrastructure_key(other) in referenced
        assert make_process_binding().key.process_key in referenced
