"""Tests for settings and logging configuration."""

import logging

import pytest

from stream_registry.adapters import database
from stream_registry.observability import KeyValueFormatter, logging_config
from stream_registry.settings import Settings


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings()

        assert settings.database_url.startswith("postgresql+asyncpg://")
        assert settings.default_specification_type == "default"
        assert settings.authorization_enabled is False
        assert settings.admin_roles == ["admin"]

    def test_environment_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STREAM_REGISTRY_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("STREAM_REGISTRY_AUTHORIZATION_ENABLED", "true")
        monkeypatch.setenv("STREAM_REGISTRY_WRITER_ROLES", '["writer", "operator"]')

        settings = Settings()

        assert settings.log_level == "DEBUG"
        assert settings.authorization_enabled is True
        assert settings.writer_roles == ["writer", "operator"]


class TestLogging:
    def test_formatter_appends_extra_context(self) -> None:
        formatter = KeyValueFormatter("%(levelname)s %(message)s")
        record = logging.makeLogRecord(
            {"levelname": "INFO", "msg": "Entity created", "kind": "zone", "actor": "alice"}
        )

        assert formatter.format(record) == "INFO Entity created actor=alice kind=zone"

    def test_formatter_without_extra(self) -> None:
        formatter = KeyValueFormatter("%(message)s")

        assert formatter.format(logging.makeLogRecord({"msg": "plain"})) == "plain"

    def test_logging_config_uses_settings(self) -> None:
        config = logging_config(Settings(log_level="debug", service_name="registry-test"))

        assert config["loggers"]["stream_registry"]["level"] == "DEBUG"
        assert "[registry-test]" in config["formatters"]["keyvalue"]["format"]


class TestDatabase:
    @pytest.mark.asyncio()
    async def test_get_session_requires_initialization(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(database, "_session_factory", None)

        with pytest.raises(RuntimeError, match="init_database"):
            async with database.get_session():
                pass

    @pytest.mark.asyncio()
    async def test_create_schema_requires_initialization(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(database, "_engine", None)

        with pytest.raises(RuntimeError, match="init_database"):
            await database.create_schema()
