"""Metadata database engine, session factory and ORM mapping.

Key exports:
- Base                - declarative base for the registry's tables
- EntityRecord        - one row per stored entity, for every entity kind
- init_database(...)  - call at startup to create the engine and session factory
- close_database()    - call at shutdown to dispose the engine
- get_session()       - async context yielding a session that commits on success
- create_schema()     - create the registry tables (development and tests)
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from stream_registry.settings import Settings

logger = logging.getLogger(__name__)

_JSON = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    pass


class EntityRecord(Base):
    """Stored registry entity.

    Specification and status are kept in separate columns so that writing
    one never touches the other.

    Attributes:
        kind: Entity kind (zone, stream_binding, ...).
        entity_key: Canonical JSON of the entity key; unique per kind.
        document: The entity without its status (key, specification and
            structural fields such as a process's zones). The specification
            inside it is null for status-only records.
        status: The last reported status, or null.
    """

    __tablename__ = "sr_registry_entities"
    __table_args__ = (UniqueConstraint("kind", "entity_key", name="uq_sr_registry_entities_kind_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    entity_key: Mapped[str] = mapped_column(String(2048), nullable=False)
    document: Mapped[dict[str, Any]] = mapped_column(_JSON, nullable=False)
    status: Mapped[dict[str, Any] | None] = mapped_column(_JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )


# Module-level engine and session factory, initialized by init_database()
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def init_database(settings: Settings) -> AsyncEngine:
    """Initialize the metadata database engine and session factory.

    Args:
        settings: Service settings (database_url and pool options).

    Returns:
        The created AsyncEngine.
    """
    global _engine, _session_factory  # noqa: PLW0603

    logger.info(
        "Initializing metadata database engine",
        extra={"pool_size": settings.database_pool_size, "max_overflow": settings.database_max_overflow},
    )
    engine_options: dict[str, Any] = {"echo": settings.database_echo, "pool_pre_ping": True}
    if not settings.database_url.startswith("sqlite"):
        engine_options.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_timeout=settings.database_pool_timeout,
        )
    _engine = create_async_engine(settings.database_url, **engine_options)
    _session_factory = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return _engine


async def close_database() -> None:
    """Dispose the metadata database engine."""
    global _engine, _session_factory  # noqa: PLW0603

    if _engine is not None:
        logger.info("Disposing metadata database engine")
        await _engine.dispose()
        _engine = None
        _session_factory = None


async def create_schema() -> None:
    """Create the registry tables if they do not exist.

    Raises:
        RuntimeError: If init_database() has not been called yet.
    """
    if _engine is None:
        raise RuntimeError("Metadata database has not been initialized. Call init_database() first.")
    async with _engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield a metadata database session, committing on success.

    Any exception rolls the session back and is re-raised unchanged.

    Raises:
        RuntimeError: If init_database() has not been called yet.
    """
    if _session_factory is None:
        raise RuntimeError("Metadata database has not been initialized. Call init_database() first.")

    async with _session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
