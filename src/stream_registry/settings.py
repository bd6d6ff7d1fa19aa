"""Service settings for the stream registry.

Settings use the STREAM_REGISTRY_ prefix and cover:
- Metadata database connection (SQLAlchemy async URL and pool)
- Logging
- Specification handler selection
- Role-based write authorization
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the stream registry governance engine.

    Environment variable prefix: STREAM_REGISTRY_
    """

    service_name: str = "stream-registry"

    # -------------------------------------------------------------------------
    # Metadata database
    # -------------------------------------------------------------------------

    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/stream_registry",
        description="SQLAlchemy async connection URL for the metadata database.",
    )
    database_pool_size: int = Field(
        default=5,
        description="Connection pool size. Ignored for SQLite URLs.",
    )
    database_max_overflow: int = Field(
        default=2,
        description="Max overflow connections above database_pool_size.",
    )
    database_pool_timeout: int = Field(
        default=30,
        description="Seconds to wait for a connection before raising an error.",
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL statements to the sqlalchemy.engine logger.",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------

    log_level: str = Field(
        default="INFO",
        description="Root log level for the stream_registry logger hierarchy.",
    )

    # -------------------------------------------------------------------------
    # Specification handlers
    # -------------------------------------------------------------------------

    default_specification_type: str = Field(
        default="default",
        description="Specification type accepted unchanged by the passthrough handler for every entity kind.",
    )

    # -------------------------------------------------------------------------
    # Authorization
    # -------------------------------------------------------------------------

    authorization_enabled: bool = Field(
        default=False,
        description="When false every action is allowed; when true writes require a writer or admin role.",
    )
    admin_roles: list[str] = Field(
        default_factory=lambda: ["admin"],
        description="Roles allowed to perform any action on any entity.",
    )
    writer_roles: list[str] = Field(
        default_factory=lambda: ["writer"],
        description="Roles allowed to create, update, report status for and delete entities.",
    )

    model_config = SettingsConfigDict(env_prefix="STREAM_REGISTRY_")
