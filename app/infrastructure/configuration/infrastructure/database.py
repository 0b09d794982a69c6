"""Database infrastructure settings."""

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class DatabaseSettings(InfrastructureSettings):
    """Relational store configuration used by the SQL repository and queue.

    Environment Variables:
        DATABASE_URL: SQLAlchemy URL (default: local SQLite file)
        DATABASE_ECHO: Log emitted SQL statements
        DATABASE_POOL_PRE_PING: Test pooled connections before use
    """

    url: str = Field(
        default="sqlite:///./notifications.db",
        alias="DATABASE_URL",
        description="SQLAlchemy database URL",
    )
    echo: bool = Field(
        default=False,
        alias="DATABASE_ECHO",
        description="Echo SQL statements to the log",
    )
    pool_pre_ping: bool = Field(
        default=True,
        alias="DATABASE_POOL_PRE_PING",
    )
