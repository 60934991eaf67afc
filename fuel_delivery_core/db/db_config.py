"""
Engine and session management.

SQLite serves development and tests, PostgreSQL production. Services get
their sessions from the global DatabaseManager set up by ``initialize_db``.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, declarative_base, scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import get_config
from ..exceptions import ErrorCode, ServiceError, ValidationError
from ..utils import get_logger

Base: Any = declarative_base()


class DatabaseConfig(BaseModel):
    """
    Connection settings for the order database.

    Either ``url`` is given, or the parts (``db_type``, ``database`` and for
    Postgres the host and credentials) are.
    """

    url: Optional[str] = None
    db_type: str = "postgres"
    database: str = ""
    host: str = ""
    port: str = "5432"
    username: str = ""
    password: str = ""
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    echo: bool = False
    development_mode: bool = False

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @classmethod
    def from_app_config(cls) -> "DatabaseConfig":
        """Build from ``AppConfig.database`` (``DATABASE_URL``)."""
        settings = get_config().database
        return cls(
            url=settings.connection_string,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_timeout=settings.pool_timeout,
            echo=settings.echo,
        )

    @property
    def is_sqlite(self) -> bool:
        if self.url:
            return make_url(self.url).get_backend_name() == "sqlite"
        return self.db_type.lower() == "sqlite"

    @property
    def is_memory(self) -> bool:
        if self.url:
            return make_url(self.url).database in (None, "", ":memory:")
        return self.database == ":memory:"

    def get_connection_string(self) -> str:
        if self.url:
            return self.url
        db_type = self.db_type.lower()
        if db_type == "sqlite":
            return f"sqlite:///{self.database}"
        if db_type == "postgres":
            if not all([self.host, self.database, self.username, self.password]):
                raise ValidationError(
                    "Missing required Postgres configuration parameters",
                    error_code=ErrorCode.MISSING_REQUIRED,
                    field="database_config",
                    value={"host": self.host, "database": self.database, "username": self.username},
                )
            return (
                f"postgresql://{self.username}:{self.password}@"
                f"{self.host}:{self.port}/{self.database}"
            )
        raise ValidationError(
            f"Unsupported database type: {self.db_type}",
            error_code=ErrorCode.INVALID_FORMAT,
            field="db_type",
            value=self.db_type,
        )

    def __repr__(self) -> str:
        target = make_url(self.url).render_as_string(hide_password=True) if self.url else self.database
        return (
            f"DatabaseConfig(db_type='{self.db_type}', host='{self.host}', "
            f"database='{target}', username='{self.username}', password='***')"
        )


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _disable_pysqlite_transactions(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None


def _begin_immediate(conn):
    conn.exec_driver_sql("BEGIN IMMEDIATE")


class DatabaseManager:
    """Owns the engine and the session factories built from a DatabaseConfig."""

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.engine = self._create_engine()
        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        self.scoped_session = scoped_session(self.session_factory)

    def _create_engine(self):
        connection_string = self.config.get_connection_string()
        if not self.config.is_sqlite:
            return create_engine(
                connection_string,
                echo=self.config.echo,
                pool_size=self.config.pool_size,
                max_overflow=self.config.max_overflow,
                pool_timeout=self.config.pool_timeout,
            )

        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if self.config.is_memory:
            # One shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
        engine = create_engine(connection_string, echo=self.config.echo, **kwargs)
        # Composite tenant foreign keys are only enforced with the pragma on
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        if not self.config.is_memory:
            # SQLite ignores FOR UPDATE; taking the write lock at BEGIN
            # serializes units of work across connections instead
            event.listen(engine, "connect", _disable_pysqlite_transactions)
            event.listen(engine, "begin", _begin_immediate)
        return engine

    def create_tables(self) -> None:
        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        if not self.config.development_mode:
            raise ServiceError(
                "Cannot drop tables: not in development mode",
                error_code=ErrorCode.CONFIGURATION_ERROR,
                operation="drop_tables",
            )
        Base.metadata.drop_all(self.engine)

    def get_session(self) -> Session:
        """The thread-local session."""
        return self.scoped_session()

    def new_session(self) -> Session:
        """A session that is not bound to the thread-local registry."""
        return self.session_factory()

    def close_session(self, session: Optional[Session] = None) -> None:
        if session:
            session.close()
        else:
            self.scoped_session.remove()

    def close(self) -> None:
        self.scoped_session.remove()
        self.engine.dispose()


def import_all_models():
    """Import all models so they are registered with the metadata."""
    from sqlalchemy.orm import configure_mappers

    from .db_activity_log_models import ActivityLog  # noqa
    from .db_client_models import Client  # noqa
    from .db_location_models import Location  # noqa
    from .db_order_models import Order  # noqa
    from .db_tenant_models import Tenant  # noqa
    from .db_truck_models import DeliveryTruck  # noqa
    from .db_user_models import User  # noqa

    configure_mappers()


_db_manager: Optional[DatabaseManager] = None


def get_db_manager() -> DatabaseManager:
    """
    Get the global database manager.

    Raises:
        ServiceError: If ``initialize_db`` has not been called
    """
    if _db_manager is None:
        raise ServiceError(
            "Database manager not initialized. Call initialize_db() first.",
            error_code=ErrorCode.CONFIGURATION_ERROR,
            operation="get_db_manager",
        )
    return _db_manager


def initialize_db(config: Optional[DatabaseConfig] = None) -> DatabaseManager:
    """
    Create the global database manager and the tables.

    Args:
        config: Connection settings; defaults to ``DatabaseConfig.from_app_config()``

    Returns:
        The initialized database manager
    """
    global _db_manager

    if config is None:
        config = DatabaseConfig.from_app_config()

    manager = DatabaseManager(config)
    get_logger().info("Initializing database", extra={"database": repr(config)})
    import_all_models()
    manager.create_tables()
    _db_manager = manager
    return manager


def close_db() -> None:
    """Dispose of the global engine and forget the manager."""
    global _db_manager
    if _db_manager is not None:
        _db_manager.close()
        _db_manager = None
