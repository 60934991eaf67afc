"""
Test fixtures shared by every test module.

This module provides database setup (real SQLite, no mocks), configuration
reset between tests, and the factory wiring used to build test data.
"""

import pytest
from sqlalchemy.orm import Session

from fuel_delivery_core.config import reset_config
from fuel_delivery_core.db import DatabaseConfig, DatabaseManager, import_all_models
from fuel_delivery_core.db.db_config import Base, close_db, initialize_db
from fuel_delivery_core.utils.logger import reset_logging
from tests.fixtures.factories import configure_factories


@pytest.fixture(scope="session")
def db_config() -> DatabaseConfig:
    """Create SQLite in-memory database configuration for testing."""
    return DatabaseConfig(
        db_type="sqlite",
        database=":memory:",
        echo=False,
        development_mode=True,
    )


@pytest.fixture(scope="session")
def db_manager(db_config: DatabaseConfig) -> DatabaseManager:
    """Create and initialize database manager with all models."""
    import_all_models()
    manager = initialize_db(db_config)
    yield manager
    close_db()


@pytest.fixture(scope="function")
def db_session(db_manager: DatabaseManager) -> Session:
    """
    Create a database session for each test.

    Tables are created before and dropped after every test, so services
    are free to commit.
    """
    session = db_manager.get_session()
    Base.metadata.create_all(db_manager.engine)
    configure_factories(session)

    yield session

    session.rollback()
    session.close()
    db_manager.close_session()
    Base.metadata.drop_all(db_manager.engine)


@pytest.fixture(autouse=True)
def clean_config():
    """Every test starts from environment-derived configuration."""
    reset_config()
    reset_logging()
    yield
    reset_config()
    reset_logging()
