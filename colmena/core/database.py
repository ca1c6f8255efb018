# File: database.py
# Path: colmena/core/database.py

import logging

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base

from colmena.core.config import settings

logger = logging.getLogger(__name__)

# Shared declarative base for all models
Base = declarative_base()


def _engine_options(url: str) -> dict:
    """Pool and connection options for the configured backend."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_recycle": 300,     # Recycle connections every 5 minutes
        "pool_timeout": 20,
        "connect_args": {
            "options": "-c timezone=utc",
            "connect_timeout": 5,
            "application_name": "ColmenaBackend",
        },
    }


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.database_echo,
    **_engine_options(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False
)


def get_db():
    """
    Dependency function for FastAPI endpoints.
    Creates a new database session for each request.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def test_database_connection(bind=None) -> bool:
    """
    Test database connection health.
    Checks ``bind`` when given, otherwise the application engine.
    Returns True if connection is successful, False otherwise.
    """
    try:
        with (bind or engine).connect() as connection:
            connection.execute(text("SELECT 1"))
        logger.info("Database connection test successful")
        return True
    except Exception as e:
        logger.error(f"Database connection test failed: {str(e)}")
        return False
