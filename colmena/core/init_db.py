"""
Database bootstrap.

Creates the schema and, on an empty users table, the first admin account.
Run with ``python -m colmena.core.init_db``.
"""

from sqlalchemy import inspect
from colmena.core.config import settings
from colmena.core.database import engine, Base, SessionLocal
from colmena.core.auth import AuthUtils
from colmena.models import User, UserRole
import logging

logger = logging.getLogger(__name__)


def init_db(bind=engine):
    """Create every table registered on ``Base``; existing tables are left alone."""
    logger.info(f"Creating tables on {bind.url.render_as_string(hide_password=True)}")
    Base.metadata.create_all(bind=bind)
    logger.info(f"{len(Base.metadata.tables)} tables ready")


def seed_initial_data(session_factory=SessionLocal) -> bool:
    """
    Create the bootstrap admin from ``SEED_ADMIN_EMAIL``/``SEED_ADMIN_PASSWORD``.

    Nothing is written when any user already exists.

    Returns:
        True if the admin was created
    """
    db = session_factory()

    try:
        user_count = db.query(User).count()
        if user_count:
            logger.info(f"{user_count} user(s) found, admin seed skipped")
            return False

        admin = User(
            name="Colmena Administrator",
            email=settings.seed_admin_email.lower(),
            hashed_password=AuthUtils.hash_password(settings.seed_admin_password),
            role=UserRole.ADMIN,
            is_active=True
        )
        db.add(admin)
        db.commit()

        logger.info(f"Seeded admin account {admin.email}")
        logger.warning("The seeded admin uses the configured default password; change it after first login")
        return True

    except Exception as e:
        logger.error(f"Admin seed failed: {e}")
        db.rollback()
        raise
    finally:
        db.close()


def check_tables(bind=engine):
    """List the tables currently present in the database."""
    tables = inspect(bind).get_table_names()
    logger.info(f"Tables present: {', '.join(tables) if tables else '(none)'}")
    return tables


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format=settings.log_format)

    check_tables()
    init_db()
    seed_initial_data()
    check_tables()
