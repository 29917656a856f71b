"""SQLAlchemy database session management.

This module provides database engine configuration, session factory,
dependency injection for FastAPI endpoints, and the transaction helper
used by every mutating engine operation.
"""

import logging
from typing import Callable, Generator, Optional, TypeVar

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from wheelbook.config import settings

logger = logging.getLogger(__name__)

# SQLAlchemy declarative base for ORM models
Base = declarative_base()

SERIALIZABLE = "SERIALIZABLE"

T = TypeVar("T")

# Global engine instance
_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite.

    Args:
        dbapi_conn: Database API connection
        connection_record: Connection record
    """
    if type(dbapi_conn).__module__.startswith("sqlite3"):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def init_engine() -> Engine:
    """Initialize SQLAlchemy engine.

    Creates the database directory if it doesn't exist (SQLite only)
    and initializes the engine.

    Returns:
        Configured SQLAlchemy engine
    """
    global _engine

    if _engine is not None:
        return _engine

    url = settings.database_url
    connect_args = {}
    if url.startswith("sqlite"):
        db_dir = settings.get_database_path().parent
        if settings.database_uri is None and not db_dir.exists():
            db_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created database directory: {db_dir}")
        connect_args["check_same_thread"] = False

    _engine = create_engine(
        url,
        connect_args=connect_args,
        pool_pre_ping=True,
        echo=settings.sql_echo,
    )

    logger.info(f"Database engine initialized: {url}")
    return _engine


def get_session_factory() -> sessionmaker:
    """Get SQLAlchemy session factory.

    Returns:
        Configured sessionmaker instance
    """
    global _SessionLocal

    if _SessionLocal is None:
        engine = init_engine()
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=engine,
        )

    return _SessionLocal


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency for database sessions.

    Yields:
        SQLAlchemy database session, closed after the request
    """
    SessionLocal = get_session_factory()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def run_in_transaction(
    db: Session,
    work: Callable[[Session], T],
    isolation_level: Optional[str] = None,
    should_commit: Optional[Callable[[T], bool]] = None,
) -> T:
    """Run a unit of work inside a single database transaction.

    Any implicit read transaction left open on the session is ended first
    so the unit of work starts on a fresh transaction, which is required
    for the isolation level to apply. The transaction commits when the work
    returns and ``should_commit`` (if given) approves the result; otherwise
    it is rolled back and the result is still returned. Exceptions roll
    back and propagate.

    Args:
        db: SQLAlchemy session
        work: Callable receiving the session and returning a result
        isolation_level: Optional isolation level such as ``SERIALIZABLE``
        should_commit: Optional predicate deciding commit vs rollback

    Returns:
        Whatever ``work`` returned

    Example:
        >>> outcome = run_in_transaction(db, lambda s: repo.create(...))
    """
    if db.in_transaction():
        db.commit()

    if isolation_level is not None:
        db.connection(execution_options={"isolation_level": isolation_level})

    try:
        result = work(db)
        if should_commit is None or should_commit(result):
            db.commit()
        else:
            db.rollback()
    except Exception:
        db.rollback()
        raise
    return result


def create_tables() -> None:
    """Create all database tables.

    This should only be used in development; use Alembic migrations
    in production.
    """
    from wheelbook.database import models  # noqa: F401

    engine = init_engine()
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")


def check_database_connection() -> bool:
    """Check if database connection is working.

    Returns:
        True if connection is successful, False otherwise
    """
    try:
        engine = init_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False
