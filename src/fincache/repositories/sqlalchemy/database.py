"""Engine and session management for the remote cache tier's database."""

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event, Engine
from sqlalchemy.orm import sessionmaker, Session, declarative_base
from sqlalchemy.pool import StaticPool

from fincache.config.settings import get_settings

Base = declarative_base()

# Seconds a writer waits on a locked SQLite file before failing
SQLITE_BUSY_TIMEOUT = 5

# Module-level database state (can be reconfigured at runtime)
_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _is_in_memory(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///") or ":memory:" in url


def _enable_sqlite_wal(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT * 1000}")
    cursor.close()


def get_engine() -> Engine:
    """
    Get or create the database engine from the configured URL.

    Document store calls run on worker threads, so SQLite connections are
    shared across threads. File databases use WAL journaling; an in-memory
    database is held on one static connection so every thread sees the same
    tables.
    """
    global _engine
    if _engine is None:
        url = get_settings().get_database_url()
        if not _is_sqlite(url):
            _engine = create_engine(url, pool_pre_ping=True)
        elif _is_in_memory(url):
            _engine = create_engine(
                url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            _engine = create_engine(url, connect_args={"check_same_thread": False})
            event.listen(_engine, "connect", _enable_sqlite_wal)
    return _engine


def get_session_factory() -> sessionmaker:
    """Get or create the session factory bound to the engine."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


@contextmanager
def session_scope(session_factory: sessionmaker) -> Iterator[Session]:
    """Open a session that commits on success and rolls back on any error."""
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> None:
    """Create the cache document table if it does not exist."""
    from fincache.repositories.sqlalchemy import orm_models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def reset_database() -> None:
    """Dispose the engine so the next access rebuilds it from current settings."""
    global _engine, _SessionLocal

    if _engine is not None:
        _engine.dispose()

    _engine = None
    _SessionLocal = None
