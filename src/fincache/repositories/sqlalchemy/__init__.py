"""Remote cache tier persisted through SQLAlchemy."""

from fincache.repositories.sqlalchemy.database import (
    Base,
    get_engine,
    get_session_factory,
    init_db,
    reset_database,
    session_scope,
)
from fincache.repositories.sqlalchemy.document_store import SqlAlchemyDocumentStore

__all__ = [
    "Base",
    "SqlAlchemyDocumentStore",
    "get_engine",
    "get_session_factory",
    "init_db",
    "reset_database",
    "session_scope",
]
