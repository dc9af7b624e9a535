"""SQLAlchemy implementation of DocumentStore."""

import asyncio
import json
from typing import Any, Optional

from sqlalchemy.orm import sessionmaker

from fincache.repositories.sqlalchemy.database import session_scope
from fincache.repositories.sqlalchemy.orm_models import CacheDocumentORM


class SqlAlchemyDocumentStore:
    """
    SQLAlchemy-backed document store for the remote cache tier.

    Each call opens its own session and runs in a worker thread, so the
    async contract holds while the engine stays synchronous.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    async def get_document(self, owner: str, symbol: str) -> Optional[dict[str, Any]]:
        return await asyncio.to_thread(self._get_document, owner, symbol)

    async def set_document(self, owner: str, symbol: str, document: dict[str, Any]) -> None:
        await asyncio.to_thread(self._set_document, owner, symbol, document)

    async def delete_document(self, owner: str, symbol: str) -> None:
        await asyncio.to_thread(self._delete_document, owner, symbol)

    async def list_documents(self, owner: str) -> dict[str, dict[str, Any]]:
        return await asyncio.to_thread(self._list_documents, owner)

    async def delete_documents(self, owner: str) -> int:
        return await asyncio.to_thread(self._delete_documents, owner)

    # Blocking implementations

    def _get_document(self, owner: str, symbol: str) -> Optional[dict[str, Any]]:
        with self._session_factory() as db:
            orm_doc = db.get(CacheDocumentORM, (owner, symbol))
            return json.loads(orm_doc.payload) if orm_doc else None

    def _set_document(self, owner: str, symbol: str, document: dict[str, Any]) -> None:
        payload = json.dumps(document)
        with session_scope(self._session_factory) as db:
            orm_doc = db.get(CacheDocumentORM, (owner, symbol))
            if orm_doc:
                orm_doc.payload = payload
            else:
                db.add(CacheDocumentORM(owner_id=owner, symbol=symbol, payload=payload))

    def _delete_document(self, owner: str, symbol: str) -> None:
        with session_scope(self._session_factory) as db:
            db.query(CacheDocumentORM).filter(
                CacheDocumentORM.owner_id == owner,
                CacheDocumentORM.symbol == symbol,
            ).delete()

    def _list_documents(self, owner: str) -> dict[str, dict[str, Any]]:
        with self._session_factory() as db:
            orm_docs = (
                db.query(CacheDocumentORM)
                .filter(CacheDocumentORM.owner_id == owner)
                .order_by(CacheDocumentORM.symbol)
                .all()
            )
            return {d.symbol: json.loads(d.payload) for d in orm_docs}

    def _delete_documents(self, owner: str) -> int:
        # One transaction: either every document of the owner goes or none does
        with session_scope(self._session_factory) as db:
            return db.query(CacheDocumentORM).filter(CacheDocumentORM.owner_id == owner).delete()
