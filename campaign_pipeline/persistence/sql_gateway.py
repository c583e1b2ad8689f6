"""SQL persistence gateway via SQLAlchemy async ORM."""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from campaign_pipeline.domain.errors import PersistenceError
from campaign_pipeline.persistence.models import StoredDocument

logger = logging.getLogger(__name__)


class SqlDocumentGateway:
    """Database-backed document storage.

    Each operation runs in its own session and transaction; nothing is
    retried here.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def put(self, key: str, document: bytes) -> None:
        try:
            async with self._session_factory() as session:
                existing = await session.get(StoredDocument, key)
                if existing:
                    existing.body = document
                    existing.size_bytes = len(document)
                else:
                    session.add(StoredDocument(
                        key=key,
                        campaign_id=key.split("/", 1)[0],
                        body=document,
                        size_bytes=len(document),
                    ))
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to write {key}: {e}", key, "put") from e
        logger.debug(f"Stored document {key} ({len(document)} bytes)")

    async def get(self, key: str) -> Optional[bytes]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(StoredDocument.body).where(StoredDocument.key == key)
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read {key}: {e}", key, "get") from e

    async def exists(self, key: str) -> bool:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(StoredDocument.key).where(StoredDocument.key == key)
                )
                return result.scalar_one_or_none() is not None
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to check {key}: {e}", key, "exists") from e

    async def delete(self, key: str) -> None:
        try:
            async with self._session_factory() as session:
                existing = await session.get(StoredDocument, key)
                if existing is not None:
                    await session.delete(existing)
                    await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to delete {key}: {e}", key, "delete") from e
        logger.debug(f"Deleted document {key}")

    async def list_keys(self, prefix: str = "") -> List[str]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(StoredDocument.key)
                    .where(StoredDocument.key.startswith(prefix, autoescape=True))
                    .order_by(StoredDocument.key)
                )
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to list {prefix}: {e}", prefix, "list") from e

    async def close(self) -> None:
        """Dispose of the engine bound to the session factory."""
        await self._session_factory.kw["bind"].dispose()
