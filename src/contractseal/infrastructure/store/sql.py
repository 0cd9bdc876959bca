"""Document store on a relational database (SQLAlchemy async)."""

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any
from uuid import uuid4

from sqlalchemy import literal, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from contractseal.infrastructure.database.models import StoredDocument
from contractseal.shared.exceptions import ConflictError, NotFoundError, StoreError
from contractseal.shared.logging import get_logger

logger = get_logger(__name__)

Document = dict[str, Any]


class SqlDocumentStore:
    """Stores each document as a JSON blob in the `documents` table.

    Every call runs in its own short transaction. Conditional updates lock
    the row (SELECT ... FOR UPDATE where the database supports it) between
    the comparison and the write.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    yield session
        except (SQLAlchemyError, OSError) as e:
            logger.error("document_store_error", operation=operation, error=str(e))
            raise StoreError(
                "Document store request failed",
                details={"operation": operation, "error_type": type(e).__name__},
            ) from e

    async def get(self, collection: str, id: str) -> Document | None:
        async with self._transaction("get") as session:
            row = await session.get(StoredDocument, (collection, id))
            return dict(row.data) if row is not None else None

    async def put(self, collection: str, document: Document, id: str | None = None) -> str:
        id = id or uuid4().hex
        async with self._transaction("put") as session:
            await session.merge(StoredDocument(collection=collection, id=id, data=dict(document)))
        return id

    async def update_fields(
        self,
        collection: str,
        id: str,
        fields: Mapping[str, Any],
        *,
        expected: Mapping[str, Any] | None = None,
    ) -> None:
        async with self._transaction("update_fields") as session:
            row = await session.get(StoredDocument, (collection, id), with_for_update=True)
            if row is None:
                raise NotFoundError("Document", id)
            if expected:
                mismatched = {
                    name: row.data.get(name)
                    for name, value in expected.items()
                    if row.data.get(name) != value
                }
                if mismatched:
                    raise ConflictError(
                        "Document was modified concurrently",
                        details={"id": id, "expected": dict(expected), "actual": mismatched},
                    )
            # Reassign so the JSON column is flagged dirty.
            row.data = {**row.data, **fields}

    async def query(
        self,
        collection: str,
        field: str,
        value: Any,
        *,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[tuple[str, Document]]:
        statement = select(StoredDocument).where(StoredDocument.collection == collection)
        if isinstance(value, str):
            statement = statement.where(StoredDocument.data[field].as_string() == value)

        async with self._transaction("query") as session:
            result = await session.execute(statement)
            rows = [(row.id, dict(row.data)) for row in result.scalars().all()]

        # Non-string values are compared here rather than in SQL.
        rows = [(id, data) for id, data in rows if data.get(field) == value]
        if order_by:
            rows.sort(
                key=lambda row: (row[1].get(order_by) is not None, row[1].get(order_by) or ""),
                reverse=descending,
            )
        return rows

    async def ping(self) -> None:
        async with self._transaction("ping") as session:
            await session.execute(select(literal(1)))
