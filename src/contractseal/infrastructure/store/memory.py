"""In-process document store for development and tests."""

import copy
from collections.abc import Mapping
from typing import Any
from uuid import uuid4

from contractseal.shared.exceptions import ConflictError, NotFoundError

Document = dict[str, Any]


def _sort_key(value: Any) -> tuple[int, Any]:
    # Documents missing the order field sort before all others.
    return (0, "") if value is None else (1, value)


class InMemoryDocumentStore:
    """Dict-backed document store with last-write-wins semantics.

    Documents are deep-copied on the way in and out so callers never share
    mutable state with the store. Writes run without an await in between the
    check and the update, which makes conditional writes atomic on one event
    loop.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Document]] = {}

    def _collection(self, collection: str) -> dict[str, Document]:
        return self._collections.setdefault(collection, {})

    async def get(self, collection: str, id: str) -> Document | None:
        document = self._collection(collection).get(id)
        return copy.deepcopy(document) if document is not None else None

    async def put(self, collection: str, document: Document, id: str | None = None) -> str:
        id = id or uuid4().hex
        self._collection(collection)[id] = copy.deepcopy(document)
        return id

    async def update_fields(
        self,
        collection: str,
        id: str,
        fields: Mapping[str, Any],
        *,
        expected: Mapping[str, Any] | None = None,
    ) -> None:
        document = self._collection(collection).get(id)
        if document is None:
            raise NotFoundError("Document", id)
        if expected:
            mismatched = {
                name: document.get(name)
                for name, value in expected.items()
                if document.get(name) != value
            }
            if mismatched:
                raise ConflictError(
                    "Document was modified concurrently",
                    details={"id": id, "expected": dict(expected), "actual": mismatched},
                )
        document.update(copy.deepcopy(dict(fields)))

    async def query(
        self,
        collection: str,
        field: str,
        value: Any,
        *,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[tuple[str, Document]]:
        rows = [
            (id, copy.deepcopy(document))
            for id, document in self._collection(collection).items()
            if document.get(field) == value
        ]
        if order_by:
            rows.sort(key=lambda row: _sort_key(row[1].get(order_by)), reverse=descending)
        return rows

    async def ping(self) -> None:
        return None

    async def close(self) -> None:
        return None
