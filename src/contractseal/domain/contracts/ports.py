"""Ports for contract dependencies."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from contractseal.domain.contracts.models import ConfidentialPayload

Document = dict[str, Any]


class DocumentStorePort(Protocol):
    """Schemaless document store addressed by (collection, id).

    Implementations raise StoreError when the backend itself fails.
    """

    async def get(self, collection: str, id: str) -> Document | None:
        """Get a document by id, or None if absent."""

    async def put(self, collection: str, document: Document, id: str | None = None) -> str:
        """Write a whole document and return its id (assigned when not given)."""

    async def update_fields(
        self,
        collection: str,
        id: str,
        fields: Mapping[str, Any],
        *,
        expected: Mapping[str, Any] | None = None,
    ) -> None:
        """Overwrite some fields of an existing document.

        With `expected`, the write only happens if every named field currently
        holds the given value (a missing field compares as None); otherwise
        ConflictError is raised and nothing is written. Raises NotFoundError
        if the document does not exist.
        """

    async def query(
        self,
        collection: str,
        field: str,
        value: Any,
        *,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[tuple[str, Document]]:
        """Return (id, document) pairs whose `field` equals `value`."""

    async def ping(self) -> None:
        """Check the backend is reachable."""


class PayloadCodecPort(Protocol):
    """Encrypt / decrypt of the confidential payload."""

    def encrypt(self, payload: ConfidentialPayload, key: str) -> str:
        """Encrypt a payload under a derived key."""

    def decrypt(self, ciphertext: str, key: str) -> ConfidentialPayload:
        """Decrypt a payload; raises DecryptionError / MalformedPayloadError."""
