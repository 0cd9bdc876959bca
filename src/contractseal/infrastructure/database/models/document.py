"""Generic document table backing the SQL document store."""

from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from contractseal.infrastructure.database.models.base import Base, TimestampMixin


class StoredDocument(Base, TimestampMixin):
    """One schemaless document, addressed by (collection, id)."""

    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(String(100), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
