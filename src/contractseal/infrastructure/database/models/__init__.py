"""SQLAlchemy ORM models."""

from contractseal.infrastructure.database.models.base import Base, TimestampMixin
from contractseal.infrastructure.database.models.document import StoredDocument

__all__ = [
    "Base",
    "StoredDocument",
    "TimestampMixin",
]
