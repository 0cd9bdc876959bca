"""Build the configured document store."""

from contractseal.config import Settings
from contractseal.domain.contracts.ports import DocumentStorePort
from contractseal.infrastructure.database.connection import (
    create_schema,
    dispose_engine,
    get_engine,
    get_session_factory,
)
from contractseal.infrastructure.store.memory import InMemoryDocumentStore
from contractseal.infrastructure.store.sql import SqlDocumentStore
from contractseal.shared.logging import get_logger

logger = get_logger(__name__)


async def build_document_store(settings: Settings) -> DocumentStorePort:
    """Create the store selected by DOCUMENT_STORE.

    The SQL store creates its table on first use.
    """
    if settings.document_store == "sql":
        await create_schema(get_engine(settings))
        logger.info("document_store_ready", backend="sql")
        return SqlDocumentStore(get_session_factory(settings))

    logger.warning("document_store_ready", backend="memory", persistent=False)
    return InMemoryDocumentStore()


async def close_document_store(store: DocumentStorePort | None) -> None:
    if isinstance(store, SqlDocumentStore):
        await dispose_engine()
