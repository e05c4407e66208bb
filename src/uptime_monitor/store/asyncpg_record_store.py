"""
PostgreSQL-based implementation of the RecordStore interface.

Records are kept as JSONB documents in a single ``records`` table keyed by
(collection, id). The store owns its asyncpg connection pool: ``connect``
opens and validates it at startup, ``close`` releases it at shutdown. Once
connected, database failures are returned inside an IOResult, never raised.
"""

import json
import logging
from typing import Any, Dict

import asyncpg
from asyncpg import Pool

from uptime_monitor.config import MonitoringContext
from uptime_monitor.contracts import RecordStore
from uptime_monitor.domain import IOResult, RecordNotFoundError

# Module logger
logger = logging.getLogger(__name__)

CREATE_TABLE_QUERY = """
                     CREATE TABLE IF NOT EXISTS records
                     (
                         collection TEXT  NOT NULL,
                         id         TEXT  NOT NULL,
                         data       JSONB NOT NULL,
                         PRIMARY KEY (collection, id)
                     ); \
                     """

LIST_IDS_QUERY = "SELECT id FROM records WHERE collection = $1 ORDER BY id"

READ_QUERY = "SELECT data FROM records WHERE collection = $1 AND id = $2"

INSERT_QUERY = "INSERT INTO records (collection, id, data) VALUES ($1, $2, $3::jsonb)"

UPDATE_QUERY = "UPDATE records SET data = $3::jsonb WHERE collection = $1 AND id = $2"

DELETE_QUERY = "DELETE FROM records WHERE collection = $1 AND id = $2"


def _affected_rows(status: str) -> int:
    """
    Extracts the row count from a command status such as ``UPDATE 1``.
    """
    try:
        return int(status.split()[-1])
    except (AttributeError, IndexError, ValueError):
        return 0


class PostgresRecordStore(RecordStore):
    """A RecordStore backed by a PostgreSQL JSONB table."""

    def __init__(self, pool: Pool) -> None:
        """
        Args:
            pool: A connection pool to the PostgreSQL database.
        """
        self._pool: Pool = pool

    @classmethod
    async def connect(cls, context: MonitoringContext) -> "PostgresRecordStore":
        """
        Opens the pool described by the context and prepares the records table.

        Creating the table is also the connectivity check: if it fails, the
        pool is closed again and the error is raised to abort startup.

        Raises:
            Exception: If the database cannot be reached or the table created.
        """
        pool: Pool = await asyncpg.create_pool(dsn=context.dsn, max_size=context.db_pool_size)
        store = cls(pool=pool)
        try:
            await store.ensure_schema()
        except Exception as e:
            logger.error(f"Could not prepare the record store database: {e}")
            await pool.close()
            raise
        return store

    async def close(self) -> None:
        await self._pool.close()

    async def ensure_schema(self) -> None:
        """
        Creates the records table if it does not exist.

        Raises:
            Exception: If the table cannot be created. Called at startup only.
        """
        async with self._pool.acquire() as conn:
            await conn.execute(CREATE_TABLE_QUERY)
        logger.info("Record store schema is ready.")

    async def list(self, collection: str) -> IOResult:
        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(LIST_IDS_QUERY, collection)
            return IOResult(value=[row["id"] for row in rows])
        except Exception as e:
            logger.debug(f"Could not list collection '{collection}': {e}")
            return IOResult(error=e)

    async def read(self, collection: str, record_id: str) -> IOResult:
        try:
            async with self._pool.acquire() as conn:
                data = await conn.fetchval(READ_QUERY, collection, record_id)
            if data is None:
                return IOResult(error=RecordNotFoundError(f"{collection}/{record_id} does not exist"))
            # asyncpg hands JSONB over as text unless a codec is registered
            return IOResult(value=json.loads(data) if isinstance(data, str) else data)
        except Exception as e:
            logger.debug(f"Could not read {collection}/{record_id}: {e}")
            return IOResult(error=e)

    async def create(self, collection: str, record_id: str, record: Dict[str, Any]) -> IOResult:
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(INSERT_QUERY, collection, record_id, json.dumps(record))
            return IOResult()
        except Exception as e:
            logger.debug(f"Could not create {collection}/{record_id}: {e}")
            return IOResult(error=e)

    async def update(self, collection: str, record_id: str, record: Dict[str, Any]) -> IOResult:
        try:
            async with self._pool.acquire() as conn:
                status = await conn.execute(
                    UPDATE_QUERY, collection, record_id, json.dumps(record)
                )
            if _affected_rows(status) == 0:
                return IOResult(error=RecordNotFoundError(f"{collection}/{record_id} does not exist"))
            return IOResult()
        except Exception as e:
            logger.debug(f"Could not update {collection}/{record_id}: {e}")
            return IOResult(error=e)

    async def delete(self, collection: str, record_id: str) -> IOResult:
        try:
            async with self._pool.acquire() as conn:
                status = await conn.execute(DELETE_QUERY, collection, record_id)
            if _affected_rows(status) == 0:
                return IOResult(error=RecordNotFoundError(f"{collection}/{record_id} does not exist"))
            return IOResult()
        except Exception as e:
            logger.debug(f"Could not delete {collection}/{record_id}: {e}")
            return IOResult(error=e)
