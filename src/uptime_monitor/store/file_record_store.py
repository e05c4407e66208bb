"""
File-based implementation of the RecordStore interface.

Each record is a JSON document stored at ``<base_dir>/<collection>/<id>.json``.
Blocking file operations run in a worker thread so they never stall the
event loop. Failures are returned inside an IOResult, never raised.
"""

import asyncio
import json
import logging
import os
from typing import Any, Dict, List

from uptime_monitor.contracts import RecordStore
from uptime_monitor.domain import IOResult, RecordNotFoundError

# Module logger
logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".json"


class FileRecordStore(RecordStore):
    """A RecordStore keeping one JSON file per record."""

    def __init__(self, base_dir: str) -> None:
        """
        Args:
            base_dir: Directory holding one sub-directory per collection.
        """
        self._base_dir: str = base_dir

    def _path(self, collection: str, record_id: str) -> str:
        return os.path.join(self._base_dir, collection, f"{record_id}{RECORD_SUFFIX}")

    async def list(self, collection: str) -> IOResult:
        try:
            ids = await asyncio.to_thread(self._list_ids, collection)
            return IOResult(value=ids)
        except Exception as e:
            logger.debug(f"Could not list collection '{collection}': {e}")
            return IOResult(error=e)

    async def read(self, collection: str, record_id: str) -> IOResult:
        try:
            record = await asyncio.to_thread(self._read_record, collection, record_id)
            return IOResult(value=record)
        except Exception as e:
            logger.debug(f"Could not read {collection}/{record_id}: {e}")
            return IOResult(error=e)

    async def create(self, collection: str, record_id: str, record: Dict[str, Any]) -> IOResult:
        try:
            await asyncio.to_thread(self._create_record, collection, record_id, record)
            return IOResult()
        except Exception as e:
            logger.debug(f"Could not create {collection}/{record_id}: {e}")
            return IOResult(error=e)

    async def update(self, collection: str, record_id: str, record: Dict[str, Any]) -> IOResult:
        try:
            await asyncio.to_thread(self._update_record, collection, record_id, record)
            return IOResult()
        except Exception as e:
            logger.debug(f"Could not update {collection}/{record_id}: {e}")
            return IOResult(error=e)

    async def delete(self, collection: str, record_id: str) -> IOResult:
        try:
            await asyncio.to_thread(self._delete_record, collection, record_id)
            return IOResult()
        except Exception as e:
            logger.debug(f"Could not delete {collection}/{record_id}: {e}")
            return IOResult(error=e)

    def _list_ids(self, collection: str) -> List[str]:
        directory = os.path.join(self._base_dir, collection)
        return sorted(
            name[: -len(RECORD_SUFFIX)]
            for name in os.listdir(directory)
            if name.endswith(RECORD_SUFFIX)
        )

    def _read_record(self, collection: str, record_id: str) -> Any:
        try:
            with open(self._path(collection, record_id), encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError as err:
            raise RecordNotFoundError(f"{collection}/{record_id} does not exist") from err

    def _create_record(self, collection: str, record_id: str, record: Dict[str, Any]) -> None:
        os.makedirs(os.path.join(self._base_dir, collection), exist_ok=True)
        # 'x' fails if the record already exists
        with open(self._path(collection, record_id), "x", encoding="utf-8") as f:
            json.dump(record, f)

    def _update_record(self, collection: str, record_id: str, record: Dict[str, Any]) -> None:
        # 'r+' fails if the record was deleted, so an update never recreates it
        try:
            with open(self._path(collection, record_id), "r+", encoding="utf-8") as f:
                f.truncate()
                json.dump(record, f)
        except FileNotFoundError as err:
            raise RecordNotFoundError(f"{collection}/{record_id} does not exist") from err

    def _delete_record(self, collection: str, record_id: str) -> None:
        try:
            os.remove(self._path(collection, record_id))
        except FileNotFoundError as err:
            raise RecordNotFoundError(f"{collection}/{record_id} does not exist") from err
