"""
File-based implementation of the AppendLog interface.

Live logs are plain text files ``<base_dir>/<log_id>.log`` with one entry per
line. Rotated logs are gzip archives stored base64-encoded as
``<base_dir>/<archive_id>.gz.b64``. Blocking file operations run in a worker
thread, and failures are returned inside an IOResult, never raised.
"""

import asyncio
import base64
import gzip
import logging
import os
from typing import List

from uptime_monitor.contracts import AppendLog
from uptime_monitor.domain import IOResult

# Module logger
logger = logging.getLogger(__name__)

LOG_SUFFIX = ".log"
ARCHIVE_SUFFIX = ".gz.b64"


class FileAppendLog(AppendLog):
    """An AppendLog keeping one text file per log id in a single directory."""

    def __init__(self, base_dir: str) -> None:
        """
        Args:
            base_dir: Directory holding the live logs and their archives.
        """
        self._base_dir: str = base_dir

    def _path(self, file_id: str, suffix: str) -> str:
        if not file_id or file_id in (".", "..") or os.path.basename(file_id) != file_id:
            raise ValueError(f"Invalid log id: {file_id!r}")
        return os.path.join(self._base_dir, f"{file_id}{suffix}")

    async def append(self, log_id: str, line: str) -> IOResult:
        try:
            await asyncio.to_thread(self._append_line, log_id, line)
            return IOResult()
        except Exception as e:
            logger.debug(f"Could not append to log {log_id}: {e}")
            return IOResult(error=e)

    async def list(self, include_archived: bool = False) -> IOResult:
        try:
            ids = await asyncio.to_thread(self._list_ids, include_archived)
            return IOResult(value=ids)
        except Exception as e:
            logger.debug(f"Could not list logs: {e}")
            return IOResult(error=e)

    async def compress(self, log_id: str, archive_id: str) -> IOResult:
        """
        Writes the gzip archive of a live log.

        An empty live log produces no archive; the result value tells whether
        an archive was written.
        """
        try:
            written = await asyncio.to_thread(self._compress, log_id, archive_id)
            return IOResult(value=written)
        except Exception as e:
            logger.debug(f"Could not compress log {log_id} into {archive_id}: {e}")
            return IOResult(error=e)

    async def decompress(self, archive_id: str) -> IOResult:
        try:
            text = await asyncio.to_thread(self._decompress, archive_id)
            return IOResult(value=text)
        except Exception as e:
            logger.debug(f"Could not decompress archive {archive_id}: {e}")
            return IOResult(error=e)

    async def truncate(self, log_id: str) -> IOResult:
        try:
            await asyncio.to_thread(self._truncate, log_id)
            return IOResult()
        except Exception as e:
            logger.debug(f"Could not truncate log {log_id}: {e}")
            return IOResult(error=e)

    def _append_line(self, log_id: str, line: str) -> None:
        path = self._path(log_id, LOG_SUFFIX)
        os.makedirs(self._base_dir, exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(f"{line}\n")

    def _list_ids(self, include_archived: bool) -> List[str]:
        ids: List[str] = []
        for name in sorted(os.listdir(self._base_dir)):
            if name.endswith(LOG_SUFFIX):
                ids.append(name[: -len(LOG_SUFFIX)])
            elif include_archived and name.endswith(ARCHIVE_SUFFIX):
                ids.append(name[: -len(ARCHIVE_SUFFIX)])
        return ids

    def _compress(self, log_id: str, archive_id: str) -> bool:
        with open(self._path(log_id, LOG_SUFFIX), "rb") as f:
            content = f.read()
        if not content:
            return False

        encoded = base64.b64encode(gzip.compress(content))
        # 'x' never overwrites an existing archive
        with open(self._path(archive_id, ARCHIVE_SUFFIX), "xb") as f:
            f.write(encoded)
        return True

    def _decompress(self, archive_id: str) -> str:
        with open(self._path(archive_id, ARCHIVE_SUFFIX), "rb") as f:
            encoded = f.read()
        return gzip.decompress(base64.b64decode(encoded)).decode("utf-8")

    def _truncate(self, log_id: str) -> None:
        os.truncate(self._path(log_id, LOG_SUFFIX), 0)
