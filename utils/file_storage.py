"""
Local file storage for uploaded media.

Files live flat under one upload root and are served by the web app under
``config.UPLOAD_URL_PREFIX``. Disk I/O runs in a worker thread so request
handlers never block the event loop.
"""

import asyncio
import logging
import re
import shutil
import stat
import uuid
from datetime import datetime
from pathlib import Path
from typing import BinaryIO

import config
from exceptions import StorageException

logger = logging.getLogger(__name__)

UNSAFE_NAME_CHARS = re.compile(r'[^a-zA-Z0-9._-]')


def sanitize_filename(name: str | None) -> str:
    """
    Make an uploaded file name safe to store.

    Examples:
        >>> sanitize_filename("Gear box (v2).step")
        'Gear_box__v2_.step'
        >>> sanitize_filename("../../etc/passwd")
        '.._.._etc_passwd'
    """
    safe = UNSAFE_NAME_CHARS.sub('_', name or '')
    return safe or 'file'


class LocalFileStorage:

    def __init__(self, root: str | Path, url_prefix: str = config.UPLOAD_URL_PREFIX):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip('/')

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, stored_name: str) -> Path:
        path = (self.root / stored_name).resolve()
        if path.parent != self.root.resolve():
            raise StorageException("resolve", stored_name, "name escapes the upload root")
        return path

    def url_for(self, stored_name: str) -> str:
        return f"{self.url_prefix}/{stored_name}"

    def _unique_name(self, suggested_name: str | None) -> str:
        stamp = datetime.now().strftime('%Y%m%d%H%M%S')
        return f"{stamp}-{uuid.uuid4().hex[:12]}-{sanitize_filename(suggested_name)}"

    async def write(self, source: BinaryIO, suggested_name: str | None) -> str:
        """
        Copy a readable binary stream to a new unique name, chunk by chunk.

        Returns:
            The stored name (relative to the upload root)

        Raises:
            StorageException: the file could not be written
        """
        stored_name = self._unique_name(suggested_name)
        path = self.path_for(stored_name)
        try:
            written = await asyncio.to_thread(self._write_sync, path, source)
        except OSError as e:
            logger.error(f"Failed to write {stored_name}: {e}")
            await asyncio.to_thread(self._discard_partial, path)
            raise StorageException("write", stored_name, str(e)) from e
        logger.info(f"Stored {written} bytes as {stored_name}")
        return stored_name

    def _write_sync(self, path: Path, source: BinaryIO) -> int:
        self.ensure_root()
        with open(path, 'xb') as f:
            shutil.copyfileobj(source, f)
            return f.tell()

    def _discard_partial(self, path: Path) -> None:
        # A half-written file must not stay behind
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove partial file {path.name}: {e}")

    async def delete(self, stored_name: str) -> bool:
        """
        Delete a stored file.

        Returns:
            True if a file was removed, False if it was already gone

        Raises:
            StorageException: the file exists but could not be removed
        """
        path = self.path_for(stored_name)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageException("delete", stored_name, str(e)) from e
        logger.info(f"Deleted stored file {stored_name}")
        return True

    async def exists(self, stored_name: str) -> bool:
        return await asyncio.to_thread(self.path_for(stored_name).is_file)

    async def disk_usage(self) -> tuple[int, int]:
        """Return (total bytes, file count) of everything under the upload root."""
        return await asyncio.to_thread(self._disk_usage_sync)

    def _disk_usage_sync(self) -> tuple[int, int]:
        total_bytes = 0
        file_count = 0
        if not self.root.exists():
            return 0, 0
        for path in self.root.rglob('*'):
            try:
                info = path.stat()
            except FileNotFoundError:
                # Released between listing and stat
                continue
            if stat.S_ISREG(info.st_mode):
                total_bytes += info.st_size
                file_count += 1
        return total_bytes, file_count
