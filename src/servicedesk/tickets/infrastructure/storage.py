"""
Attachment Storage
==================

Stores uploaded blobs on the local filesystem under generated names so
user-supplied file names never reach the disk path.
"""

import asyncio
from pathlib import Path
from uuid import uuid4

from servicedesk.shared.infrastructure.logging import get_logger
from servicedesk.tickets.application.services import IAttachmentStorage

logger = get_logger(__name__)


class LocalAttachmentStorage(IAttachmentStorage):
    """Writes attachments into one upload directory."""

    def __init__(self, upload_dir: Path):
        self._dir = Path(upload_dir)

    def _write(self, filename: str, data: bytes) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        with open(self._dir / filename, "wb") as buffer:
            buffer.write(data)

    async def save(self, original_name: str, data: bytes) -> str:
        suffix = Path(original_name).suffix[:20]
        filename = f"{uuid4().hex}{suffix}"
        await asyncio.to_thread(self._write, filename, data)
        logger.info("Attachment stored", extra={"stored_name": filename, "size": len(data)})
        return filename

    async def delete(self, filename: str) -> None:
        path = self._dir / Path(filename).name
        await asyncio.to_thread(path.unlink, missing_ok=True)

    def path_for(self, filename: str) -> Path:
        return self._dir / Path(filename).name
