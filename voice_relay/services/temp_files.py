import os
import uuid
from contextlib import contextmanager
from typing import Iterator

from fastapi import UploadFile
from loguru import logger

CHUNK_SIZE = 1024 * 1024  # 1MB


@contextmanager
def temporary_path(directory: str, suffix: str = "") -> Iterator[str]:
    """
    Reserves a unique path in ``directory`` and removes whatever ends up there on exit,
    whether the block succeeds or raises.
    """
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, f"{uuid.uuid4()}{suffix}")
    try:
        yield path
    finally:
        try:
            if os.path.exists(path):
                os.remove(path)
                logger.debug(f"[tmp] removed {path}")
        except OSError as e:
            logger.warning(f"[tmp] could not remove {path}: {e}")


async def save_upload(upload: UploadFile, path: str) -> int:
    """Streams an upload to disk in chunks. Returns the number of bytes written."""
    await upload.seek(0)
    written = 0
    with open(path, "wb") as out:
        while True:
            chunk = await upload.read(CHUNK_SIZE)
            if not chunk:
                break
            out.write(chunk)
            written += len(chunk)
    return written
