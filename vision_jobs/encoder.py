"""EncoderCache — single-slot memo of the most recent base64 file encoding.

Several requests for one image (alt text + caption + description) share one
read+encode; a different path evicts the slot, so memory stays bounded to one
image. One instance belongs to one client; callers encoding two different
images concurrently should use separate instances or accept cache thrashing.
"""
import base64
import logging
import os
from pathlib import Path
from typing import Callable, Optional

from vision_jobs.constants import (
    LOG_CACHE_HIT,
    MSG_FILE_EMPTY,
    MSG_FILE_READ_ERROR,
    MSG_FILE_UNREADABLE,
)
from vision_jobs.errors import ErrorKind, JobError

logger = logging.getLogger(__name__)


def _read_file(path: Path) -> bytes:
    return path.read_bytes()


class EncoderCache:

    def __init__(self, reader: Callable[[Path], bytes] = _read_file) -> None:
        self._reader = reader
        self._path: Optional[Path] = None
        self._payload: Optional[str] = None

    @property
    def cached_path(self) -> Optional[Path]:
        return self._path

    def encode(self, path: str | Path) -> str | JobError:
        path = Path(path)
        match (path == self._path, self._payload):
            case (True, str() as payload):
                logger.debug(LOG_CACHE_HIT, path.name)
                return payload
            case _:
                pass

        if not path.is_file() or not os.access(path, os.R_OK):
            return JobError(ErrorKind.RESOURCE_UNREADABLE, MSG_FILE_UNREADABLE % path.name)

        try:
            contents = self._reader(path)
        except OSError as exc:
            logger.debug("Read failed for %s: %s", path, exc)
            return JobError(ErrorKind.RESOURCE_READ_ERROR, MSG_FILE_READ_ERROR)

        if not contents:
            return JobError(ErrorKind.RESOURCE_EMPTY, MSG_FILE_EMPTY % path.name)

        self._path = path
        self._payload = base64.standard_b64encode(contents).decode("ascii")
        return self._payload

    def clear(self) -> None:
        self._path = None
        self._payload = None
