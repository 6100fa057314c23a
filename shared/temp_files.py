"""Scoped scratch files for receipt blobs."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from uuid import uuid4


logger = logging.getLogger(__name__)


def discard_temp_blob(path: Path | None) -> None:
    """Unlink a scratch file, logging instead of raising on failure."""

    if path is None:
        return
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.warning("temp_blob_unlink_failed path=%s", path, exc_info=True)


@contextmanager
def temp_blob(directory: Path, data: bytes, *, suffix: str = ".jpg") -> Iterator[Path]:
    """Write ``data`` to a uniquely named file and unlink it on every exit path."""

    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{uuid4()}{suffix}"
    try:
        path.write_bytes(data)
        yield path
    finally:
        discard_temp_blob(path)
