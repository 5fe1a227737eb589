from __future__ import annotations

import logging
import os
import random
import shutil
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, TypeVar


T = TypeVar("T")

logger = logging.getLogger(__name__)

TMP_DIR_PREFIX = "lighthouse-ci-"
SQL_FILE_PREFIX = "cli-test-"
SQL_FILE_SUFFIX = ".tmp.sql"
DELETE_ATTEMPTS = 3
DELETE_RETRY_DELAY_SEC = 1.0


def get_sql_file_path() -> str:
    return f"{SQL_FILE_PREFIX}{random.randrange(1_000_000_000)}{SQL_FILE_SUFFIX}"


def safe_delete_file(file_path: str | os.PathLike[str]) -> None:
    """
    Best-effort unlink that tolerates short-lived file locks.

    Gives up quietly after `DELETE_ATTEMPTS` failures; fixture teardown must
    not mask the result of the test that used the file.
    """
    if not os.path.exists(file_path):
        return

    for attempt in range(1, DELETE_ATTEMPTS + 1):
        try:
            os.unlink(file_path)
            return
        except OSError as exc:
            logger.debug("delete attempt %d/%d failed for %s: %s", attempt, DELETE_ATTEMPTS, file_path, exc)
        if attempt < DELETE_ATTEMPTS:
            time.sleep(DELETE_RETRY_DELAY_SEC)

    logger.info("giving up on deleting %s after %d attempts", file_path, DELETE_ATTEMPTS)


@contextmanager
def tmp_dir() -> Iterator[Path]:
    path = Path(tempfile.mkdtemp(prefix=TMP_DIR_PREFIX))
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


def with_tmp_dir(fn: Callable[[Path], T]) -> T:
    """Run `fn` with a fresh temp directory that is removed afterwards, even if `fn` raises."""
    with tmp_dir() as path:
        return fn(path)
