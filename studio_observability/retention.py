"""Retention enforcement: delete log files older than the configured window."""

import logging
import os
from datetime import datetime, timedelta, timezone

import aiofiles.os

from studio_observability.config import RetentionPolicy

logger = logging.getLogger(__name__)


async def sweep(folder: str, prefix: str, policy: RetentionPolicy, time_func=None) -> list[str]:
    """Delete files starting with ``prefix`` whose mtime is past the window.

    Returns the deleted filenames. A file that cannot be stat'ed or removed is
    reported and skipped; it never aborts the rest of the sweep.
    """
    now_func = time_func or (lambda: datetime.now(timezone.utc))
    cutoff = (now_func() - timedelta(days=policy.max_age_days)).timestamp()
    deleted = []

    try:
        names = await aiofiles.os.listdir(folder)
    except OSError as e:
        logger.error("Error listing log folder %s for cleanup: %s", folder, e)
        return deleted

    for name in sorted(names):
        if not name.startswith(prefix):
            continue
        path = os.path.join(folder, name)
        try:
            st = await aiofiles.os.stat(path)
            if st.st_mtime < cutoff:
                await aiofiles.os.remove(path)
                deleted.append(name)
        except OSError as e:
            logger.error("Error deleting old log file %s: %s", path, e)

    if deleted:
        logger.debug("Purged %d expired log file(s): %s", len(deleted), ", ".join(deleted))
    return deleted
