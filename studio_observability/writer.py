"""Append-only daily log file with size-based rotation, fed by a single-writer queue."""

import asyncio
import logging
import os
import random
from datetime import datetime, timezone

import aiofiles
import aiofiles.os
import aiofiles.ospath

from studio_observability.config import LoggerConfig, RetentionPolicy
from studio_observability.formatter import LogLevel, format_entry
from studio_observability.retention import sweep

logger = logging.getLogger(__name__)


class LogWriter:
    """Durable sink for formatted log lines.

    Every write goes through one ordered queue drained by a single worker task,
    so the stat-then-rename rotation check never runs for two lines at once.
    The worker exits once the queue is empty and is restarted by the next
    write.
    """

    def __init__(self, config: LoggerConfig, time_func=None, random_func=None):
        self._config = config
        self._time_func = time_func or (lambda: datetime.now(timezone.utc))
        self._random = random_func or random.random
        self._policy = RetentionPolicy(max_age_days=config.retention_days)
        self._prefix = f"{config.app_name}-"
        self._folder_attempted = False
        self._folder_created = False
        self._folder_error: str | None = None
        self._loop = None
        self._queue: asyncio.Queue | None = None
        self._worker: asyncio.Task | None = None

    @property
    def folder_created(self) -> bool:
        return self._folder_created

    @property
    def folder_error(self) -> str | None:
        return self._folder_error

    def current_path(self, now: datetime | None = None) -> str:
        """Path of the active file for the current UTC date."""
        now = (now or self._time_func()).astimezone(timezone.utc)
        return os.path.join(self._config.folder, f"{self._prefix}{now:%Y-%m-%d}.log")

    async def write(self, level: LogLevel, message: str, timestamp: datetime | None = None) -> None:
        """Queue one line and wait until it has been written (or dropped)."""
        if not self._config.file_enabled:
            return
        done = asyncio.get_running_loop().create_future()
        self._enqueue((level, message, timestamp or self._time_func(), done))
        await done

    def write_nowait(self, level: LogLevel, message: str, timestamp: datetime | None = None) -> None:
        """Fire-and-forget write for callers that must not suspend.

        Inside a running event loop the line is queued and this returns
        immediately. Without a loop there is nothing to hand the work to: the
        write runs to completion on a private loop and this call blocks until
        the line is on disk.
        """
        if not self._config.file_enabled:
            return
        timestamp = timestamp or self._time_func()
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self.write(level, message, timestamp))
            return
        self._enqueue((level, message, timestamp, None))

    async def flush(self) -> None:
        """Wait until every line queued on this loop has been written."""
        if self._queue is not None and self._loop is asyncio.get_running_loop():
            await self._queue.join()

    def _enqueue(self, item) -> None:
        loop = asyncio.get_running_loop()
        if self._loop is not loop:
            # Queues and tasks are bound to one loop.
            self._loop = loop
            self._queue = asyncio.Queue()
            self._worker = None
        self._queue.put_nowait(item)
        if self._worker is None or self._worker.done():
            self._worker = loop.create_task(self._drain(self._queue))

    async def _drain(self, queue: asyncio.Queue) -> None:
        while not queue.empty():
            level, message, timestamp, done = queue.get_nowait()
            try:
                await self._write_line(format_entry(level, message, timestamp=timestamp))
            except Exception:
                logger.exception("Unexpected failure writing log line")
            finally:
                queue.task_done()
                if done is not None and not done.done():
                    done.set_result(None)

    async def _ensure_folder(self) -> bool:
        if self._folder_attempted:
            return self._folder_created
        self._folder_attempted = True
        try:
            await aiofiles.os.makedirs(self._config.folder, exist_ok=True)
            self._folder_created = True
        except OSError as e:
            self._folder_error = str(e)
            logger.error("Failed to create log folder %s: %s", self._config.folder, e)
        return self._folder_created

    async def _rotate_if_needed(self, path: str, incoming: int) -> str | None:
        """Rename the active file if appending ``incoming`` bytes would overflow it.

        Returns the rotated path, or None when no rotation happened.
        """
        try:
            size = (await aiofiles.os.stat(path)).st_size
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error("Error checking log rotation for %s: %s", path, e)
            return None

        if size == 0 or size + incoming <= self._config.max_size:
            return None

        now = self._time_func().astimezone(timezone.utc)
        stamp = now.strftime("%Y-%m-%dT%H:%M:%S.%fZ").replace(":", "-").replace(".", "-")
        rotated = f"{path}.{stamp}"
        n = 1
        while await aiofiles.ospath.exists(rotated):
            rotated = f"{path}.{stamp}-{n}"
            n += 1
        try:
            await aiofiles.os.rename(path, rotated)
        except OSError as e:
            logger.error("Failed to rotate log file %s: %s", path, e)
            return None
        logger.debug("Rotated %s -> %s (%d bytes)", path, rotated, size)
        return rotated

    async def _write_line(self, line: str) -> None:
        if not await self._ensure_folder():
            return

        path = self.current_path()
        data = (line + "\n").encode("utf-8")
        await self._rotate_if_needed(path, len(data))

        try:
            async with aiofiles.open(path, mode="ab") as f:
                await f.write(data)
        except OSError as e:
            logger.error("Failed to write log file %s: %s", path, e)
            return

        # Roughly one sweep per 1 / sweep_chance writes
        if self._random() < self._config.sweep_chance:
            await sweep(self._config.folder, self._prefix, self._policy, self._time_func)
