"""Runs godoc over the mirror root."""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)

# Seconds to wait after SIGTERM before killing godoc.
STOP_GRACE_SECONDS = 10.0


class RendererError(Exception):
    """Raised when godoc cannot be found or started."""


class GodocRenderer:
    """Starts godoc as a subprocess and waits for it to exit.

    The process is never restarted. Setting the stop event terminates it.
    """

    def __init__(
        self,
        root: Path,
        port: int,
        index_interval: str = "1m",
        executable: str = "godoc",
    ) -> None:
        self._root = root
        self._port = port
        self._index_interval = index_interval
        self._executable = executable

    def args(self) -> list[str]:
        """Command line flags passed to godoc."""
        return [
            f"-http=localhost:{self._port}",
            f"-goroot={self._root}",
            "-index",
            f"-index_interval={self._index_interval}",
        ]

    async def run(self, stop: asyncio.Event) -> int:
        """Run godoc until it exits or ``stop`` is set.

        Returns:
            The godoc exit code.

        Raises:
            RendererError: godoc is not on PATH or failed to start.
        """
        path = shutil.which(self._executable)
        if path is None:
            raise RendererError(f"unable to find {self._executable} in PATH")

        try:
            proc = await asyncio.create_subprocess_exec(path, *self.args())
        except OSError as e:
            raise RendererError(f"unable to start godoc: {e}") from e

        logger.info("Godoc started (pid %d, port %d)", proc.pid, self._port)

        exited = asyncio.create_task(proc.wait())
        stopped = asyncio.create_task(stop.wait())
        try:
            await asyncio.wait({exited, stopped}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stopped.cancel()

        if not exited.done():
            logger.info("Stopping godoc")
            proc.terminate()
            try:
                await asyncio.wait_for(asyncio.shield(exited), timeout=STOP_GRACE_SECONDS)
            except TimeoutError:
                logger.warning("Godoc did not exit after %.0fs, killing it", STOP_GRACE_SECONDS)
                proc.kill()

        returncode = await exited
        logger.info("Godoc exited with code %d", returncode)
        return returncode
