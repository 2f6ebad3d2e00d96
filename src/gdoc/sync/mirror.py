"""Local git mirrors of tracked repositories."""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import TYPE_CHECKING

from git import GitError, Repo

if TYPE_CHECKING:
    from gdoc.sync.registry import RepoRecord

logger = logging.getLogger(__name__)


class MirrorError(Exception):
    """Raised when a clone or pull fails."""


def auth_env(username: str, token: str) -> dict[str, str]:
    """Git environment presenting basic credentials for HTTP transports.

    Uses GIT_CONFIG_* so the header only lives for the command and the token
    never lands in the mirror's .git/config.
    """
    credentials = base64.b64encode(f"{username}:{token}".encode()).decode()
    return {
        "GIT_CONFIG_COUNT": "1",
        "GIT_CONFIG_KEY_0": "http.extraHeader",
        "GIT_CONFIG_VALUE_0": f"Authorization: Basic {credentials}",
        "GIT_TERMINAL_PROMPT": "0",
    }


class MirrorManager:
    """Keeps a shallow working copy of each repository at its local path.

    A missing path means clone, an existing one means pull. Nothing checks
    that an existing directory is really a mirror of the expected remote, so
    a foreign or broken directory makes the pull fail instead of recovering.
    """

    def __init__(self, username: str, token: str) -> None:
        """Initialize mirror manager.

        Args:
            username: User the token belongs to.
            token: Token presented as the basic-auth password.
        """
        self._env = auth_env(username, token)
        self._locks: dict[str, asyncio.Lock] = {}

    def clone(self, record: RepoRecord) -> None:
        """Clone the repository into its local path."""
        logger.info("Cloning %s into %s", record.key, record.local_path)
        record.local_path.parent.mkdir(parents=True, exist_ok=True)
        repo = Repo.clone_from(record.clone_url, record.local_path, env=self._env, depth=1)
        repo.close()

    def pull(self, record: RepoRecord) -> None:
        """Fetch the latest head from origin and move the working copy to it.

        The mirror is read-only, so the branch is reset to the fetched
        upstream rather than merged; with depth=1 history there is no merge
        base to fast-forward from anyway.
        """
        logger.info("Pulling %s in %s", record.key, record.local_path)
        repo = Repo(record.local_path)
        try:
            with repo.git.custom_environment(**self._env):
                repo.remotes.origin.fetch(depth=1)
            branch = repo.active_branch
            upstream = branch.tracking_branch()
            if upstream is None:
                raise MirrorError(f"{record.key}: branch {branch.name} has no upstream")
            repo.head.reset(upstream.commit, index=True, working_tree=True)
        finally:
            repo.close()

    def sync_blocking(self, record: RepoRecord) -> None:
        """Clone or pull depending on whether the local path exists."""
        try:
            if not record.local_path.exists():
                self.clone(record)
            else:
                self.pull(record)
        except (GitError, OSError, ValueError, AttributeError, TypeError) as e:
            raise MirrorError(f"unable to update {record.key}: {e}") from e

    async def sync(self, record: RepoRecord) -> None:
        """Bring the mirror up to date without blocking the event loop.

        Operations on the same repository are serialized.
        """
        lock = self._locks.setdefault(record.key, asyncio.Lock())
        async with lock:
            await asyncio.to_thread(self.sync_blocking, record)
