"""In-memory record of tracked repositories and change detection."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from urllib.parse import urlparse

from pydantic import BaseModel, Field


def mirror_path(root: Path, clone_url: str, owner: str, name: str) -> Path:
    """Location of a repository's mirror under the godoc root.

    Follows the GOPATH layout (src/<host>/<owner>/<name>) so godoc resolves
    import paths for the mirrored packages.
    """
    host = urlparse(clone_url).hostname or "github.com"
    return root / "src" / host / owner / name


class RepoRecord(BaseModel):
    """A tracked repository and the last observed head of its default branch."""

    owner: str = Field(description="Repository owner")
    name: str = Field(description="Repository name")
    clone_url: str = Field(description="URL used for clone and pull")
    commit_sha: str = Field(description="Head commit of the default branch when observed")
    local_path: Path = Field(description="Location of the local mirror")

    @property
    def key(self) -> str:
        return f"{self.owner}/{self.name}"


class ChangeKind(StrEnum):
    """Outcome of comparing an observation against the registry."""

    NEW = "new"
    CHANGED = "changed"
    UNCHANGED = "unchanged"

    @property
    def needs_mirror(self) -> bool:
        return self is not ChangeKind.UNCHANGED


class RepoRegistry:
    """Repositories seen by the syncer, keyed by owner/name.

    Lives for the lifetime of the process and is never persisted, so after a
    restart every repository is new again. Entries are never removed, even
    when a repository loses its topic.
    """

    def __init__(self) -> None:
        self._repos: dict[str, RepoRecord] = {}

    def __len__(self) -> int:
        return len(self._repos)

    def __contains__(self, key: object) -> bool:
        return key in self._repos

    def get(self, owner: str, name: str) -> RepoRecord | None:
        """Get a tracked repository."""
        return self._repos.get(f"{owner}/{name}")

    def list_all(self) -> list[RepoRecord]:
        """List all tracked repositories."""
        return list(self._repos.values())

    def detect(self, observed: RepoRecord) -> ChangeKind:
        """Compare an observation with the stored record and record it.

        Unknown repositories are inserted, repositories whose head moved are
        replaced, and unchanged ones are left alone. No I/O happens here.
        """
        current = self._repos.get(observed.key)
        if current is None:
            self._repos[observed.key] = observed
            return ChangeKind.NEW

        if current.commit_sha == observed.commit_sha:
            return ChangeKind.UNCHANGED

        self._repos[observed.key] = observed
        return ChangeKind.CHANGED
