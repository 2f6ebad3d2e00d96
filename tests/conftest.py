"""Shared test fixtures for gdoc."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from git import Actor, Repo

from gdoc.sync.registry import RepoRecord, mirror_path

AUTHOR = Actor("gdoc tests", "tests@example.com")


def commit_file(repo: Repo, name: str, content: str, message: str) -> str:
    """Write a file into a working tree, commit it and return the new sha."""
    path = Path(repo.working_tree_dir) / name
    path.write_text(content)
    repo.index.add([name])
    commit = repo.index.commit(message, author=AUTHOR, committer=AUTHOR)
    return commit.hexsha


@pytest.fixture
def mirror_root(tmp_path: Path) -> Path:
    """Empty godoc root for mirrors."""
    root = tmp_path / "goroot"
    root.mkdir()
    return root


@pytest.fixture
def make_record(mirror_root: Path) -> Callable[..., RepoRecord]:
    """Factory for repository records rooted at mirror_root."""

    def _make(name: str = "widget", sha: str = "c1", owner: str = "acme") -> RepoRecord:
        clone_url = f"https://github.com/{owner}/{name}.git"
        return RepoRecord(
            owner=owner,
            name=name,
            clone_url=clone_url,
            commit_sha=sha,
            local_path=mirror_path(mirror_root, clone_url, owner, name),
        )

    return _make


@pytest.fixture
def origin_repo(tmp_path: Path) -> Repo:
    """A local git repository with one commit on main, usable as a remote."""
    repo = Repo.init(tmp_path / "origin", initial_branch="main")
    commit_file(repo, "doc.go", "// Package widget does things.\npackage widget\n", "initial")
    return repo


@pytest.fixture
def commit() -> Callable[[Repo, str, str, str], str]:
    """Helper committing a file into a repository and returning the sha."""
    return commit_file
