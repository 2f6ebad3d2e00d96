"""Repository synchronization: discovery, change detection and local mirrors."""

from gdoc.sync.discovery import DiscoveryError, GitHubDiscovery
from gdoc.sync.mirror import MirrorError, MirrorManager
from gdoc.sync.registry import ChangeKind, RepoRecord, RepoRegistry, mirror_path
from gdoc.sync.scheduler import CycleReport, Syncer, SyncState

__all__ = [
    "ChangeKind",
    "CycleReport",
    "DiscoveryError",
    "GitHubDiscovery",
    "MirrorError",
    "MirrorManager",
    "RepoRecord",
    "RepoRegistry",
    "SyncState",
    "Syncer",
    "mirror_path",
]
