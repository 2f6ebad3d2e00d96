"""Polling loop that drives discovery, change detection and mirroring."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import timedelta
from enum import StrEnum
from typing import Protocol

from gdoc.duration import InvalidDurationError, parse_duration
from gdoc.sync.discovery import DiscoveryError
from gdoc.sync.mirror import MirrorError
from gdoc.sync.registry import ChangeKind, RepoRecord, RepoRegistry

logger = logging.getLogger(__name__)

# Intervals below this risk exhausting the GitHub API rate limit.
MIN_RECOMMENDED_INTERVAL = timedelta(minutes=1)


class Discovery(Protocol):
    def discover(self) -> AsyncGenerator[RepoRecord, None]: ...


class Mirror(Protocol):
    async def sync(self, record: RepoRecord) -> None: ...


class SyncState(StrEnum):
    """Lifecycle of the syncer."""

    IDLE = "idle"
    POLLING = "polling"
    STOPPED = "stopped"


@dataclass
class CycleReport:
    """Result of one poll cycle."""

    discovered: int = 0
    new: int = 0
    changed: int = 0
    unchanged: int = 0
    mirrored: int = 0
    failed: int = 0
    aborted: bool = False
    cancelled: bool = False


class Syncer:
    """Polls GitHub for tagged repositories and keeps their mirrors current.

    The registry is only ever written from the single polling flow. A
    repository's commit is recorded when the change is detected, before the
    mirror is updated, so a failed clone or pull leaves the mirror stale until
    the next commit lands upstream.
    """

    def __init__(
        self,
        discovery: Discovery,
        mirror: Mirror,
        poll_interval: str,
        registry: RepoRegistry | None = None,
    ) -> None:
        """Initialize the syncer.

        Args:
            discovery: Source of observed repositories.
            mirror: Updates local working copies.
            poll_interval: Duration string between cycles, e.g. "5m".
            registry: Registry of seen repositories (a fresh one by default).
        """
        self._discovery = discovery
        self._mirror = mirror
        self._poll_interval = poll_interval
        self.registry = registry or RepoRegistry()
        self.state = SyncState.IDLE

    def interval(self) -> timedelta:
        """Parse and validate the poll interval."""
        interval = parse_duration(self._poll_interval)
        if interval <= timedelta(0):
            raise InvalidDurationError(f"poll interval must be positive, got {self._poll_interval!r}")
        if interval < MIN_RECOMMENDED_INTERVAL:
            logger.warning(
                "Poll interval %s is below %s and may exhaust the GitHub rate limit",
                self._poll_interval,
                MIN_RECOMMENDED_INTERVAL,
            )
        return interval

    async def run_cycle(self, stop: asyncio.Event | None = None) -> CycleReport:
        """Run discovery, detection and mirroring once.

        Repositories are handled in discovery order. If ``stop`` is set the
        cycle ends before the next repository; the current one finishes.
        """
        report = CycleReport()
        discovered = self._discovery.discover()
        try:
            async for record in discovered:
                if stop is not None and stop.is_set():
                    report.cancelled = True
                    break

                report.discovered += 1
                kind = self.registry.detect(record)

                if not kind.needs_mirror:
                    report.unchanged += 1
                    logger.debug("%s unchanged at %s", record.key, record.commit_sha[:8])
                else:
                    if kind is ChangeKind.NEW:
                        report.new += 1
                    else:
                        report.changed += 1
                    logger.info("Processing %s repository %s at %s", kind, record.key, record.commit_sha[:8])
                    try:
                        await self._mirror.sync(record)
                        report.mirrored += 1
                    except MirrorError:
                        report.failed += 1
                        logger.exception("Unable to update repository %s", record.key)
        except DiscoveryError as e:
            report.aborted = True
            logger.error("Discovery failed, skipping this cycle: %s", e)
        except Exception:
            report.aborted = True
            logger.exception("Sync cycle failed")
        finally:
            await discovered.aclose()

        logger.info(
            "Cycle complete: %d discovered, %d new, %d changed, %d unchanged, %d mirrored, %d failed",
            report.discovered,
            report.new,
            report.changed,
            report.unchanged,
            report.mirrored,
            report.failed,
        )
        return report

    async def run(self, stop: asyncio.Event) -> None:
        """Poll every interval until ``stop`` is set.

        The first cycle runs one full interval after start. Ticks are aligned
        to the start time, so a cycle that overruns is followed immediately by
        one catch-up cycle rather than a backlog.

        Raises:
            InvalidDurationError: The poll interval is not a valid positive duration.
        """
        interval = self.interval().total_seconds()
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + interval
        logger.info("Syncer started (interval: %s)", self._poll_interval)

        try:
            while True:
                self.state = SyncState.IDLE
                try:
                    await asyncio.wait_for(stop.wait(), timeout=max(0.0, next_tick - loop.time()))
                    return
                except TimeoutError:
                    pass

                self.state = SyncState.POLLING
                report = await self.run_cycle(stop)
                if report.cancelled:
                    return

                next_tick += interval
                now = loop.time()
                if next_tick < now:
                    missed = (now - next_tick) // interval
                    next_tick += missed * interval
        finally:
            self.state = SyncState.STOPPED
            logger.info("Syncer stopped")
