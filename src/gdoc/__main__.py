"""Entry point: sync tagged repositories and serve them with godoc."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

from pydantic import ValidationError

from gdoc.config import Settings
from gdoc.duration import InvalidDurationError
from gdoc.renderer import GodocRenderer, RendererError
from gdoc.sync import GitHubDiscovery, MirrorManager, Syncer

logger = logging.getLogger("gdoc")


def configure_logging(level: str) -> None:
    """Send log records to stderr at the given level."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def build_syncer(settings: Settings) -> Syncer:
    """Wire discovery and mirroring from settings."""
    discovery = GitHubDiscovery(
        token=settings.github_token,
        user=settings.github_user,
        topic=settings.github_topic,
        root=settings.godoc_root,
        api_url=settings.github_api_url,
    )
    mirror = MirrorManager(settings.github_token_user, settings.github_token)
    return Syncer(discovery, mirror, settings.github_poll_interval)


async def serve(settings: Settings) -> int:
    """Run the syncer and godoc until either exits or a signal arrives."""
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    settings.godoc_root.mkdir(parents=True, exist_ok=True)

    syncer = build_syncer(settings)
    renderer = GodocRenderer(
        root=settings.godoc_root,
        port=settings.godoc_port,
        index_interval=settings.godoc_index_interval,
    )

    async def run_syncer() -> None:
        try:
            logger.info("Starting the syncer service")
            await syncer.run(stop)
        finally:
            stop.set()

    async def run_renderer() -> int:
        try:
            logger.info("Starting the godoc service")
            return await renderer.run(stop)
        finally:
            stop.set()

    results = await asyncio.gather(run_syncer(), run_renderer(), return_exceptions=True)

    status = 0
    for name, result in zip(("syncer", "godoc"), results):
        if isinstance(result, (InvalidDurationError, RendererError)):
            logger.error("%s exited: %s", name, result)
            status = 1
        elif isinstance(result, BaseException):
            logger.error("%s exited", name, exc_info=result)
            status = 1
    return status


def main() -> int:
    """Load configuration from the environment and run."""
    try:
        settings = Settings.from_env()
    except ValidationError as e:
        configure_logging("INFO")
        logger.error("Invalid configuration: %s", e)
        return 1

    configure_logging(settings.log_level)
    logger.debug("Using configuration: %s", settings.redacted())
    return asyncio.run(serve(settings))


if __name__ == "__main__":
    sys.exit(main())
