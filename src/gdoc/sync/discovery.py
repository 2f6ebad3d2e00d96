"""GitHub discovery of topic-tagged repositories and their head commits."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

import httpx

from gdoc.sync.registry import RepoRecord, mirror_path

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"

# Search API page size ceiling.
PAGE_SIZE = 100

# The search API serves at most this many results per query.
SEARCH_RESULT_LIMIT = 1000


class DiscoveryError(Exception):
    """Raised when the repository listing cannot be retrieved."""


def build_query(user: str, topic: str) -> str:
    """Search query selecting the account's Go repositories carrying the topic."""
    return f"language:go user:{user} topic:{topic}"


class GitHubDiscovery:
    """Lists repositories tagged with a topic and resolves their head commits.

    Each repository costs one extra API round-trip for its default branch,
    which is what drives rate-limit usage.
    """

    def __init__(
        self,
        token: str,
        user: str,
        topic: str,
        root: Path,
        api_url: str = GITHUB_API_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize discovery.

        Args:
            token: GitHub token sent with every request.
            user: User or organization to scan.
            topic: Topic the repositories must carry.
            root: Godoc root the mirror paths are derived from.
            api_url: REST API base URL.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self._token = token
        self._user = user
        self._topic = topic
        self._root = root
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"token {self._token}",
        }
        return httpx.AsyncClient(
            base_url=self._api_url,
            headers=headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _search(self, client: httpx.AsyncClient) -> list[dict[str, Any]]:
        """Fetch every search result page."""
        query = build_query(self._user, self._topic)
        logger.debug("Search query: %s", query)

        items: list[dict[str, Any]] = []
        page = 1
        while True:
            try:
                response = await client.get(
                    "/search/repositories",
                    params={"q": query, "per_page": PAGE_SIZE, "page": page},
                )
                response.raise_for_status()
                data = response.json()
                batch = data["items"]
                total = int(data["total_count"])
            except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
                raise DiscoveryError(f"repository search failed: {e}") from e

            items.extend(batch)
            if not batch or len(items) >= total:
                break
            if page * PAGE_SIZE >= SEARCH_RESULT_LIMIT:
                logger.warning(
                    "Search matched %d repos but only the first %d can be listed",
                    total,
                    len(items),
                )
                break
            page += 1

        logger.debug("Search returned %d repos", len(items))
        return items

    async def _head_commit(self, client: httpx.AsyncClient, owner: str, name: str, branch: str) -> str:
        response = await client.get(f"/repos/{owner}/{name}/branches/{branch}")
        response.raise_for_status()
        return str(response.json()["commit"]["sha"])

    async def discover(self) -> AsyncGenerator[RepoRecord, None]:
        """Yield matching repositories in search order, each with its head commit.

        Raises DiscoveryError before yielding anything if the search fails.
        Repositories whose branch lookup fails are logged and skipped.
        """
        async with self._client() as client:
            items = await self._search(client)

            for item in items:
                try:
                    owner = item["owner"]["login"]
                    name = item["name"]
                    clone_url = item["clone_url"]
                    branch = item["default_branch"]
                except (KeyError, TypeError):
                    logger.warning("Skipping malformed search result: %r", item)
                    continue

                try:
                    sha = await self._head_commit(client, owner, name, branch)
                except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
                    logger.error("Unable to get head commit for %s/%s: %s", owner, name, e)
                    continue

                yield RepoRecord(
                    owner=owner,
                    name=name,
                    clone_url=clone_url,
                    commit_sha=sha,
                    local_path=mirror_path(self._root, clone_url, owner, name),
                )
