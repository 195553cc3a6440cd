import logging
from datetime import datetime
from typing import Dict, Optional

import aiohttp

from issue_hunter.domain.exceptions import NotFoundError
from issue_hunter.domain.models import Repository, ensure_utc, start_of_utc_day
from issue_hunter.infrastructure.database import IssueStore
from issue_hunter.infrastructure.github_client import GitHubRestClient

logger = logging.getLogger(__name__)

# Limit concurrent connections; repositories are still synced one at a time
CONNECTOR_LIMIT = 4


class SyncService:
    """
    Service responsible for mirroring the issues of every registered
    repository into the local store.

    Pages are pulled newest first. The oldest creation time seen so far is
    the watermark: once it is at or before the cutoff, the pass for that
    repository stops. Every issue is persisted as soon as its page arrives.
    """

    def __init__(
            self,
            github_client: GitHubRestClient,
            store: IssueStore,
            max_pages: Optional[int] = None,
    ):
        self.github_client = github_client
        self.store = store
        self.max_pages = max_pages

    async def add_repository(self, repo: Repository) -> None:
        await self.store.upsert(repo)
        logger.info(f"Registered {repo.full_name}.")

    async def remove_repository(self, repo: Repository) -> None:
        """Deregisters a repository and deletes its stored issues."""
        if repo not in await self.store.list_repositories():
            raise NotFoundError(f"Repository {repo.full_name} is not registered.")
        await self.store.delete(repo)

    async def sync_all(self, create_after: Optional[datetime] = None) -> Dict[str, int]:
        """
        Runs one sync pass over all registered repositories.

        Args:
            create_after: cutoff for the watermark; defaults to the start of the current UTC day.

        Returns:
            Number of issues persisted per repository full name.
        """
        cutoff = ensure_utc(create_after) if create_after else start_of_utc_day()
        repositories = await self.store.list_repositories()
        logger.info(f"Syncing {len(repositories)} repositories with cutoff {cutoff.isoformat()}.")

        synced: Dict[str, int] = {}
        async with aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(limit=CONNECTOR_LIMIT),
        ) as session:
            for repo in repositories:
                synced[repo.full_name] = await self.sync_repository(session, repo, cutoff)

        logger.info(f"Sync completed. Total issues persisted: {sum(synced.values())}.")
        return synced

    async def sync_repository(self, session, repo: Repository, cutoff: datetime) -> int:
        """Paginate through one repository's issues until the watermark passes the cutoff."""
        cutoff = ensure_utc(cutoff)
        oldest_seen: Optional[datetime] = None
        page = 1
        persisted = 0

        while oldest_seen is None or oldest_seen > cutoff:
            if self.max_pages is not None and page > self.max_pages:
                logger.warning(
                    f"[{repo.full_name}] Stopped after {self.max_pages} pages "
                    f"before reaching cutoff {cutoff.isoformat()}."
                )
                break

            issues = await self.github_client.fetch_page(session, repo.owner, repo.name, page)
            if not issues:
                logger.debug(f"[{repo.full_name}] Page {page} is empty, no more issues.")
                break

            for issue in issues:
                await self.store.upsert(issue.model_copy(update={"repository_full_name": repo.full_name}))
                persisted += 1

            page_oldest = min(issue.created_at for issue in issues)
            oldest_seen = page_oldest if oldest_seen is None else min(oldest_seen, page_oldest)

            logger.info(
                f"[{repo.full_name}] Page {page}: persisted {len(issues)}, "
                f"oldest seen {oldest_seen.isoformat()}."
            )
            page += 1

        return persisted
