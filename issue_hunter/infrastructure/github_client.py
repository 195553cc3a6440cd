import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from issue_hunter.domain.exceptions import MappingError, RemoteError
from issue_hunter.domain.models import Issue
from issue_hunter.infrastructure.acl import GitHubTranslator

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_PER_PAGE = 30
REQUEST_TIMEOUT = aiohttp.ClientTimeout(total=60, connect=10)
RATE_LIMITED_STATUSES = {403, 429}

class GitHubRestClient:
    """
    Client for the GitHub REST issues endpoint.
    Fetches one page at a time; retrying is left to the caller.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: str = DEFAULT_API_URL,
        per_page: int = DEFAULT_PER_PAGE,
        state: str = "all",
    ):
        self.headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "issue-hunter",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            self.headers["Authorization"] = f"Bearer {token}"
        self.api_url = api_url.rstrip("/")
        self.per_page = per_page
        self.state = state

    def issues_url(self, owner: str, name: str) -> str:
        return f"{self.api_url}/repos/{owner}/{name}/issues"

    def page_params(self, page: int) -> Dict[str, Any]:
        # Newest first; the sync watermark depends on this order.
        return {
            "page": page,
            "per_page": self.per_page,
            "state": self.state,
            "sort": "created",
            "direction": "desc",
        }

    async def fetch_page(
        self,
        session: aiohttp.ClientSession,
        owner: str,
        name: str,
        page: int,
    ) -> List[Issue]:
        """
        Fetches a single page of issues for owner/name.

        Returns:
            The page's issues, each with its author and labels embedded.

        Raises:
            RemoteError: the API answered with a non-success status, or could not be reached.
            MappingError: the payload is not a list of issue objects.
        """
        url = self.issues_url(owner, name)
        try:
            async with session.get(url, params=self.page_params(page), headers=self.headers, timeout=REQUEST_TIMEOUT) as response:
                if response.status < 200 or response.status >= 300:
                    reset_at = None
                    if response.status in RATE_LIMITED_STATUSES and response.headers.get('X-RateLimit-Remaining') == '0':
                        reset_at = response.headers.get('X-RateLimit-Reset')
                        logger.warning(f"Rate limit exhausted for {owner}/{name}. Resets at {reset_at}.")
                    raise RemoteError(
                        response.status,
                        message=f"Fetching page {page} of {owner}/{name} failed.",
                        reset_at=reset_at,
                    )
                data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RemoteError(
                None,
                message=f"Fetching page {page} of {owner}/{name} failed: {e!r}.",
            ) from e
        except ValueError as e:
            raise MappingError(f"Response for {owner}/{name} page {page} is not valid JSON: {e}") from e

        if not isinstance(data, list):
            raise MappingError(f"Expected a list of issues for {owner}/{name}, got {type(data).__name__}.")

        logger.debug(f"Fetched {len(data)} issues from {url} (page {page}).")
        return [GitHubTranslator.to_domain(raw_issue) for raw_issue in data]
