import logging
from typing import List

from issue_hunter.domain.exceptions import NotFoundError
from issue_hunter.domain.models import Issue, IssueFilter, Repository
from issue_hunter.infrastructure.database import IssueStore

logger = logging.getLogger(__name__)


class QueryService:
    """Read side over the local store: issue listings and registered repositories."""

    def __init__(self, store: IssueStore):
        self.store = store

    async def fetch_issues(self, issue_filter: IssueFilter) -> List[Issue]:
        """
        Returns one page of matching issues with author and labels loaded.

        An issue whose author row is missing is kept with `user=None` so a
        single broken row does not abort the whole listing.
        """
        issues = await self.store.query_issues(issue_filter)

        loaded = []
        for issue in issues:
            try:
                user = await self.store.get_user(issue.author_id)
            except NotFoundError as e:
                logger.warning(f"Issue {issue.id}: {e}")
                user = None
            labels = await self.store.labels_for_issue(issue.id)
            loaded.append(issue.model_copy(update={"user": user, "labels": labels}))
        return loaded

    async def list_repositories(self) -> List[Repository]:
        return await self.store.list_repositories()
