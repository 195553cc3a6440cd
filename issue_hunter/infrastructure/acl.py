from datetime import datetime
from typing import Any, Dict, List

from pydantic import ValidationError

from issue_hunter.domain.exceptions import MappingError
from issue_hunter.domain.models import Issue, Label, User

class GitHubTranslator:
    """
    Anti-corruption layer that translates raw GitHub REST issue objects into Issue instances.
    """

    @staticmethod
    def to_domain(raw_issue: Dict[str, Any]) -> Issue:
        """
        Transforms one element of `GET /repos/{owner}/{name}/issues` into an Issue.

        The repository full name is not part of the payload; the sync service
        stamps it afterwards.

        Args:
            raw_issue (Dict[str, Any]): The raw JSON object from GitHub's REST response.

        Returns:
            Issue: The domain model with its author and labels embedded.
        """
        user_data = raw_issue.get('user')
        if not user_data:
            raise MappingError(f"Issue {raw_issue.get('id')} has no user.")

        raw_date = raw_issue.get('created_at')
        if not raw_date:
            raise MappingError(f"Issue {raw_issue.get('id')} has no created_at.")

        try:
            created_at_dt = datetime.fromisoformat(raw_date.replace("Z", "+00:00"))
            user = User(id=user_data.get('id'), login=user_data.get('login'))
            labels: List[Label] = [
                Label(id=label.get('id'), name=label.get('name'), description=label.get('description'))
                for label in raw_issue.get('labels') or []
            ]
            return Issue(
                id=raw_issue.get('id'),
                number=raw_issue.get('number'),
                title=raw_issue.get('title'),
                state=raw_issue.get('state'),
                author_id=user.id,
                created_at=created_at_dt,
                user=user,
                labels=labels,
            )
        except (ValidationError, ValueError, TypeError, AttributeError) as e:
            raise MappingError(f"Malformed issue payload {raw_issue.get('id')}: {e}") from e
