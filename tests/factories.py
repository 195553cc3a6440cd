from datetime import datetime, timedelta, timezone

from issue_hunter.domain.models import Issue, Label, User

DAY0 = datetime(2024, 5, 10, 12, 0, 0, tzinfo=timezone.utc)


def day(offset: int) -> datetime:
    return DAY0 + timedelta(days=offset)


def make_issue(issue_id, created_at=DAY0, repo="octo/demo", user=None, labels=(), title=None, state="open"):
    user = user or User(id=1, login="octocat")
    return Issue(
        id=issue_id,
        number=issue_id,
        title=title or f"Issue {issue_id}",
        state=state,
        repository_full_name=repo,
        author_id=user.id,
        created_at=created_at,
        user=user,
        labels=list(labels),
    )


def raw_issue(issue_id, created_at="2024-05-10T12:00:00Z", labels=None):
    return {
        "id": issue_id,
        "number": issue_id,
        "title": f"Issue {issue_id}",
        "state": "open",
        "user": {"id": 1, "login": "octocat", "type": "User"},
        "labels": labels if labels is not None else [
            {"id": 10, "name": "bug", "description": "Something isn't working", "color": "d73a4a"},
        ],
        "created_at": created_at,
        "html_url": f"https://github.com/octo/demo/issues/{issue_id}",
    }


BUG = Label(id=10, name="bug", description="Something isn't working")
DOCS = Label(id=11, name="docs", description=None)
