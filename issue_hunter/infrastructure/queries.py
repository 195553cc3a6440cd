"""Read-query construction over the local issue store."""
from datetime import datetime
from typing import Collection, Optional

from sqlalchemy import Select, select

from issue_hunter.domain.models import IssueFilter
from issue_hunter.infrastructure.rows import format_timestamp
from issue_hunter.infrastructure.tables import issue_labels_table, issues_table, labels_table, repositories_table


def build_issue_query(
    issue_filter: IssueFilter,
    issue_ids: Optional[Collection[int]] = None,
    now: Optional[datetime] = None,
) -> Select:
    """
    Builds the filtered, ordered, paginated select over issues.

    `issue_ids` is the precomputed set of issues carrying the requested
    label; None means no label filter.
    """
    stmt = select(issues_table)

    if issue_filter.repo_name:
        stmt = stmt.where(issues_table.c.repository_full_name.like(issue_filter.repo_name))

    created_after = issue_filter.effective_created_after(now)
    if created_after is not None:
        stmt = stmt.where(issues_table.c.created_at > format_timestamp(created_after))

    if issue_ids is not None:
        stmt = stmt.where(issues_table.c.id.in_(sorted(issue_ids)))

    # id breaks ties between issues created in the same second
    return (
        stmt.order_by(issues_table.c.created_at.desc(), issues_table.c.id.desc())
        .limit(issue_filter.page_size)
        .offset(issue_filter.offset)
    )


def build_label_ids_query(label_name: str) -> Select:
    return select(labels_table.c.id).where(labels_table.c.name == label_name)


def build_issue_ids_query(label_ids: Collection[int]) -> Select:
    return select(issue_labels_table.c.issue_id).where(issue_labels_table.c.label_id.in_(sorted(label_ids)))


def build_issue_labels_query(issue_id: int) -> Select:
    return (
        select(labels_table)
        .join(issue_labels_table, labels_table.c.id == issue_labels_table.c.label_id)
        .where(issue_labels_table.c.issue_id == issue_id)
        .order_by(labels_table.c.name)
    )


def build_repositories_query() -> Select:
    return select(repositories_table).order_by(repositories_table.c.owner, repositories_table.c.name)
