import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Collection, Dict, List, Optional, Set

from pydantic import BaseModel
from sqlalchemy import Table, delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, create_async_engine
from sqlalchemy.pool import StaticPool

from issue_hunter.domain.exceptions import NotFoundError, StoreError
from issue_hunter.domain.models import Issue, IssueFilter, IssueLabelLink, Label, Repository, User
from issue_hunter.infrastructure import queries
from issue_hunter.infrastructure.rows import RowMapper, to_row
from issue_hunter.infrastructure.tables import (
    issue_labels_table,
    issues_table,
    labels_table,
    metadata,
    repositories_table,
    users_table,
)

logger = logging.getLogger(__name__)

TABLES_BY_ENTITY: Dict[type, Table] = {
    Repository: repositories_table,
    User: users_table,
    Label: labels_table,
    Issue: issues_table,
    IssueLabelLink: issue_labels_table,
}


def build_upsert(table: Table, row: Dict[str, Any], dialect_name: str):
    """
    Builds an insert-or-replace statement keyed on the table's primary key.

    A conflicting row has every non-key column overwritten; tables made only
    of key columns ignore the conflict.
    """
    insert = postgresql.insert if dialect_name == "postgresql" else sqlite.insert
    stmt = insert(table).values(row)
    key_columns = [column.name for column in table.primary_key.columns]
    update_columns = {
        name: stmt.excluded[name] for name in row if name not in key_columns
    }
    if not update_columns:
        return stmt.on_conflict_do_nothing(index_elements=key_columns)
    return stmt.on_conflict_do_update(index_elements=key_columns, set_=update_columns)


def _key_clause(table: Table, entity: BaseModel):
    row = to_row(entity)
    clauses = [column == row[column.name] for column in table.primary_key.columns]
    return clauses


class IssueStore:
    """
    Repository class for the local issue database.
    Translates entity mutations into idempotent upserts and keyed deletes,
    and runs the read queries used by the query service.
    """

    def __init__(self, db_url: str):
        options: Dict[str, Any] = {"echo": False}
        if ":memory:" in db_url or db_url.rstrip("/").endswith("sqlite+aiosqlite:"):
            # One shared connection, otherwise each checkout sees an empty database.
            options["poolclass"] = StaticPool
            options["connect_args"] = {"check_same_thread": False}
        self.engine = create_async_engine(db_url, **options)

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @asynccontextmanager
    async def _begin(self) -> AsyncIterator[AsyncConnection]:
        try:
            async with self.engine.begin() as conn:
                yield conn
        except SQLAlchemyError as e:
            raise StoreError(f"Database operation failed: {e}") from e

    async def create_tables(self) -> None:
        async with self._begin() as conn:
            await conn.run_sync(metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

    async def upsert(self, entity: BaseModel) -> None:
        """
        Inserts or replaces an entity keyed by its primary key.

        An Issue is a compound write: the issue row, its author, then each
        label followed by its association row.
        """
        async with self._begin() as conn:
            await self._upsert_row(conn, entity)
            if isinstance(entity, Issue):
                if entity.user is not None:
                    await self._upsert_row(conn, entity.user)
                for label, link in zip(entity.labels, entity.label_links):
                    await self._upsert_row(conn, label)
                    await self._upsert_row(conn, link)

    async def _upsert_row(self, conn: AsyncConnection, entity: BaseModel) -> None:
        table = TABLES_BY_ENTITY[type(entity)]
        await conn.execute(build_upsert(table, to_row(entity), self.dialect_name))

    async def delete(self, entity: BaseModel) -> None:
        """
        Deletes an entity by primary key.

        Removing a Repository also removes its issues; removing an Issue also
        removes its label associations. Users and labels are never cascaded.
        """
        table = TABLES_BY_ENTITY[type(entity)]
        async with self._begin() as conn:
            await conn.execute(delete(table).where(*_key_clause(table, entity)))
            if isinstance(entity, Repository):
                result = await conn.execute(
                    delete(issues_table).where(issues_table.c.repository_full_name == entity.full_name)
                )
                logger.info(f"Removed {entity.full_name} and {result.rowcount} of its issues.")
            elif isinstance(entity, Issue):
                await conn.execute(delete(issue_labels_table).where(issue_labels_table.c.issue_id == entity.id))

    async def _fetch(self, entity_type: type, stmt) -> List[BaseModel]:
        async with self._begin() as conn:
            result = await conn.execute(stmt)
            mapper = RowMapper(entity_type, result.keys())
            return mapper.decode_all(result.all())

    async def list_repositories(self) -> List[Repository]:
        return await self._fetch(Repository, queries.build_repositories_query())

    async def get_user(self, user_id: int) -> User:
        users = await self._fetch(User, select(users_table).where(users_table.c.id == user_id))
        if not users:
            raise NotFoundError(f"User {user_id} not found.")
        return users[0]

    async def labels_for_issue(self, issue_id: int) -> List[Label]:
        return await self._fetch(Label, queries.build_issue_labels_query(issue_id))

    async def label_ids_by_name(self, label_name: str) -> List[int]:
        async with self._begin() as conn:
            result = await conn.execute(queries.build_label_ids_query(label_name))
            return [row[0] for row in result.all()]

    async def issue_ids_for_labels(self, label_ids: Collection[int]) -> Set[int]:
        async with self._begin() as conn:
            result = await conn.execute(queries.build_issue_ids_query(label_ids))
            return {row[0] for row in result.all()}

    async def query_issues(self, issue_filter: IssueFilter, now: Optional[datetime] = None) -> List[Issue]:
        """
        Runs a filtered, paginated issue listing.

        `now` anchors the `today` shortcut; it defaults to the current time.
        Raises NotFoundError when a label-name filter matches no stored label.
        """
        issue_ids = None
        if issue_filter.label_name is not None:
            label_ids = await self.label_ids_by_name(issue_filter.label_name)
            if not label_ids:
                raise NotFoundError(f"Label '{issue_filter.label_name}' not found.")
            issue_ids = await self.issue_ids_for_labels(label_ids)

        return await self._fetch(Issue, queries.build_issue_query(issue_filter, issue_ids, now))
