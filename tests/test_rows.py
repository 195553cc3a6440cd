import unittest
from datetime import datetime, timezone

from issue_hunter.domain.exceptions import MappingError
from issue_hunter.domain.models import Issue, Label, Repository, User
from issue_hunter.infrastructure.rows import RowMapper, format_timestamp, parse_timestamp, to_row
from factories import BUG, DOCS, make_issue


class TestTimestamps(unittest.TestCase):
    def test_format_is_second_resolution_utc(self) -> None:
        value = datetime(2024, 1, 2, 3, 4, 5, 678901, tzinfo=timezone.utc)

        self.assertEqual(format_timestamp(value), "2024-01-02 03:04:05")

    def test_parse_returns_aware_utc(self) -> None:
        self.assertEqual(
            parse_timestamp("2024-01-02 03:04:05"),
            datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        )


class TestRowMapper(unittest.TestCase):
    def test_issue_round_trip(self) -> None:
        issue = make_issue(
            42,
            created_at=datetime(2024, 1, 2, 3, 4, 5, 999, tzinfo=timezone.utc),
            labels=[BUG, DOCS],
        )
        row = to_row(issue)

        decoded = RowMapper(Issue, row.keys()).decode(list(row.values()))

        expected = issue.model_copy(update={
            "user": None,
            "labels": [],
            "created_at": datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        })
        self.assertEqual(decoded, expected)

    def test_columns_are_matched_by_name_not_position(self) -> None:
        mapper = RowMapper(User, ["login", "id"])

        self.assertEqual(mapper.decode(("octocat", 1)), User(id=1, login="octocat"))

    def test_extra_columns_are_ignored(self) -> None:
        mapper = RowMapper(Repository, ["name", "owner", "extra"])

        self.assertEqual(mapper.decode(("demo", "octo", 99)), Repository(owner="octo", name="demo"))

    def test_null_description(self) -> None:
        mapper = RowMapper(Label, ["id", "name", "description"])

        self.assertIsNone(mapper.decode((3, "docs", None)).description)

    def test_missing_column_raises(self) -> None:
        with self.assertRaises(MappingError):
            RowMapper(User, ["id"])

    def test_incompatible_type_raises(self) -> None:
        mapper = RowMapper(User, ["id", "login"])

        with self.assertRaises(MappingError):
            mapper.decode(("1", "octocat"))
        with self.assertRaises(MappingError):
            mapper.decode((True, "octocat"))
        with self.assertRaises(MappingError):
            mapper.decode((1, None))

    def test_malformed_timestamp_raises(self) -> None:
        row = to_row(make_issue(1))
        row["created_at"] = "yesterday"

        with self.assertRaises(MappingError):
            RowMapper(Issue, row.keys()).decode(list(row.values()))

    def test_to_row_flattens_issue(self) -> None:
        row = to_row(make_issue(9, repo="octo/demo"))

        self.assertEqual(
            list(row),
            ["id", "number", "title", "state", "repository_full_name", "author_id", "created_at"],
        )
        self.assertEqual(row["author_id"], 1)
        self.assertEqual(row["created_at"], "2024-05-10 12:00:00")
