import unittest
from datetime import datetime, timedelta, timezone

from pydantic import ValidationError

from issue_hunter.domain.models import IssueFilter, Repository, start_of_utc_day
from factories import BUG, DOCS, make_issue


class TestRepository(unittest.TestCase):
    def test_full_name_and_url(self) -> None:
        repo = Repository(owner="octo", name="demo")

        self.assertEqual(repo.full_name, "octo/demo")
        self.assertEqual(repo.url, "https://github.com/octo/demo")

    def test_empty_owner_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            Repository(owner="", name="demo")


class TestIssue(unittest.TestCase):
    def test_naive_created_at_is_treated_as_utc(self) -> None:
        issue = make_issue(1, created_at=datetime(2024, 1, 1, 8, 0, 0))

        self.assertEqual(issue.created_at.tzinfo, timezone.utc)
        self.assertEqual(issue.created_at.hour, 8)

    def test_offset_created_at_is_converted_to_utc(self) -> None:
        plus_two = timezone(timedelta(hours=2))
        issue = make_issue(1, created_at=datetime(2024, 1, 1, 8, 0, 0, tzinfo=plus_two))

        self.assertEqual(issue.created_at, datetime(2024, 1, 1, 6, 0, 0, tzinfo=timezone.utc))

    def test_label_links(self) -> None:
        issue = make_issue(5, labels=[BUG, DOCS])

        self.assertEqual([(link.issue_id, link.label_id) for link in issue.label_links], [(5, 10), (5, 11)])


class TestIssueFilter(unittest.TestCase):
    def test_offset_is_one_indexed(self) -> None:
        self.assertEqual(IssueFilter().offset, 0)
        self.assertEqual(IssueFilter(page=3, page_size=20).offset, 40)

    def test_page_must_be_positive(self) -> None:
        with self.assertRaises(ValidationError):
            IssueFilter(page=0)
        with self.assertRaises(ValidationError):
            IssueFilter(page_size=0)

    def test_today_overrides_created_after(self) -> None:
        now = datetime(2024, 6, 1, 15, 30, tzinfo=timezone.utc)
        issue_filter = IssueFilter(created_after=datetime(2020, 1, 1, tzinfo=timezone.utc), today=True)

        self.assertEqual(
            issue_filter.effective_created_after(now),
            datetime(2024, 6, 1, tzinfo=timezone.utc),
        )

    def test_no_date_filter(self) -> None:
        self.assertIsNone(IssueFilter().effective_created_after())

    def test_start_of_utc_day(self) -> None:
        now = datetime(2024, 6, 1, 23, 59, 59, 999, tzinfo=timezone.utc)

        self.assertEqual(start_of_utc_day(now), datetime(2024, 6, 1, tzinfo=timezone.utc))
