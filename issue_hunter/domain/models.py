from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


def ensure_utc(value: datetime) -> datetime:
    """Interprets naive datetimes as UTC and converts aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_utc_day(now: Optional[datetime] = None) -> datetime:
    now = ensure_utc(now) if now else datetime.now(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


class Repository(BaseModel):
    """A registered sync target, identified by (owner, name)."""
    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., min_length=1, description="Login of the repository owner")
    name: str = Field(..., min_length=1, description="Name of the repository")

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def url(self) -> str:
        return f"https://github.com/{self.full_name}"


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="GitHub numeric user id")
    login: str


class Label(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="GitHub numeric label id")
    name: str
    description: Optional[str] = None


class IssueLabelLink(BaseModel):
    model_config = ConfigDict(frozen=True)

    issue_id: int
    label_id: int


class Issue(BaseModel):
    """
    Immutable domain model representing a GitHub issue.

    `user` and `labels` are populated when the issue comes from the API or
    has been enriched by the query service; rows read straight from the
    store only carry `author_id`.
    """
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="GitHub numeric issue id")
    number: int = Field(..., description="Issue number within its repository")
    title: str
    state: str = Field(..., description="open, closed or whatever GitHub reports")
    repository_full_name: str = Field(default="", description="owner/name of the owning repository")
    author_id: int
    created_at: datetime
    user: Optional[User] = None
    labels: List[Label] = Field(default_factory=list)

    @field_validator("created_at")
    @classmethod
    def _normalize_created_at(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def label_links(self) -> List[IssueLabelLink]:
        return [IssueLabelLink(issue_id=self.id, label_id=label.id) for label in self.labels]


class IssueFilter(BaseModel):
    """Filters and paging for a local issue listing. All filters are AND-combined."""
    model_config = ConfigDict(frozen=True)

    repo_name: Optional[str] = Field(default=None, description="LIKE pattern on owner/name")
    created_after: Optional[datetime] = None
    today: bool = Field(default=False, description="Shortcut for created_after = start of the UTC day")
    label_name: Optional[str] = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def effective_created_after(self, now: Optional[datetime] = None) -> Optional[datetime]:
        if self.today:
            return start_of_utc_day(now)
        if self.created_after is not None:
            return ensure_utc(self.created_after)
        return None
