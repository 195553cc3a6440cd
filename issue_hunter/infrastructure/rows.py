"""
Schema-driven mapping between stored rows and domain entities.

Every entity declares an ordered tuple of (column, decoder) pairs. A
RowMapper binds those columns against the column names of one result set,
so rows are decoded by name and never by position.
"""
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Type

from pydantic import BaseModel, ValidationError

from issue_hunter.domain.exceptions import MappingError
from issue_hunter.domain.models import Issue, IssueLabelLink, Label, Repository, User, ensure_utc

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

Decoder = Callable[[Any], Any]


def format_timestamp(value: datetime) -> str:
    return ensure_utc(value).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def _integer(value: Any) -> int:
    # bool is an int subclass, but never a valid id
    if isinstance(value, bool) or not isinstance(value, int):
        raise MappingError(f"Expected integer, got {type(value).__name__}.")
    return value


def _text(value: Any) -> str:
    if not isinstance(value, str):
        raise MappingError(f"Expected text, got {type(value).__name__}.")
    return value


def _optional_text(value: Any) -> Optional[str]:
    return None if value is None else _text(value)


def _timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return ensure_utc(value).replace(microsecond=0)
    try:
        return parse_timestamp(_text(value))
    except ValueError as e:
        raise MappingError(f"Invalid timestamp {value!r}: {e}") from e


REPOSITORY_COLUMNS: Tuple[Tuple[str, Decoder], ...] = (
    ("owner", _text),
    ("name", _text),
)
USER_COLUMNS: Tuple[Tuple[str, Decoder], ...] = (
    ("id", _integer),
    ("login", _text),
)
LABEL_COLUMNS: Tuple[Tuple[str, Decoder], ...] = (
    ("id", _integer),
    ("name", _text),
    ("description", _optional_text),
)
ISSUE_COLUMNS: Tuple[Tuple[str, Decoder], ...] = (
    ("id", _integer),
    ("number", _integer),
    ("title", _text),
    ("state", _text),
    ("repository_full_name", _text),
    ("author_id", _integer),
    ("created_at", _timestamp),
)
ISSUE_LABEL_COLUMNS: Tuple[Tuple[str, Decoder], ...] = (
    ("issue_id", _integer),
    ("label_id", _integer),
)

COLUMNS_BY_ENTITY: Dict[Type[BaseModel], Tuple[Tuple[str, Decoder], ...]] = {
    Repository: REPOSITORY_COLUMNS,
    User: USER_COLUMNS,
    Label: LABEL_COLUMNS,
    Issue: ISSUE_COLUMNS,
    IssueLabelLink: ISSUE_LABEL_COLUMNS,
}


class RowMapper:
    """Decodes rows of a single result set into one entity type."""

    def __init__(self, entity_type: Type[BaseModel], keys: Iterable[str]):
        self.entity_type = entity_type
        self.columns = COLUMNS_BY_ENTITY[entity_type]
        index = {key: position for position, key in enumerate(keys)}

        missing = [column for column, _ in self.columns if column not in index]
        if missing:
            raise MappingError(
                f"Result set is missing column(s) {', '.join(missing)} for {entity_type.__name__}."
            )
        self._plan = [(column, index[column], decode) for column, decode in self.columns]

    def decode(self, row: Sequence[Any]) -> BaseModel:
        values = {}
        for column, position, decode in self._plan:
            try:
                values[column] = decode(row[position])
            except MappingError as e:
                raise MappingError(f"{self.entity_type.__name__}.{column}: {e}") from e
        try:
            return self.entity_type(**values)
        except ValidationError as e:
            raise MappingError(f"Cannot build {self.entity_type.__name__}: {e}") from e

    def decode_all(self, rows: Iterable[Sequence[Any]]) -> List[BaseModel]:
        return [self.decode(row) for row in rows]


def to_row(entity: BaseModel) -> Dict[str, Any]:
    """Flattens an entity into the column/value mapping stored in its table."""
    row = {}
    for column, _ in COLUMNS_BY_ENTITY[type(entity)]:
        value = getattr(entity, column)
        row[column] = format_timestamp(value) if isinstance(value, datetime) else value
    return row
