"""Parameterized SQL for the ``feedback`` table.

Every statement is produced by a ``QueryBuilder``, which appends a SQL
fragment and its bound value in the same call. Placeholders are named
``:p1, :p2, ...`` in the order values were added, so the placeholder count
always equals ``len(params)`` and numbering has no gaps.

Usage:
    built = build_list_query(FeedbackFilters(app="demo", limit=10))
    rows = db.execute(built.statement(), built.bind_params())
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import text
from sqlalchemy.sql.elements import TextClause

from src.lib.feedback.status import DEFAULT_STATUS, FeedbackStatus

FEEDBACK_TABLE = "feedback"
STATUS_ENUM_TYPE = "feedback_status"

FEEDBACK_COLUMNS = (
    "id",
    "app",
    "type",
    "title",
    "status",
    "data",
    "notes",
    "created_at",
    "modified_at",
)

DEFAULT_LIMIT = 50
DEFAULT_OFFSET = 0
DEFAULT_TITLE = "Untitled Request"


@dataclass(frozen=True)
class BuiltQuery:
    """SQL text plus its ordered bound values."""

    sql: str
    params: Tuple[Any, ...] = ()

    @property
    def placeholder_count(self) -> int:
        return len(self.params)

    def bind_params(self) -> Dict[str, Any]:
        """Map placeholder names to values for SQLAlchemy ``execute``."""
        return {
            f"{QueryBuilder.PLACEHOLDER_PREFIX}{index}": value
            for index, value in enumerate(self.params, start=1)
        }

    def statement(self) -> TextClause:
        return text(self.sql)


class QueryBuilder:
    """Accumulates SQL fragments and bound values in lockstep."""

    PLACEHOLDER_PREFIX = "p"

    def __init__(self, sql: str = ""):
        self._fragments: List[str] = [sql] if sql else []
        self._params: List[Any] = []

    def add_param(self, value: Any) -> str:
        """Register ``value`` and return its placeholder."""
        self._params.append(value)
        return f":{self.PLACEHOLDER_PREFIX}{len(self._params)}"

    def append(self, fragment: str) -> "QueryBuilder":
        self._fragments.append(fragment)
        return self

    def append_param(self, fragment: str, value: Any) -> "QueryBuilder":
        """Append ``fragment`` immediately followed by the placeholder for ``value``."""
        self._fragments.append(f"{fragment}{self.add_param(value)}")
        return self

    @property
    def params(self) -> Tuple[Any, ...]:
        return tuple(self._params)

    def build(self) -> BuiltQuery:
        return BuiltQuery(sql="".join(self._fragments), params=self.params)


@dataclass
class FeedbackFilters:
    """Optional listing criteria; empty values are ignored."""

    app: Optional[str] = None
    type: Optional[str] = None
    status: Optional[str] = None
    title: Optional[str] = None
    limit: int = DEFAULT_LIMIT
    offset: int = DEFAULT_OFFSET


@dataclass
class FeedbackInsert:
    """Column values for a new feedback record."""

    id: str
    app: str
    type: str
    title: str
    data: Dict[str, Any]
    status: str = DEFAULT_STATUS
    notes: List[Any] = field(default_factory=list)


@dataclass
class FeedbackUpdate:
    """Partial update; ``None`` (or an empty string) leaves a column untouched."""

    type: Optional[str] = None
    title: Optional[str] = None
    status: Optional[str] = None
    data: Optional[Any] = None
    notes: Optional[List[Any]] = None


def _select_all() -> str:
    return f"SELECT {', '.join(FEEDBACK_COLUMNS)} FROM {FEEDBACK_TABLE}"


def build_list_query(filters: FeedbackFilters) -> BuiltQuery:
    """Filtered, newest-first listing with LIMIT/OFFSET as the last two params."""
    builder = QueryBuilder(_select_all())

    predicates = [
        ("app = ", filters.app),
        ("type = ", filters.type),
        ("status = ", filters.status),
        ("title ILIKE ", f"%{filters.title}%" if filters.title else None),
    ]

    joiner = " WHERE "
    for fragment, value in predicates:
        if not value:
            continue
        builder.append(joiner).append_param(fragment, value)
        joiner = " AND "

    builder.append_param(" ORDER BY created_at DESC LIMIT ", filters.limit)
    builder.append_param(" OFFSET ", filters.offset)
    return builder.build()


def build_get_query(feedback_id: str) -> BuiltQuery:
    return QueryBuilder(_select_all()).append_param(" WHERE id = ", feedback_id).build()


def build_exists_query(feedback_id: str) -> BuiltQuery:
    return QueryBuilder(f"SELECT id FROM {FEEDBACK_TABLE}").append_param(" WHERE id = ", feedback_id).build()


def build_delete_query(feedback_id: str) -> BuiltQuery:
    return QueryBuilder(f"DELETE FROM {FEEDBACK_TABLE}").append_param(" WHERE id = ", feedback_id).build()


def build_status_check_query(status: str) -> BuiltQuery:
    """Check ``status`` against the live ``feedback_status`` enum labels."""
    return (
        QueryBuilder(
            "SELECT EXISTS (SELECT 1 FROM pg_enum "
            f"WHERE enumtypid = '{STATUS_ENUM_TYPE}'::regtype AND enumlabel = "
        )
        .append_param("", status)
        .append(")")
        .build()
    )


def build_insert_query(record: FeedbackInsert) -> BuiltQuery:
    builder = QueryBuilder(
        f"INSERT INTO {FEEDBACK_TABLE} (id, app, type, title, status, data, notes) VALUES ("
    )
    values = [
        record.id,
        record.app,
        record.type,
        record.title,
        record.status,
        json.dumps(record.data),
        json.dumps(record.notes if record.notes is not None else []),
    ]
    for index, value in enumerate(values):
        builder.append_param("" if index == 0 else ", ", value)
    builder.append(") RETURNING id, created_at")
    return builder.build()


def build_update_query(feedback_id: str, update: FeedbackUpdate) -> BuiltQuery:
    """UPDATE with a SET entry per provided field; the id is always the last param."""
    builder = QueryBuilder(f"UPDATE {FEEDBACK_TABLE} SET modified_at = CURRENT_TIMESTAMP")

    if update.status:
        builder.append_param(", status = ", update.status)
    if update.type:
        builder.append_param(", type = ", update.type)
    if update.title:
        builder.append_param(", title = ", update.title)
    if update.data is not None:
        builder.append_param(", data = ", json.dumps(update.data))
    if update.notes is not None:
        builder.append_param(", notes = ", json.dumps(update.notes))

    builder.append_param(" WHERE id = ", feedback_id)
    builder.append(" RETURNING id, title, modified_at, status")
    return builder.build()


def _enum_labels_sql() -> str:
    return ", ".join(f"'{status.value}'" for status in FeedbackStatus)


def schema_statements() -> List[BuiltQuery]:
    """Idempotent DDL that creates or upgrades the feedback schema, in order."""
    create_enum = f"""
        DO $$
        BEGIN
            IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = '{STATUS_ENUM_TYPE}') THEN
                CREATE TYPE {STATUS_ENUM_TYPE} AS ENUM ({_enum_labels_sql()});
            END IF;
        END
        $$;
    """

    create_table = f"""
        CREATE TABLE IF NOT EXISTS {FEEDBACK_TABLE} (
            id VARCHAR(50) PRIMARY KEY,
            app VARCHAR(25) NOT NULL,
            type VARCHAR(25) NOT NULL,
            title VARCHAR(255),
            status {STATUS_ENUM_TYPE} NOT NULL DEFAULT '{DEFAULT_STATUS}',
            data JSONB NOT NULL,
            notes JSONB DEFAULT '[]'::JSONB,
            created_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP,
            modified_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP
        )
    """

    # Tables created before the title column existed get it added and
    # backfilled from the stored submission payload.
    add_title = f"ALTER TABLE {FEEDBACK_TABLE} ADD COLUMN IF NOT EXISTS title VARCHAR(255)"
    backfill_title = (
        f"UPDATE {FEEDBACK_TABLE} SET title = COALESCE((data->>'title')::VARCHAR(255), '{DEFAULT_TITLE}') "
        "WHERE title IS NULL"
    )
    title_not_null = f"ALTER TABLE {FEEDBACK_TABLE} ALTER COLUMN title SET NOT NULL"

    indexes = [
        f"CREATE INDEX IF NOT EXISTS idx_{FEEDBACK_TABLE}_{column} ON {FEEDBACK_TABLE}({column})"
        for column in ("app", "type", "status", "title")
    ]

    return [
        BuiltQuery(sql=sql)
        for sql in [create_enum, create_table, add_title, backfill_title, title_not_null, *indexes]
    ]


def build_columns_query() -> BuiltQuery:
    return QueryBuilder(
        "SELECT column_name, data_type FROM information_schema.columns WHERE table_name = "
    ).append_param("", FEEDBACK_TABLE).append(" ORDER BY ordinal_position").build()
