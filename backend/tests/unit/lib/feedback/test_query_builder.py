"""Unit tests for the feedback query builder."""

import itertools
import json
import re

import pytest

from src.lib.feedback.query_builder import (
    BuiltQuery,
    FeedbackFilters,
    FeedbackInsert,
    FeedbackUpdate,
    QueryBuilder,
    build_columns_query,
    build_delete_query,
    build_exists_query,
    build_get_query,
    build_insert_query,
    build_list_query,
    build_status_check_query,
    build_update_query,
    schema_statements,
)


def placeholders(sql):
    """Placeholder names in order of appearance."""
    return re.findall(r"(?<!:):(p\d+)\b", sql)


def assert_consistent(built: BuiltQuery):
    """Placeholders are :p1..:pn with n == len(params), each used once."""
    names = placeholders(built.sql)
    assert names == [f"p{i}" for i in range(1, len(built.params) + 1)]
    assert built.placeholder_count == len(names)


class TestQueryBuilder:
    """Tests for the fragment/param accumulator."""

    def test_add_param_numbers_sequentially(self):
        builder = QueryBuilder()
        assert builder.add_param("a") == ":p1"
        assert builder.add_param("b") == ":p2"
        assert builder.params == ("a", "b")

    def test_append_param_keeps_fragment_and_value_together(self):
        built = QueryBuilder("SELECT 1").append_param(" WHERE x = ", 5).build()
        assert built.sql == "SELECT 1 WHERE x = :p1"
        assert built.params == (5,)

    def test_bind_params_maps_names_to_values(self):
        built = BuiltQuery(sql="x", params=("a", 2))
        assert built.bind_params() == {"p1": "a", "p2": 2}

    def test_statement_is_sqlalchemy_text(self):
        built = build_get_query("BUG-1")
        assert str(built.statement()) == built.sql


class TestBuildListQuery:
    """Tests for the filtered listing statement."""

    def test_no_filters(self):
        built = build_list_query(FeedbackFilters())
        assert " WHERE " not in built.sql
        assert built.sql.endswith("ORDER BY created_at DESC LIMIT :p1 OFFSET :p2")
        assert built.params == (50, 0)
        assert_consistent(built)

    def test_all_filters_in_order(self):
        built = build_list_query(
            FeedbackFilters(app="demo", type="bug", status="new", title="crash", limit=10, offset=20)
        )
        assert (
            " WHERE app = :p1 AND type = :p2 AND status = :p3 AND title ILIKE :p4 "
            "ORDER BY created_at DESC LIMIT :p5 OFFSET :p6"
        ) in built.sql
        assert built.params == ("demo", "bug", "new", "%crash%", 10, 20)
        assert_consistent(built)

    def test_single_later_filter_starts_with_where(self):
        built = build_list_query(FeedbackFilters(status="resolved"))
        assert " WHERE status = :p1 ORDER BY" in built.sql
        assert " AND " not in built.sql
        assert built.params == ("resolved", 50, 0)

    def test_empty_strings_are_ignored(self):
        built = build_list_query(FeedbackFilters(app="", type="", title=""))
        assert " WHERE " not in built.sql
        assert built.params == (50, 0)

    def test_skipped_filter_leaves_no_gap(self):
        built = build_list_query(FeedbackFilters(app="demo", title="login"))
        assert " WHERE app = :p1 AND title ILIKE :p2 " in built.sql
        assert_consistent(built)

    def test_filter_values_never_appear_in_sql(self):
        hostile = "x'; DROP TABLE feedback; --"
        built = build_list_query(FeedbackFilters(app=hostile, title=hostile))
        assert hostile not in built.sql
        assert hostile in built.params

    @pytest.mark.parametrize("app,type_,status,title", list(itertools.product([None, "x"], repeat=4)))
    def test_placeholders_match_params_for_every_filter_combination(self, app, type_, status, title):
        built = build_list_query(FeedbackFilters(app=app, type=type_, status=status, title=title))

        provided = sum(value is not None for value in (app, type_, status, title))
        assert built.placeholder_count == provided + 2
        assert_consistent(built)
        assert built.params[-2:] == (50, 0)
        assert built.sql.count(" WHERE ") == (1 if provided else 0)
        assert built.sql.count(" AND ") == max(provided - 1, 0)


class TestSingleRecordQueries:
    def test_get_query(self):
        built = build_get_query("BUG-ABCD1234")
        assert built.sql.startswith("SELECT id, app, type, title, status, data, notes, created_at, modified_at")
        assert built.sql.endswith("WHERE id = :p1")
        assert built.params == ("BUG-ABCD1234",)

    def test_exists_query(self):
        built = build_exists_query("X")
        assert built.sql == "SELECT id FROM feedback WHERE id = :p1"
        assert built.params == ("X",)

    def test_delete_query(self):
        built = build_delete_query("X")
        assert built.sql == "DELETE FROM feedback WHERE id = :p1"

    def test_status_check_binds_status(self):
        built = build_status_check_query("inReview")
        assert "'feedback_status'::regtype" in built.sql
        assert "enumlabel = :p1" in built.sql
        assert built.params == ("inReview",)
        assert_consistent(built)


class TestBuildInsertQuery:
    def test_insert_serializes_json_columns(self):
        record = FeedbackInsert(
            id="BUG-1", app="demo", type="bug", title="t", data={"a": 1}
        )
        built = build_insert_query(record)
        assert built.sql.startswith("INSERT INTO feedback (id, app, type, title, status, data, notes)")
        assert built.sql.endswith("RETURNING id, created_at")
        assert built.params == ("BUG-1", "demo", "bug", "t", "pending", '{"a": 1}', "[]")
        assert_consistent(built)


class TestBuildUpdateQuery:
    def test_only_modified_at_when_nothing_supplied(self):
        built = build_update_query("BUG-1", FeedbackUpdate())
        assert built.sql == (
            "UPDATE feedback SET modified_at = CURRENT_TIMESTAMP WHERE id = :p1 "
            "RETURNING id, title, modified_at, status"
        )
        assert built.params == ("BUG-1",)

    def test_field_order_and_id_last(self):
        update = FeedbackUpdate(
            type="suggestion", title="New", status="closed", data={"k": "v"}, notes=["n"]
        )
        built = build_update_query("BUG-1", update)
        assert (
            "SET modified_at = CURRENT_TIMESTAMP, status = :p1, type = :p2, title = :p3, "
            "data = :p4, notes = :p5 WHERE id = :p6"
        ) in built.sql
        assert built.params == ("closed", "suggestion", "New", '{"k": "v"}', '["n"]', "BUG-1")
        assert_consistent(built)

    def test_empty_title_is_skipped(self):
        built = build_update_query("BUG-1", FeedbackUpdate(title="", status="new"))
        assert "title =" not in built.sql
        assert built.params == ("new", "BUG-1")

    def test_empty_notes_list_is_written(self):
        built = build_update_query("BUG-1", FeedbackUpdate(notes=[]))
        assert "notes = :p1" in built.sql
        assert json.loads(built.params[0]) == []


class TestSchemaStatements:
    def test_statements_are_idempotent_ddl(self):
        statements = schema_statements()
        sql = [s.sql for s in statements]

        assert "CREATE TYPE feedback_status AS ENUM" in sql[0]
        assert "IF NOT EXISTS" in sql[0]
        assert "CREATE TABLE IF NOT EXISTS feedback" in sql[1]
        assert "ADD COLUMN IF NOT EXISTS title" in sql[2]
        assert "Untitled Request" in sql[3]
        assert "SET NOT NULL" in sql[4]
        assert all("CREATE INDEX IF NOT EXISTS" in s for s in sql[5:])
        assert len(sql[5:]) == 4
        assert all(s.params == () for s in statements)

    def test_enum_contains_every_status(self):
        enum_sql = schema_statements()[0].sql
        for label in ("pending", "inReview", "wontFix", "ok"):
            assert f"'{label}'" in enum_sql

    def test_columns_query(self):
        built = build_columns_query()
        assert "information_schema.columns" in built.sql
        assert built.params == ("feedback",)
