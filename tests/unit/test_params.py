"""Unit tests for placeholder normalization."""

from __future__ import annotations

import pytest

from row_persist.core.params import coerce_params, normalize_params


class TestNormalizeParams:
    def test_named_style_is_passthrough(self) -> None:
        sql = 'SELECT * FROM "users" WHERE "id" = ? AND name = :name'
        assert normalize_params(sql, "named") == sql

    def test_positional_to_pyformat(self) -> None:
        sql = 'INSERT INTO "users" ("username", "email") VALUES (?, ?)'
        expected = 'INSERT INTO "users" ("username", "email") VALUES (%s, %s)'
        assert normalize_params(sql, "pyformat") == expected

    def test_named_to_pyformat(self) -> None:
        sql = "SELECT * FROM users WHERE id = :id AND name = :name"
        expected = "SELECT * FROM users WHERE id = %(id)s AND name = %(name)s"
        assert normalize_params(sql, "pyformat") == expected

    def test_repeated_name(self) -> None:
        sql = "SELECT * FROM t WHERE a = :val OR b = :val"
        expected = "SELECT * FROM t WHERE a = %(val)s OR b = %(val)s"
        assert normalize_params(sql, "pyformat") == expected

    def test_typecast_untouched(self) -> None:
        sql = "SELECT created_at::date FROM users WHERE id = ?"
        expected = "SELECT created_at::date FROM users WHERE id = %s"
        assert normalize_params(sql, "pyformat") == expected

    def test_literal_markers_untouched(self) -> None:
        sql = "SELECT * FROM t WHERE col = ':not_a_param?' AND id = ?"
        expected = "SELECT * FROM t WHERE col = ':not_a_param?' AND id = %s"
        assert normalize_params(sql, "pyformat") == expected

    def test_percent_escaped(self) -> None:
        sql = "SELECT * FROM users WHERE username LIKE 'a%' AND id % 2 = ?"
        expected = "SELECT * FROM users WHERE username LIKE 'a%%' AND id %% 2 = %s"
        assert normalize_params(sql, "pyformat") == expected

    def test_upsert_statement(self) -> None:
        sql = (
            'INSERT INTO "students" ("gpa", "id") VALUES (?, ?) '
            'ON CONFLICT ("id") DO UPDATE SET "gpa" = excluded."gpa"'
        )
        assert normalize_params(sql, "pyformat") == (
            'INSERT INTO "students" ("gpa", "id") VALUES (%s, %s) '
            'ON CONFLICT ("id") DO UPDATE SET "gpa" = excluded."gpa"'
        )

    def test_no_params(self) -> None:
        assert normalize_params("SELECT 1", "pyformat") == "SELECT 1"


class TestCoerceParams:
    def test_none(self) -> None:
        assert coerce_params(None) is None

    def test_dict_unchanged(self) -> None:
        params = {"id": 1}
        assert coerce_params(params) is params

    @pytest.mark.parametrize("params", [[1, "a"], (1, "a")])
    def test_sequence_to_tuple(self, params) -> None:
        assert coerce_params(params) == (1, "a")

    def test_scalar_wrapped(self) -> None:
        assert coerce_params(5) == (5,)
