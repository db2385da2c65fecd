"""Unit tests for the executor seam and placeholder conversion."""

from __future__ import annotations

import logging

import pytest

from pgfluent import PgFluent, sql
from pgfluent.compile.base import CompiledQuery
from pgfluent.errors import CompilationError, ExecutorNotConfiguredError, InvalidOperandError
from pgfluent.execution import Executor, PsycopgExecutor, to_format_params


class RecordingExecutor:
    """Executor double that records every query it receives."""

    def __init__(self, result=None, error: Exception | None = None) -> None:
        self.calls: list[CompiledQuery] = []
        self._result = result if result is not None else []
        self._error = error

    def execute(self, query: CompiledQuery):
        self.calls.append(query)
        if self._error is not None:
            raise self._error
        return self._result


# ---------------------------------------------------------------------------
# builder.execute()
# ---------------------------------------------------------------------------


class TestExecute:
    def test_uses_configured_executor(self):
        executor = RecordingExecutor(result=[{"id": 1}])
        db = PgFluent(executor=executor)
        rows = db.select_from("users").where("id", "=", 1).execute()
        assert rows == [{"id": 1}]
        assert executor.calls == [CompiledQuery(sql="SELECT * FROM users WHERE id = $1", parameters=[1])]

    def test_argument_overrides_configured_executor(self):
        configured = RecordingExecutor()
        override = RecordingExecutor(result=["override"])
        db = PgFluent(executor=configured)
        assert db.insert_into("users").values({"name": "A"}).execute(override) == ["override"]
        assert configured.calls == []
        assert len(override.calls) == 1

    def test_missing_executor(self):
        with pytest.raises(ExecutorNotConfiguredError):
            PgFluent().select_from("users").execute()

    def test_executor_errors_propagate_unchanged(self):
        boom = RuntimeError("connection lost")
        db = PgFluent(executor=RecordingExecutor(error=boom))
        with pytest.raises(RuntimeError) as exc_info:
            db.select_from("users").execute()
        assert exc_info.value is boom

    def test_compile_errors_raised_before_execution(self):
        executor = RecordingExecutor()
        db = PgFluent(executor=executor)
        with pytest.raises(InvalidOperandError):
            db.insert_into("users").execute()
        assert executor.calls == []

    def test_recording_executor_satisfies_protocol(self):
        assert isinstance(RecordingExecutor(), Executor)

    def test_execution_is_logged(self, caplog):
        db = PgFluent(executor=RecordingExecutor())
        with caplog.at_level(logging.DEBUG, logger="pgfluent"):
            db.select_from("users").execute()
        assert any("SELECT * FROM users" in r.getMessage() for r in caplog.records)


# ---------------------------------------------------------------------------
# Placeholder conversion
# ---------------------------------------------------------------------------


class TestToFormatParams:
    def test_simple(self):
        query = CompiledQuery(sql="SELECT * FROM users WHERE id = $1 AND name = $2", parameters=[1, "A"])
        assert to_format_params(query) == ("SELECT * FROM users WHERE id = %s AND name = %s", [1, "A"])

    def test_percent_is_escaped(self):
        query = CompiledQuery(sql="SELECT * FROM t WHERE note LIKE '%x' AND id = $1", parameters=[3])
        assert to_format_params(query) == ("SELECT * FROM t WHERE note LIKE '%%x' AND id = %s", [3])

    def test_repeated_placeholder_binds_twice(self):
        query = CompiledQuery(sql="SELECT * FROM t WHERE a = $1 OR b = $1", parameters=[7])
        assert to_format_params(query) == ("SELECT * FROM t WHERE a = %s OR b = %s", [7, 7])

    def test_two_digit_placeholders(self):
        params = list(range(1, 12))
        query = CompiledQuery(sql=", ".join(f"${i}" for i in params), parameters=params)
        text, bound = to_format_params(query)
        assert text == ", ".join(["%s"] * 11)
        assert bound == params

    def test_placeholder_without_parameter(self):
        with pytest.raises(CompilationError):
            to_format_params(CompiledQuery(sql="SELECT $2", parameters=[1]))

    def test_from_builder(self):
        compiled = PgFluent().select_from("users").where("name", "like", "A%").to_sql()
        assert to_format_params(compiled) == ("SELECT * FROM users WHERE name LIKE %s", ["A%"])

    def test_dollar_in_jsonb_key_is_not_a_placeholder(self):
        compiled = (
            PgFluent().select_from("users").where(lambda eb: eb.jsonb("metadata").field("price$1").equals("x")).to_sql()
        )
        assert compiled.sql == "SELECT * FROM users WHERE metadata ->> 'price$1' = $1"
        assert to_format_params(compiled) == ("SELECT * FROM users WHERE metadata ->> 'price$1' = %s", ["x"])

    def test_dollar_in_raw_literal_is_not_a_placeholder(self):
        compiled = PgFluent().select_from("users").where(sql("note = '$5' AND n = $1", 2)).to_sql()
        assert to_format_params(compiled) == ("SELECT * FROM users WHERE note = '$5' AND n = %s", [2])

    def test_quoted_identifiers_and_escaped_quotes(self):
        query = CompiledQuery(sql="""SELECT "a$1" FROM t WHERE b = 'it''s $2' AND c = $1""", parameters=[3])
        assert to_format_params(query) == ("""SELECT "a$1" FROM t WHERE b = 'it''s $2' AND c = %s""", [3])


# ---------------------------------------------------------------------------
# PsycopgExecutor against a fake cursor
# ---------------------------------------------------------------------------


class _FakeCursor:
    def __init__(self, rows, description):
        self.rows = rows
        self.description = description
        self.executed: list[tuple[str, list]] = []

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def execute(self, query, params):
        self.executed.append((query, params))

    def fetchall(self):
        return self.rows


class _FakeCursorFactory:
    """Stands in for ``psycopg.RawCursor`` and records how it was opened."""

    def __init__(self, rows=None, description=None):
        self.cursor = _FakeCursor(rows or [], description)
        self.opened: list[tuple[object, object]] = []

    def __call__(self, connection, row_factory=None):
        self.opened.append((connection, row_factory))
        return self.cursor


class TestPsycopgExecutor:
    @pytest.fixture(autouse=True)
    def _require_psycopg(self):
        pytest.importorskip("psycopg")

    def test_returns_rows(self):
        factory = _FakeCursorFactory(rows=[{"id": 1}], description=[("id",)])
        executor = PsycopgExecutor("conn", cursor_factory=factory)
        result = executor.execute(CompiledQuery(sql="SELECT id FROM users WHERE id = $1", parameters=[1]))
        assert result == [{"id": 1}]
        assert factory.cursor.executed == [("SELECT id FROM users WHERE id = $1", [1])]

    def test_sql_with_quoted_dollars_is_sent_unchanged(self):
        factory = _FakeCursorFactory(description=[("id",)])
        compiled = (
            PgFluent()
            .select_from("users")
            .where(lambda eb: eb.jsonb("metadata").field("price$1").equals("x"))
            .where(sql("note = '$5' AND n = $1", 2))
            .to_sql()
        )
        PsycopgExecutor("conn", cursor_factory=factory).execute(compiled)
        assert factory.cursor.executed == [
            ("SELECT * FROM users WHERE metadata ->> 'price$1' = $1 AND note = '$5' AND n = $2", ["x", 2])
        ]

    def test_statement_without_result_set(self):
        factory = _FakeCursorFactory(description=None)
        executor = PsycopgExecutor("conn", cursor_factory=factory)
        assert executor.execute(CompiledQuery(sql="INSERT INTO t (a) VALUES ($1)", parameters=[1])) == []

    def test_opens_cursor_on_connection_with_dict_rows(self):
        from psycopg.rows import dict_row

        factory = _FakeCursorFactory(description=[("id",)])
        PsycopgExecutor("conn", cursor_factory=factory).execute(CompiledQuery(sql="SELECT 1", parameters=[]))
        assert factory.opened == [("conn", dict_row)]

    def test_defaults_to_raw_cursor(self):
        psycopg = pytest.importorskip("psycopg")
        assert PsycopgExecutor("conn")._cursor_factory is psycopg.RawCursor
