"""Tests for the pooled SQL Server client, against a recording fake engine."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager

import numpy as np
import pandas as pd
import pytest

from config.settings import DatabaseConfig
from db.connection import DatabaseClient, _to_records


class FakeResult:

    def __init__(self, rows=None, columns=None):
        self.returns_rows = rows is not None
        self._rows = rows or []
        self._columns = columns or []

    def fetchall(self):
        return list(self._rows)

    def keys(self):
        return list(self._columns)


class FakeConnection:
    """Records every driver-level statement and its bound parameters."""

    def __init__(self):
        self.executed = []
        self.result = FakeResult()

    def exec_driver_sql(self, statement, parameters=None):
        self.executed.append((statement, parameters))
        if statement.startswith("USE ["):
            return FakeResult()
        return self.result


class FakeEngine:

    def __init__(self):
        self.connection = FakeConnection()
        self.opened = []
        self.disposed = False

    @contextmanager
    def _checkout(self, how):
        self.opened.append(how)
        yield self.connection

    def connect(self):
        return self._checkout("connect")

    def begin(self):
        return self._checkout("begin")

    def dispose(self):
        self.disposed = True


@pytest.fixture
def db_config():
    return DatabaseConfig(host="localhost", port=1433, username="gw", password="secret")


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def client(db_config, engine):
    client = DatabaseClient(db_config)
    client._engine = engine
    return client


@pytest.fixture
def read_sql(monkeypatch):
    """Replace pandas' reader with one that runs the string through the fake driver."""
    frames = []

    def fake_read_sql_query(sql, con):
        con.exec_driver_sql(sql)
        return frames.pop(0) if frames else pd.DataFrame()

    monkeypatch.setattr("db.connection.pd.read_sql_query", fake_read_sql_query)
    return frames


class TestRunStatement:

    def test_switches_database_then_runs_statement(self, client, engine, read_sql):
        read_sql.append(pd.DataFrame({"id": [1, 2], "name": ["a", None]}))
        rows = client.run_statement("sales", "SELECT TOP 1000 id, name FROM Orders")

        assert engine.opened == ["connect"]
        assert engine.connection.executed == [
            ("USE [sales]", None),
            ("SELECT TOP 1000 id, name FROM Orders", None),
        ]
        assert rows == [{"id": 1, "name": "a"}, {"id": 2, "name": None}]

    def test_colon_text_reaches_driver_unchanged(self, client, engine, read_sql):
        sql = "SELECT TOP 10 * FROM Logs WHERE message = 'at 10:30'"
        client.run_statement("sales", sql)
        assert engine.connection.executed[-1] == (sql, None)


class TestRunStoredProcedure:

    def test_parameters_are_bound_not_interpolated(self, client, engine):
        engine.connection.result = FakeResult(rows=[(7, "EMEA")], columns=["id", "region"])
        hostile = "EMEA'; DROP TABLE Orders; --"

        rows = client.run_stored_procedure("sales", "usp_Totals", {"region": hostile, "year": 2024})

        assert engine.opened == ["begin"]
        use, call = engine.connection.executed
        assert use == ("USE [sales]", None)
        assert call == ("SET NOCOUNT ON; EXEC [usp_Totals] @region = ?, @year = ?", (hostile, 2024))
        assert hostile not in call[0]
        assert "2024" not in call[0]
        assert rows == [{"id": 7, "region": "EMEA"}]

    def test_without_parameters(self, client, engine):
        engine.connection.result = FakeResult(rows=[], columns=["id"])
        rows = client.run_stored_procedure("inventory", "usp_Refresh", {})

        assert engine.connection.executed == [
            ("USE [inventory]", None),
            ("SET NOCOUNT ON; EXEC [usp_Refresh]", ()),
        ]
        assert rows == []

    def test_procedure_without_result_set(self, client, engine):
        engine.connection.result = FakeResult()
        assert client.run_stored_procedure("sales", "usp_Touch", {"id": 3}) == []
        assert engine.connection.executed[-1] == ("SET NOCOUNT ON; EXEC [usp_Touch] @id = ?", (3,))


class TestEngineLifecycle:

    def test_concurrent_first_use_creates_one_engine(self, db_config, monkeypatch):
        created = []

        def slow_create_engine(url, **kwargs):
            time.sleep(0.05)
            engine = FakeEngine()
            created.append(engine)
            return engine

        monkeypatch.setattr("db.connection.sqlalchemy.create_engine", slow_create_engine)
        monkeypatch.setattr("db.connection.event.listen", lambda *args: None)

        client = DatabaseClient(db_config)
        start = threading.Barrier(8)

        def first_use(_):
            start.wait()
            return client.engine

        with ThreadPoolExecutor(max_workers=8) as pool:
            engines = list(pool.map(first_use, range(8)))

        assert len(created) == 1
        assert all(engine is created[0] for engine in engines)

    def test_pool_settings_and_timeout_hook(self, db_config, monkeypatch):
        calls = {}
        listeners = []

        def fake_create_engine(url, **kwargs):
            calls.update(kwargs, url=url)
            return FakeEngine()

        monkeypatch.setattr("db.connection.sqlalchemy.create_engine", fake_create_engine)
        monkeypatch.setattr("db.connection.event.listen", lambda *args: listeners.append(args))

        client = DatabaseClient(db_config)
        engine = client.engine

        assert calls["pool_size"] == db_config.pool_size
        assert calls["pool_pre_ping"] is True
        assert calls["connect_args"] == {"timeout": db_config.connect_timeout}
        assert listeners[0][:2] == (engine, "connect")

        class DbapiConnection:
            timeout = 0

        raw = DbapiConnection()
        listeners[0][2](raw, None)
        assert raw.timeout == db_config.request_timeout

    def test_close_disposes_and_allows_recreation(self, client, engine):
        client.close()
        assert engine.disposed is True
        assert client._engine is None
        client.close()


class TestRecords:

    def test_missing_values_become_none(self):
        df = pd.DataFrame({"id": [1, 2], "score": [1.5, np.nan], "name": ["a", None]})
        records = _to_records(df)
        assert records == [
            {"id": 1, "score": 1.5, "name": "a"},
            {"id": 2, "score": None, "name": None},
        ]
        assert type(records[0]["id"]) is int
