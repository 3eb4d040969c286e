"""Shared test fixtures for MySQL Wrapper."""

from collections import deque
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
from pymysql.constants import FIELD_TYPE

from mysql_wrapper.core.client import MysqlClient
from mysql_wrapper.core.config import DatabaseSettings
from mysql_wrapper.core.encoder import Encoder
from mysql_wrapper.core.statements import StatementBuilder

_ENV_VARS = (
    "MYSQL_HOST",
    "MYSQL_PORT",
    "MYSQL_DATABASE",
    "MYSQL_USER",
    "MYSQL_PASSWORD",
    "MYSQL_WRAPPER_PROFILE",
)


class FakeCursor:
    def __init__(self, driver):
        self._driver = driver
        self.description = None
        self.lastrowid = 0
        self._rows = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql):
        self._driver.executed.append(sql)
        response = self._driver.responses.popleft() if self._driver.responses else {}
        if response.get("error") is not None:
            raise response["error"]
        rows = response.get("rows")
        if rows is not None:
            names = response.get("columns") or (list(rows[0]) if rows else ["col"])
            self.description = [
                (name, FIELD_TYPE.VAR_STRING, None, None, None, None, True)
                for name in names
            ]
            self._rows = [tuple(row.get(n) for n in names) for row in rows]
        self.lastrowid = response.get("lastrowid", 0)
        return response.get("affected", len(self._rows))

    def fetchall(self):
        return tuple(self._rows)


class FakeConnection:
    def __init__(self, driver):
        self._driver = driver
        self.committed = False
        self.closed = False

    def cursor(self):
        return FakeCursor(self._driver)

    def commit(self):
        self.committed = True

    def close(self):
        self.closed = True


class FakeDriver:
    """Scripted stand-in for pymysql.connect.

    Each executed statement consumes the next queued response; with the
    queue empty a statement returns no result set.
    """

    def __init__(self):
        self.responses = deque()
        self.executed = []
        self.connections = []
        self.connect_kwargs = None
        self.connect_error = None

    def respond(self, rows=None, *, columns=None, lastrowid=0, affected=None, error=None):
        response = {"rows": rows, "columns": columns, "lastrowid": lastrowid, "error": error}
        if affected is not None:
            response["affected"] = affected
        self.responses.append(response)
        return self

    def __call__(self, **kwargs):
        self.connect_kwargs = kwargs
        if self.connect_error is not None:
            raise self.connect_error
        conn = FakeConnection(self)
        self.connections.append(conn)
        return conn


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's MySQL environment out of the tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_dir():
    """Temporary directory for test files."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def settings():
    return DatabaseSettings(database="testdb", max_statement_length=4194304)


@pytest.fixture
def driver():
    return FakeDriver()


@pytest.fixture
def client(settings, driver):
    return MysqlClient(settings, connection_factory=driver)


@pytest.fixture
def encoder():
    return Encoder()


@pytest.fixture
def builder(encoder):
    return StatementBuilder(encoder)
