# tests/conftest.py

import pytest

from mysql_bridge.config import ConnectorConfig


def rows_response(rows, columns=None):
    """Outcome of a statement that returns a result set."""
    cols = columns or (list(rows[0]) if rows else ["col"])
    return {"description": [(c,) for c in cols], "rows": list(rows)}


def ok_response(affected_rows=0, insert_id=0):
    """Outcome of a write statement."""
    return {"rowcount": affected_rows, "lastrowid": insert_id}


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.description = None
        self.rowcount = -1
        self.lastrowid = 0
        self._rows = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def mogrify(self, sql, args=None):
        if args is None:
            return sql
        return sql % tuple(repr(a) for a in args)

    async def execute(self, sql, args=None):
        self.conn.executed.append((sql, args))
        # the driver only %-formats when args are given
        self.conn.driver.sent.append(self.mogrify(sql, args))
        outcome = self.conn.responses.pop(0) if self.conn.responses else ok_response()
        if isinstance(outcome, BaseException):
            raise outcome
        self.description = outcome.get("description")
        self._rows = outcome.get("rows", [])
        self.rowcount = outcome.get("rowcount", len(self._rows))
        self.lastrowid = outcome.get("lastrowid", 0)
        return self.rowcount

    async def fetchall(self):
        return self._rows


class FakeConnection:
    def __init__(self, driver, kwargs):
        self.driver = driver
        self.kwargs = kwargs
        self.closed = False

    @property
    def executed(self):
        return self.driver.executed

    @property
    def responses(self):
        return self.driver.responses

    def cursor(self):
        return FakeCursor(self)

    async def ensure_closed(self):
        if self.driver.close_error is not None:
            raise self.driver.close_error
        self.closed = True

    def close(self):
        self.closed = True


class FakeDriver:
    """Stands in for aiomysql.connect; queue outcomes in `responses`."""

    def __init__(self):
        self.connect_calls = []
        self.connect_error = None
        self.close_error = None
        self.responses = []
        self.executed = []
        self.sent = []
        self.connections = []

    async def connect(self, **kwargs):
        self.connect_calls.append(kwargs)
        if self.connect_error is not None:
            raise self.connect_error
        conn = FakeConnection(self, kwargs)
        self.connections.append(conn)
        return conn


@pytest.fixture
def driver(monkeypatch):
    fake = FakeDriver()
    monkeypatch.setattr("mysql_bridge.connector.aiomysql.connect", fake.connect)
    return fake


@pytest.fixture
def config():
    return ConnectorConfig(
        host="localhost",
        user="tester",
        password="secret",
        database="test_db",
        extra={"charset": "utf8mb4"},
    )
