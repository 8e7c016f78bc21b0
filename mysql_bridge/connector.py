# mysql_bridge/connector.py

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import aiomysql
import pymysql.err

from .config import ConnectorConfig
from .errors import NoDBConnectionError, translate_error
from .results import Connected, ConnectionFailed, Handle, OkResult
from .sql import (
    Where,
    count_statement,
    delete_statement,
    insert_statement,
    leading_command,
    update_statement,
)

logger = logging.getLogger(__name__)

WRITE_COMMANDS = ("INSERT", "UPDATE", "DELETE", "REPLACE")

Row = Dict[str, Any]


def _final_sql(cursor: Any, sql: str, params: Optional[Sequence[Any]]) -> str:
    """Render the statement with its params for logging, falling back to raw SQL."""
    if params is None:
        return sql
    if hasattr(cursor, "mogrify"):
        try:
            mogrified = cursor.mogrify(sql, params)
            return mogrified.decode() if isinstance(mogrified, bytes) else mogrified
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(
                "Could not mogrify SQL with params %r: %s. Falling back to raw SQL.",
                params,
                e,
            )
    return sql + f"  -- params: {params!r}"


class Connector:
    """
    Async MySQL helper around a single aiomysql connection.

    `connect()` never raises: on failure `connection` holds a ConnectionFailed
    record whose `code` tells what went wrong (AccessDenied, ConnectionCountError, ...).

        db = await Connector(config).connect()
        if db.connection.code:
            ...
        n = await db.count("users", {"name": "Test"})
    """

    def __init__(
            self,
            config: Union[ConnectorConfig, Mapping[str, Any]],
            *,
            quiet: Optional[bool] = None,
    ) -> None:
        """
        Args:
            config: ConnectorConfig, or a creds dict (host, user, password, database, ...).
            quiet:  True logs every statement at DEBUG, False at INFO.
                    None (default) logs INSERT/UPDATE/DELETE at INFO and the rest at DEBUG.
        """
        if not isinstance(config, ConnectorConfig):
            config = ConnectorConfig.from_dict(config)
        self.config = config
        self.quiet = quiet
        self.connection: Optional[Handle] = None

    def __repr__(self) -> str:
        if self.connection is None:
            state = "unconnected"
        elif self.connection.ok:
            state = "connected"
        else:
            state = f"failed:{self.connection.code}"
        return f"<Connector {self.config.user}@{self.config.host}:{self.config.port}/{self.config.database} {state}>"

    async def __aenter__(self) -> "Connector":
        return await self.connect()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.connected:
            await self.disconnect()

    @property
    def connected(self) -> bool:
        return isinstance(self.connection, Connected)

    def _live(self) -> Any:
        if isinstance(self.connection, Connected):
            return self.connection.connection
        raise NoDBConnectionError()

    def _log_statement(self, command: str, msg: str) -> None:
        if self.quiet is None:
            level = logging.INFO if command in WRITE_COMMANDS else logging.DEBUG
        else:
            level = logging.DEBUG if self.quiet else logging.INFO
        logger.log(level, msg)

    async def connect(self) -> "Connector":
        """
        Open the connection.

        Returns:
            self, whether or not the connection succeeded. Check `self.connection.code`
            (None on success) or `self.connected`.
        """
        if self.connected:
            return self

        kwargs = self.config.connect_kwargs()
        kwargs.setdefault("cursorclass", aiomysql.DictCursor)
        try:
            conn = await aiomysql.connect(**kwargs)
        except (pymysql.err.MySQLError, OSError) as e:
            self.connection = ConnectionFailed.from_exception(e)
            logger.warning(
                "Connection to %s:%s failed [%s]: %s",
                self.config.host,
                self.config.port,
                self.connection.code or self.connection.errno,
                self.connection.message,
            )
        else:
            self.connection = Connected(conn)
            logger.debug("Connected to %s:%s/%s", self.config.host, self.config.port, self.config.database)
        return self

    async def disconnect(self) -> None:
        """
        Close the connection. The Connector can not run queries afterwards.

        Raises:
            NoDBConnectionError: If there is no live connection.
        """
        conn = self._live()
        self.connection = None
        try:
            await conn.ensure_closed()
        except (pymysql.err.MySQLError, OSError) as e:
            # server side is gone already; drop the socket
            logger.warning("Graceful close failed, closing socket: %s", e)
            conn.close()

    async def query(
            self,
            sql: str,
            params: Optional[Sequence[Any]] = None,
    ) -> Union[List[Row], OkResult]:
        """
        Execute a SQL statement as given, binding `params` to its %s placeholders.

        Returns:
            A list of row dicts for statements with a result set ([] when nothing matches),
            otherwise an OkResult (affected_rows, insert_id).

        Raises:
            NoDBConnectionError: If there is no live connection.
            SQLExecutionError: If the server rejects the statement; `.code` holds the ErrorCode.
        """
        conn = self._live()
        raw_sql = sql.strip()
        command = leading_command(raw_sql)

        async with conn.cursor() as cursor:
            final_sql = _final_sql(cursor, raw_sql, params)
            self._log_statement(command, final_sql)
            try:
                if params is not None:
                    await cursor.execute(raw_sql, params)
                else:
                    await cursor.execute(raw_sql)

                # A result set means cursor.description is set
                if cursor.description is not None:
                    return list(await cursor.fetchall() or [])
                result = OkResult.from_cursor(cursor)
            except pymysql.err.MySQLError as e:
                logger.error("SQL execution failed for: %s", final_sql, exc_info=e)
                raise translate_error(e, final_sql) from e

        if command in WRITE_COMMANDS:
            self._log_statement(command, f"{result.affected_rows} rows affected.")
        return result

    async def insert(self, table: str, fields: Mapping[str, Any]) -> OkResult:
        """
        INSERT INTO <table> SET `k1`=v1, `k2`=v2, ...

        The database validates table, fields and nulls; its errors come back as
        SQLExecutionError (TableNotExist, FieldError, NullError, DuplicateEntry, ...).
        """
        sql, values = insert_statement(table, fields)
        return await self.query(sql, values)

    async def update(
            self,
            table: str,
            fields: Mapping[str, Any],
            where: Where,
            params: Optional[Sequence[Any]] = None,
    ) -> OkResult:
        """
        UPDATE <table> SET ... WHERE <where>

        Args:
            where:  {"column": value, ...} or a SQL fragment with %s placeholders.
            params: Values for the placeholders of a fragment.

        Raises:
            SQLPermissionError: If `where` is empty.
        """
        sql, values = update_statement(table, fields, where, params)
        return await self.query(sql, values)

    async def delete(
            self,
            table: str,
            where: Where,
            params: Optional[Sequence[Any]] = None,
    ) -> OkResult:
        """DELETE FROM <table> WHERE <where>. Same `where` rules as update()."""
        sql, values = delete_statement(table, where, params)
        return await self.query(sql, values)

    async def rows(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Row]:
        """
        Fetch all matching records as a list of dicts.

        Returns [] when nothing matches; errors (e.g. a missing table) are raised.
        """
        return await self.query(sql, params)

    async def row(self, sql: str, params: Optional[Sequence[Any]] = None) -> Row:
        """First record as a dict, or {} if there is none."""
        rows = await self.rows(sql, params)
        if isinstance(rows, list) and rows:
            return rows[0]
        return {}

    async def result(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        """Value of the first field of the first record, or None if there is no record."""
        row = await self.row(sql, params)
        return next(iter(row.values()), None)

    async def count(
            self,
            table: str,
            where: Where = None,
            params: Optional[Sequence[Any]] = None,
    ) -> int:
        """SELECT COUNT(*) FROM <table> WHERE <where>. No `where` counts the whole table."""
        sql, values = count_statement(table, where, params)
        value = await self.result(sql, values)
        return int(value) if value is not None else 0
