# mysql_bridge/results.py

from dataclasses import dataclass
from typing import Any, Optional, Union

from .errors import Code, error_code, split_driver_error


@dataclass(frozen=True)
class Connected:
    """A live aiomysql connection held by a Connector."""
    connection: Any

    ok = True
    code = None


@dataclass(frozen=True)
class ConnectionFailed:
    """
    The error record kept in place of a connection when connect() fails.

    `code` is the ErrorCode for known failures (AccessDenied, ConnectionCountError,
    ConnectionRefused, ...), the vendor code string for other MySQL errors, or
    None when the failure carries no MySQL error number.
    """
    code: Optional[Code]
    message: str
    errno: Optional[int] = None

    ok = False

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ConnectionFailed":
        errno, message = split_driver_error(exc)
        return cls(code=error_code(errno), message=message, errno=errno)


Handle = Union[Connected, ConnectionFailed]


@dataclass(frozen=True)
class OkResult:
    """Outcome of a statement that returns no result set (INSERT/UPDATE/DELETE/DDL)."""
    affected_rows: int
    insert_id: Optional[int] = None
    warning_count: int = 0

    @classmethod
    def from_cursor(cls, cursor: Any) -> "OkResult":
        rowcount = getattr(cursor, "rowcount", None)
        return cls(
            affected_rows=rowcount if rowcount is not None and rowcount >= 0 else 0,
            insert_id=getattr(cursor, "lastrowid", None) or None,
            warning_count=getattr(cursor, "warning_count", 0) or 0,
        )
