# mysql_bridge/errors.py

from enum import Enum
from typing import Any, Optional, Tuple, Union

from pymysql.constants import CR, ER


class ErrorCode(str, Enum):
    """
    Named MySQL error codes.

    Values are the literal vendor codes, so members compare equal to plain strings:
        ErrorCode.DuplicateEntry == "ER_DUP_ENTRY"
    """
    # connection
    ConnectionRefused = "ECONNREFUSED"              # wrong host/port
    ConnectionCountError = "ER_CON_COUNT_ERROR"     # max_connections reached
    AccessDenied = "ER_ACCESS_DENIED_ERROR"         # wrong password

    # field
    FieldWrongValue = "ER_TRUNCATED_WRONG_VALUE_FOR_FIELD"
    FieldNoDefault = "ER_NO_DEFAULT_FOR_FIELD"
    NoDefaultValue = "ER_NO_DEFAULT_FOR_FIELD"
    FieldError = "ER_BAD_FIELD_ERROR"
    NullError = "ER_BAD_NULL_ERROR"
    DuplicateEntry = "ER_DUP_ENTRY"

    # table
    TableNotExist = "ER_NO_SUCH_TABLE"
    TableError = "ER_BAD_TABLE_ERROR"

    # statement
    ParseError = "ER_PARSE_ERROR"
    SpUndeclaredVar = "ER_SP_UNDECLARED_VAR"        # e.g. non-numeric LIMIT

    # raised locally, never sent by the server
    NoDBConnection = "NO_DB_CONNECTION_CREATED"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_errno(cls, errno: Any) -> Optional["ErrorCode"]:
        """Map a PyMySQL numeric error number to its ErrorCode, or None if unnamed."""
        return _ERRNO_CODES.get(errno)


_ERRNO_CODES = {
    CR.CR_CONN_HOST_ERROR: ErrorCode.ConnectionRefused,
    ER.CON_COUNT_ERROR: ErrorCode.ConnectionCountError,
    ER.ACCESS_DENIED_ERROR: ErrorCode.AccessDenied,
    ER.TRUNCATED_WRONG_VALUE_FOR_FIELD: ErrorCode.FieldWrongValue,
    ER.NO_DEFAULT_FOR_FIELD: ErrorCode.FieldNoDefault,
    ER.BAD_FIELD_ERROR: ErrorCode.FieldError,
    ER.BAD_NULL_ERROR: ErrorCode.NullError,
    ER.DUP_ENTRY: ErrorCode.DuplicateEntry,
    ER.NO_SUCH_TABLE: ErrorCode.TableNotExist,
    ER.BAD_TABLE_ERROR: ErrorCode.TableError,
    ER.PARSE_ERROR: ErrorCode.ParseError,
    ER.SP_UNDECLARED_VAR: ErrorCode.SpUndeclaredVar,
}


def _vendor_names(module, prefix):
    """errno -> vendor code string for every constant in a pymysql.constants module."""
    names = {}
    for name, value in vars(module).items():
        if not name.isupper() or not isinstance(value, int):
            continue
        # range markers share numbers with real codes
        if name.endswith(("_FIRST", "_LAST", "MIN_ERROR", "MAX_ERROR")):
            continue
        names.setdefault(value, prefix + name)
    return names


_VENDOR_CODES = {**_vendor_names(CR, ""), **_vendor_names(ER, "ER_")}

Code = Union[ErrorCode, str]


def error_code(errno: Any) -> Optional[Code]:
    """
    Code for a driver error number: the ErrorCode member when one is named,
    otherwise the vendor string (e.g. 1205 -> "ER_LOCK_WAIT_TIMEOUT"), or None.
    """
    return ErrorCode.from_errno(errno) or _VENDOR_CODES.get(errno)


NO_DB_CONNECTION_MESSAGE = "No established database connection"


class MySQLBridgeError(Exception):
    """Base exception for mysql-bridge errors."""

    def __init__(self, message: str, code: Optional[Code] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class NoDBConnectionError(MySQLBridgeError):
    """Raised when an operation runs before connect() succeeded or after disconnect()."""

    def __init__(self, message: str = NO_DB_CONNECTION_MESSAGE) -> None:
        super().__init__(message, ErrorCode.NoDBConnection)


class SQLPermissionError(MySQLBridgeError):
    """Raised when UPDATE/DELETE is attempted without a WHERE clause."""


class SQLExecutionError(MySQLBridgeError):
    """Raised when the server rejects a statement (wraps the driver error)."""

    def __init__(
            self,
            message: str,
            code: Optional[Code] = None,
            errno: Optional[int] = None,
            sql: Optional[str] = None,
    ) -> None:
        super().__init__(message, code)
        self.errno = errno
        self.sql = sql


class ConfigError(MySQLBridgeError, RuntimeError):
    """Raised when connection settings cannot be loaded."""


def split_driver_error(exc: BaseException) -> Tuple[Optional[int], str]:
    """
    Pull (errno, message) out of a driver exception.

    PyMySQL errors carry `args == (errno, message)`; anything else yields (None, str(exc)).
    """
    # OSError args are (os errno, strerror); those numbers are not MySQL codes
    if isinstance(exc, ConnectionRefusedError):
        return CR.CR_CONN_HOST_ERROR, str(exc)
    if isinstance(exc, OSError):
        return None, str(exc)
    args = getattr(exc, "args", ())
    if len(args) >= 2 and isinstance(args[0], int):
        return args[0], str(args[1])
    return None, str(exc)


def translate_error(exc: BaseException, sql: Optional[str] = None) -> SQLExecutionError:
    """Build the SQLExecutionError for a driver exception. The caller chains it with `from exc`."""
    errno, message = split_driver_error(exc)
    code = error_code(errno)
    label = str(code) if code else (errno if errno is not None else type(exc).__name__)
    return SQLExecutionError(f"[{label}] {message}", code=code, errno=errno, sql=sql)
