# mysql_bridge/sql.py

import re
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from .errors import SQLPermissionError

Where = Union[str, Mapping[str, Any], None]

_LEADING_COMMAND = re.compile(r'^\s*(?:(?:--[^\n]*\n|/\*.*?\*/)\s*)*([A-Za-z]+)', re.DOTALL)


def quote_identifier(name: str) -> str:
    """
    Backtick-quote a table or column name. Dotted names (db.table) are quoted per part.
    % is doubled, since the result is always formatted with bound params.

        quote_identifier("shop.users") -> `shop`.`users`
    """
    if not name or not str(name).strip():
        raise ValueError("Identifier must be a non-empty string")
    return ".".join("`" + part.replace("`", "``").replace("%", "%%") + "`" for part in str(name).split("."))


def leading_command(sql: str) -> str:
    """Return the first SQL keyword (upper-cased), skipping leading comments."""
    match = _LEADING_COMMAND.match(sql)
    return match.group(1).upper() if match else ""


def build_set_clause(fields: Mapping[str, Any]) -> Tuple[str, List[Any]]:
    """
    Turn {"name": "x", "age": 3} into ("`name`=%s, `age`=%s", ["x", 3]).

    Values are bound by the driver; None becomes NULL.
    """
    if not fields:
        raise ValueError("At least one field is required")
    parts = [f"{quote_identifier(col)}=%s" for col in fields]
    return ", ".join(parts), list(fields.values())


def build_where_clause(
        where: Where,
        params: Optional[Sequence[Any]] = None,
) -> Tuple[str, List[Any]]:
    """
    Normalize a WHERE condition into (sql_fragment, params).

    Args:
        where:  Either a mapping of column -> value (ANDed equality; None becomes IS NULL)
                or a raw SQL fragment which may contain %s placeholders.
        params: Values for the placeholders of a raw fragment. Not allowed with a mapping.

    Returns:
        The fragment without the WHERE keyword, and the list of values to bind.
        Statements built here always go out with a params list, so a fragment
        without params comes back with every % doubled.
    """
    if isinstance(where, Mapping):
        if params:
            raise ValueError("params cannot be combined with a mapping WHERE clause")
        parts: List[str] = []
        values: List[Any] = []
        for col, value in where.items():
            if value is None:
                parts.append(f"{quote_identifier(col)} IS NULL")
            else:
                parts.append(f"{quote_identifier(col)} = %s")
                values.append(value)
        return " AND ".join(parts), values

    fragment = (where or "").strip()
    if re.match(r'^WHERE\b', fragment, re.IGNORECASE):
        fragment = fragment[5:].strip()
    if not params:
        # no placeholders to fill: a literal % (LIKE 'a%', DATE_FORMAT) must survive formatting
        return fragment.replace("%", "%%"), []
    return fragment, list(params)


def require_where(command: str, fragment: str) -> None:
    """UPDATE/DELETE must carry a WHERE condition."""
    if not fragment:
        raise SQLPermissionError(f"{command} requires a WHERE clause")


def insert_statement(table: str, fields: Mapping[str, Any]) -> Tuple[str, List[Any]]:
    set_sql, values = build_set_clause(fields)
    return f"INSERT INTO {quote_identifier(table)} SET {set_sql}", values


def update_statement(
        table: str,
        fields: Mapping[str, Any],
        where: Where,
        params: Optional[Sequence[Any]] = None,
) -> Tuple[str, List[Any]]:
    set_sql, values = build_set_clause(fields)
    where_sql, where_values = build_where_clause(where, params)
    require_where("UPDATE", where_sql)
    return f"UPDATE {quote_identifier(table)} SET {set_sql} WHERE {where_sql}", values + where_values


def delete_statement(
        table: str,
        where: Where,
        params: Optional[Sequence[Any]] = None,
) -> Tuple[str, List[Any]]:
    where_sql, values = build_where_clause(where, params)
    require_where("DELETE", where_sql)
    return f"DELETE FROM {quote_identifier(table)} WHERE {where_sql}", values


def count_statement(
        table: str,
        where: Where = None,
        params: Optional[Sequence[Any]] = None,
) -> Tuple[str, List[Any]]:
    where_sql, values = build_where_clause(where, params)
    sql = f"SELECT COUNT(*) FROM {quote_identifier(table)}"
    if where_sql:
        sql += f" WHERE {where_sql}"
    return sql, values
