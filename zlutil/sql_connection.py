"""A MySQL connection that runs printf-style queries and returns rows as strings."""

from __future__ import annotations

from typing import Any

import pymysql


class SqlException(Exception):
    """A database error, carrying the statement that caused it."""

    def __init__(self, sql: str, err: str) -> None:
        super().__init__(err)
        self.sql = sql
        self.err = err

    def __str__(self) -> str:
        return self.err


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", "replace")
    return str(value)


class SqlConnection:
    """A connection to one MySQL database.

    Query methods take a printf-style format and its arguments; escape
    untrusted values with :meth:`escape` first.
    """

    def __init__(
        self,
        url: str,
        port: int,
        dbname: str,
        username: str,
        password: str,
        character: str = "utf8mb4",
    ) -> None:
        try:
            self._conn = pymysql.connect(
                host=url,
                port=port,
                user=username,
                password=password,
                database=dbname,
                charset=character,
                connect_timeout=3,
                autocommit=True,
                conv={},
            )
        except pymysql.MySQLError as err:
            raise SqlException("mysql_real_connect", str(err)) from err

    def __enter__(self) -> "SqlConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Close the connection."""
        self._conn.close()

    def query(self, fmt: str, *args: Any) -> tuple[int, int]:
        """Run a statement and return ``(affected_rows, insert_id)``."""
        _, affected, row_id = self._run(fmt, args)
        return affected, row_id

    def query_rows(self, fmt: str, *args: Any) -> tuple[list[list[str]], int, int]:
        """Run a statement and return ``(rows, affected_rows, insert_id)``; each row is a list of strings."""
        cursor_rows, affected, row_id = self._run(fmt, args)
        rows = [[_text(value) for value in row] for row in cursor_rows[1]]
        return rows, affected, row_id

    def query_dicts(self, fmt: str, *args: Any) -> tuple[list[dict[str, str]], int, int]:
        """Run a statement and return ``(rows, affected_rows, insert_id)``; each row maps column names to strings."""
        (names, raw_rows), affected, row_id = self._run(fmt, args)
        rows = [{name: _text(value) for name, value in zip(names, row)} for row in raw_rows]
        return rows, affected, row_id

    def escape(self, text: str) -> str:
        """Escape ``text`` for use inside a quoted SQL string."""
        return self._conn.escape_string(text)

    @staticmethod
    def query_string(fmt: str, *args: Any) -> str:
        """Format a statement printf-style; without arguments ``fmt`` is returned as is."""
        if not args:
            return fmt
        return fmt % args

    def _check(self) -> None:
        try:
            self._conn.ping(reconnect=True)
        except Exception as err:
            raise SqlException("mysql_ping", "Mysql connection ping failed") from err

    def _run(self, fmt: str, args: tuple) -> tuple[tuple[list[str], list[tuple]], int, int]:
        self._check()
        sql = self.query_string(fmt, *args)
        try:
            with self._conn.cursor() as cursor:
                cursor.execute(sql)
                if cursor.description is None:
                    names: list[str] = []
                    rows: list[tuple] = []
                else:
                    names = [column[0] for column in cursor.description]
                    rows = list(cursor.fetchall())
        except pymysql.MySQLError as err:
            raise SqlException(sql, str(err)) from err
        return (names, rows), self._conn.affected_rows(), self._conn.insert_id()