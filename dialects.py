"""SQL dialects for the supported backends."""

import itertools
import sqlite3
from abc import ABC, abstractmethod
from urllib.parse import unquote, urlparse

from errors import UnknownBackendError
from pagination import normalize_page_size
from viewport import SortDirection


def _direction_keyword(direction):
    if direction is None:
        return None
    if isinstance(direction, SortDirection):
        return direction.sql_keyword
    text = str(direction).strip().lower()
    if text in ("asc", "ascending"):
        return "ASC"
    if text in ("desc", "descending"):
        return "DESC"
    return None


class Dialect(ABC):
    """Base class for backend dialects.

    Every query-building method is pure: it only formats SQL text. Only
    connect() and execute_update() touch a driver.
    """

    kind = "base"
    display_name = "Base"
    identifier_quote = '"'
    supports_schemas = False
    default_schema = None
    required_module = None  # Module name to import for this dialect
    install_hint = None

    @classmethod
    def is_available(cls):
        """Check if the driver module for this dialect is installed."""
        if cls.required_module is None:
            return True
        try:
            __import__(cls.required_module)
            return True
        except ImportError:
            return False

    # ---------- quoting ----------
    def quote(self, name) -> str:
        q = self.identifier_quote
        return f"{q}{str(name).replace(q, q * 2)}{q}"

    def literal(self, text) -> str:
        return "'" + str(text).replace("'", "''") + "'"

    def qualified_table(self, schema, table) -> str:
        return self.quote(table)

    # ---------- clauses ----------
    @abstractmethod
    def contains_condition(self, column, pattern_literal) -> str:
        """Case-insensitive text containment test for one column."""

    def filter_clause(self, columns, filter_text) -> str:
        if not filter_text or not columns:
            return ""
        pattern = self.literal(f"%{filter_text}%")
        conditions = " OR ".join(self.contains_condition(c, pattern) for c in columns)
        return f" WHERE ({conditions})"

    def order_clause(self, sort_column, sort_direction) -> str:
        keyword = _direction_keyword(sort_direction)
        if not sort_column or not keyword:
            return ""
        return f" ORDER BY {self.quote(sort_column)} {keyword}"

    # ---------- statements ----------
    def column_names_sql(self, schema, table) -> str:
        """Zero-row select whose cursor description lists the table's columns."""
        return f"SELECT * FROM {self.qualified_table(schema, table)} LIMIT 0"

    def row_count_sql(self, schema, table, columns=(), filter_text=None) -> str:
        where = self.filter_clause(columns, filter_text)
        return f"SELECT COUNT(*) FROM {self.qualified_table(schema, table)}{where}"

    def select_page_sql(
        self,
        schema,
        table,
        page_size,
        page_offset=0,
        columns=(),
        filter_text=None,
        sort_column=None,
        sort_direction=None,
    ) -> str:
        limit = normalize_page_size(page_size)
        offset = max(0, page_offset or 0)
        where = self.filter_clause(columns, filter_text)
        order = self.order_clause(sort_column, sort_direction)
        return (
            f"SELECT * FROM {self.qualified_table(schema, table)}"
            f"{where}{order} LIMIT {limit} OFFSET {offset}"
        )

    def filtered_select_sql(
        self, schema, table, columns, filter_text, page_size, page_offset=0
    ) -> str:
        return self.select_page_sql(
            schema, table, page_size, page_offset, columns=columns, filter_text=filter_text
        )

    def sorted_select_sql(
        self, schema, table, sort_column, sort_direction, page_size, page_offset=0
    ) -> str:
        return self.select_page_sql(
            schema,
            table,
            page_size,
            page_offset,
            sort_column=sort_column,
            sort_direction=sort_direction,
        )

    @abstractmethod
    def update_sql(self, schema, table, field, key_column) -> str:
        """Single-column UPDATE binding (new value, key value)."""

    # ---------- driver ----------
    @abstractmethod
    def connect(self, dsn):
        """Open a DB-API connection for this backend."""

    def execute_update(self, connection, sql, params) -> int:
        """Run an update built by update_sql() and return the affected row count."""
        cursor = connection.cursor()
        try:
            cursor.execute(sql, tuple(params))
            return cursor.rowcount
        finally:
            cursor.close()

    def query_cursor(self, connection):
        """Cursor for free-form statements that may be closed with rows left unread."""
        return connection.cursor()


class PostgresDialect(Dialect):
    kind = "postgres"
    display_name = "PostgreSQL"
    supports_schemas = True
    default_schema = "public"
    required_module = "psycopg2"
    install_hint = "pip install psycopg2-binary"

    _statement_ids = itertools.count(1)

    def qualified_table(self, schema, table) -> str:
        return f"{self.quote(schema or self.default_schema)}.{self.quote(table)}"

    def contains_condition(self, column, pattern_literal) -> str:
        return f"{self.quote(column)}::TEXT ILIKE {pattern_literal}"

    def update_sql(self, schema, table, field, key_column) -> str:
        return (
            f"UPDATE {self.qualified_table(schema, table)} "
            f"SET {self.quote(field)} = $1 WHERE {self.quote(key_column)} = $2"
        )

    def connect(self, dsn):
        import psycopg2

        conn = psycopg2.connect(dsn)
        # reads and edits share this handle; no transaction stays open
        conn.autocommit = True
        return conn

    def execute_update(self, connection, sql, params) -> int:
        # $n placeholders only exist server side, so bind through PREPARE/EXECUTE
        name = f"mirador_update_{next(self._statement_ids)}"
        placeholders = ", ".join(["%s"] * len(params))
        cursor = connection.cursor()
        try:
            cursor.execute(f"PREPARE {name} AS {sql}")
            try:
                cursor.execute(f"EXECUTE {name} ({placeholders})", tuple(params))
                return cursor.rowcount
            finally:
                cursor.execute(f"DEALLOCATE {name}")
        finally:
            cursor.close()


class MySQLDialect(Dialect):
    kind = "mysql"
    display_name = "MySQL"
    identifier_quote = "`"
    required_module = "mysql.connector"
    install_hint = "pip install mysql-connector-python"

    def literal(self, text) -> str:
        escaped = str(text).replace("\\", "\\\\").replace("'", "''")
        return f"'{escaped}'"

    def contains_condition(self, column, pattern_literal) -> str:
        return f"CAST({self.quote(column)} AS CHAR) LIKE {pattern_literal}"

    def update_sql(self, schema, table, field, key_column) -> str:
        return (
            f"UPDATE {self.qualified_table(schema, table)} "
            f"SET {self.quote(field)} = ? WHERE {self.quote(key_column)} = ?"
        )

    @staticmethod
    def parse_dsn(dsn):
        parsed = urlparse(dsn)
        config = {
            "host": parsed.hostname or "localhost",
            "user": unquote(parsed.username or ""),
            "password": unquote(parsed.password or ""),
            "database": parsed.path.lstrip("/") or "",
        }
        if parsed.port:
            config["port"] = int(parsed.port)
        return config

    def connect(self, dsn):
        import mysql.connector
        from mysql.connector.constants import ClientFlag

        config = self.parse_dsn(dsn)
        # report matched rows, not changed rows, so a no-op edit still counts as one
        config["client_flags"] = [ClientFlag.FOUND_ROWS]
        config["autocommit"] = True
        return mysql.connector.connect(**config)

    def query_cursor(self, connection):
        return connection.cursor(buffered=True)

    def execute_update(self, connection, sql, params) -> int:
        # prepared cursors bind '?' natively
        cursor = connection.cursor(prepared=True)
        try:
            cursor.execute(sql, tuple(params))
            return cursor.rowcount
        finally:
            cursor.close()


class SQLiteDialect(Dialect):
    kind = "sqlite"
    display_name = "SQLite"

    def contains_condition(self, column, pattern_literal) -> str:
        return f"CAST({self.quote(column)} AS TEXT) LIKE {pattern_literal}"

    def update_sql(self, schema, table, field, key_column) -> str:
        return (
            f"UPDATE {self.qualified_table(schema, table)} "
            f"SET {self.quote(field)} = ? WHERE {self.quote(key_column)} = ?"
        )

    @staticmethod
    def path_from_dsn(dsn):
        if dsn.startswith("sqlite://"):
            return dsn[len("sqlite://"):]
        return dsn

    def connect(self, dsn):
        # worker threads share this handle
        return sqlite3.connect(
            self.path_from_dsn(dsn), check_same_thread=False, isolation_level=None
        )


# Registry of supported dialects
DIALECTS = {
    "postgres": PostgresDialect,
    "mysql": MySQLDialect,
    "sqlite": SQLiteDialect,
}

_ALIASES = {
    "postgresql": "postgres",
    "pg": "postgres",
    "sqlite3": "sqlite",
}


def resolve_kind(kind) -> str:
    key = str(kind or "").strip().lower()
    key = _ALIASES.get(key, key)
    if key not in DIALECTS:
        raise UnknownBackendError(kind)
    return key


def get_dialect(kind) -> Dialect:
    """Get a dialect instance by backend kind."""
    return DIALECTS[resolve_kind(kind)]()


def get_dialect_choices(include_unavailable=False):
    if include_unavailable:
        return [(key, cls.display_name) for key, cls in DIALECTS.items()]
    return [(key, cls.display_name) for key, cls in DIALECTS.items() if cls.is_available()]


def build_count_query(kind, schema, table, columns=(), filter_text=None) -> str:
    return get_dialect(kind).row_count_sql(schema, table, columns, filter_text)


def build_select_query(
    kind,
    schema,
    table,
    columns=(),
    page_size=0,
    page_offset=0,
    sort_column=None,
    sort_direction=None,
    filter_text=None,
) -> str:
    return get_dialect(kind).select_page_sql(
        schema,
        table,
        page_size,
        page_offset,
        columns=columns,
        filter_text=filter_text,
        sort_column=sort_column,
        sort_direction=sort_direction,
    )


def build_update_query(kind, schema, table, field, key_column) -> str:
    return get_dialect(kind).update_sql(schema, table, field, key_column)
