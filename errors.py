class UnknownBackendError(ValueError):
    """Raised when a backend kind does not name one of the supported dialects."""

    def __init__(self, kind):
        super().__init__(f"Unknown backend kind: {kind!r}")
        self.kind = kind


class ConnectionValidationError(ValueError):
    pass


class PrimaryKeyNotFound(LookupError):
    def __init__(self, column_count: int):
        super().__init__(f"no primary key column found in {column_count} columns")
        self.column_count = column_count


_CONNECTION_HINTS = {
    "postgres": [
        (("connection refused",), "PostgreSQL server is not running or not accepting connections on the specified host/port"),
        (("password authentication failed",), "PostgreSQL authentication failed - check username and password"),
        (("authentication failed",), "PostgreSQL authentication failed - check username and password"),
        (("database", "does not exist"), "PostgreSQL database does not exist - check database name"),
        (("timeout",), "PostgreSQL connection timeout - check host and port, ensure server is accessible"),
    ],
    "mysql": [
        (("connection refused",), "MySQL server is not running or not accepting connections on the specified host/port"),
        (("access denied",), "MySQL access denied - check username and password"),
        (("unknown database",), "MySQL database does not exist - check database name"),
        (("timeout",), "MySQL connection timeout - check host and port, ensure server is accessible"),
    ],
    "sqlite": [
        (("unable to open database file",), "SQLite database file could not be opened"),
        (("permission denied",), "SQLite permission denied - check file permissions"),
        (("database is locked",), "SQLite database is locked - close other connections to this file"),
    ],
}

_QUERY_HINTS = [
    (("syntax error",), "SQL syntax error"),
    (("no such table",), "table or column does not exist"),
    (("no such column",), "table or column does not exist"),
    (("doesn't exist",), "table or column does not exist"),
    (("does not exist",), "table or column does not exist"),
    (("permission denied",), "insufficient permissions"),
    (("access denied",), "insufficient permissions"),
    (("deadlock",), "database deadlock detected - try again"),
]


def _matches(text: str, needles) -> bool:
    return all(n in text for n in needles)


def describe_connection_error(kind: str, exc) -> str:
    raw = str(exc).strip() or exc.__class__.__name__
    lowered = raw.lower()
    for needles, hint in _CONNECTION_HINTS.get(kind, []):
        if _matches(lowered, needles):
            if kind == "sqlite":
                return f"{hint}: {raw}"
            return hint
    return f"{kind.title()} connection error: {raw}"


def describe_query_error(exc) -> str:
    raw = str(exc).strip() or exc.__class__.__name__
    lowered = raw.lower()
    if "connection" in lowered and ("lost" in lowered or "closed" in lowered):
        return "database connection lost - please reconnect"
    if "timeout" in lowered:
        return "query timeout - operation took too long to complete"
    for needles, hint in _QUERY_HINTS:
        if _matches(lowered, needles):
            if hint.startswith("database deadlock"):
                return hint
            return f"{hint}: {raw}"
    return raw
