"""
sqlint: SQL templates with bound parameters, nested transactions and bulk insert for MySQL.

Process-wide defaults are set once at startup::

    import sqlint

    sqlint.set_credentials(host="db", username="app", password="secret", database="shop")
    sqlint.configure({"rowsIndexed": True})

    with sqlint.SQLInterface() as db:
        rows = db.query("SELECT * FROM `orders` WHERE `total` > <%100%>")
"""

from sqlint.core.credentials import Credentials, get_credentials, reset_credentials, set_credentials
from sqlint.core.errors import (
    ConnectError,
    ConnectionTeardownError,
    DatabaseError,
    DriverError,
    LastError,
    MissingDriverError,
    NoConnectionError,
    NotFoundError,
    QueryExecutionError,
    SQLInterfaceError,
    StatementExecutionError,
    StatementPreparationError,
    UnmatchedDelimiterError,
)
from sqlint.core.query_log import QueryLogEntry
from sqlint.core.settings import QuerySettings, configure, reset_default_query_settings
from sqlint.core.settings import get_default_query_settings as get_query_settings
from sqlint.engines.sql import extract, secure_sql_value
from sqlint.engines.transaction import TransactionContext
from sqlint.interface import SQLInterface

__version__ = "2.2.0"


def reset_defaults() -> None:
    """Restore the built-in query settings and the environment credentials."""
    reset_default_query_settings()
    reset_credentials()


__all__ = [
    "SQLInterface",
    "TransactionContext",
    "QuerySettings",
    "QueryLogEntry",
    "Credentials",
    "configure",
    "get_query_settings",
    "set_credentials",
    "get_credentials",
    "reset_defaults",
    "extract",
    "secure_sql_value",
    "SQLInterfaceError",
    "MissingDriverError",
    "NoConnectionError",
    "ConnectError",
    "UnmatchedDelimiterError",
    "NotFoundError",
    "DriverError",
    "LastError",
    "DatabaseError",
    "StatementPreparationError",
    "StatementExecutionError",
    "QueryExecutionError",
    "ConnectionTeardownError",
]
