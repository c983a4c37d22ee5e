"""
MySQL connection layer.

pymysql is the only driver; ``ConnectionPort`` describes what the rest of the
package needs from a connection, so tests and callers can plug in their own.
"""

from .connect import connect, require_capabilities
from .contracts import REQUIRED_CAPABILITIES, ConnectionPort, QueryResult, RowSet, StatementPort
from .health import health_check
from .mysql import MySQLConnection, MySQLStatement, cursor_to_dicts, to_format_paramstyle

__all__ = [
    "connect",
    "require_capabilities",
    "health_check",
    "ConnectionPort",
    "StatementPort",
    "QueryResult",
    "RowSet",
    "REQUIRED_CAPABILITIES",
    "MySQLConnection",
    "MySQLStatement",
    "cursor_to_dicts",
    "to_format_paramstyle",
]
