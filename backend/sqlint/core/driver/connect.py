"""
Open MySQL connections from credentials.

Uses pymysql; ``SQLINT_CONNECT_TIMEOUT`` and ``SQLINT_LOCAL_INFILE`` come from
the environment configuration.
"""

from typing import Any

import pymysql

from sqlint.core.config import settings
from sqlint.core.credentials import Credentials
from sqlint.core.driver.contracts import REQUIRED_CAPABILITIES
from sqlint.core.driver.mysql import MySQLConnection
from sqlint.core.errors import ConnectError, MissingDriverError

_DEFAULT_PORT = 3306


def connect(credentials: Credentials) -> MySQLConnection:
    """
    Open a connection to a MySQL server.

    Missing host/username fall back to ``localhost``/no user, as the MySQL
    client does. Autocommit starts enabled.
    """
    kwargs: dict[str, Any] = {
        "host": credentials.host or "localhost",
        "user": credentials.username,
        "password": credentials.password or "",
        "database": credentials.database,
        "port": int(credentials.port or _DEFAULT_PORT),
        "connect_timeout": settings.CONNECT_TIMEOUT,
        "local_infile": settings.LOCAL_INFILE,
        "autocommit": True,
    }
    if credentials.socket:
        kwargs["unix_socket"] = credentials.socket
    try:
        conn = pymysql.connect(**kwargs)
    except pymysql.Error as e:
        raise ConnectError(
            f"Couldn't establish a connection to the database server: {e}"
        ) from e
    return MySQLConnection(conn)


def require_capabilities(conn: Any) -> Any:
    """Return *conn* unchanged; raise ``MissingDriverError`` if it lacks a required method."""
    missing = [name for name in REQUIRED_CAPABILITIES if not callable(getattr(conn, name, None))]
    if missing:
        raise MissingDriverError(missing)
    return conn
