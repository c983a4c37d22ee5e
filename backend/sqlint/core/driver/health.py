"""
Connection liveness check.
"""

import logging
from typing import Any

from sqlint.core.errors import DriverError

_log = logging.getLogger(__name__)


def health_check(conn: Any) -> bool:
    """
    True if *conn* exists and answers a ping. ``None`` means no connection.
    """
    if conn is None:
        return False
    try:
        return bool(conn.is_alive())
    except DriverError as e:
        _log.debug("Health check failed: %s", e)
        return False
