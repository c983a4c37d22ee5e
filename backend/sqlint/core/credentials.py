"""
Connection credentials.

Process-wide defaults are seeded from ``SQLINT_*`` environment variables and can
be replaced with ``set_credentials()``. A session keeps its own overrides and
falls back to the defaults for every key it has not set.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

from sqlint.core.config import settings as env_settings

CREDENTIAL_KEYS = ("host", "username", "password", "database", "port", "socket")


class Credentials(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    host: str | None = None
    username: str | None = None
    password: str | None = None
    database: str | None = None
    port: int | None = None
    socket: str | None = None


def credential_values(
    host: Mapping[str, Any] | str | None = None,
    username: str | None = None,
    password: str | None = None,
    database: str | None = None,
    port: int | None = None,
    socket: str | None = None,
) -> dict[str, Any]:
    """
    Collect credentials given either as one mapping or as separate values.

    Mapping keys are case-insensitive and unknown keys are dropped. For separate
    values only those that are not ``None`` are returned.
    """
    if isinstance(host, Mapping):
        lowered = {str(k).lower(): v for k, v in host.items()}
        return {k: lowered[k] for k in CREDENTIAL_KEYS if k in lowered}
    given = {
        "host": host,
        "username": username,
        "password": password,
        "database": database,
        "port": port,
        "socket": socket,
    }
    return {k: v for k, v in given.items() if v is not None}


def merge_credentials(values: Mapping[str, Any], base: Credentials) -> Credentials:
    if not values:
        return base
    return Credentials.model_validate({**base.model_dump(), **values})


def _from_env() -> Credentials:
    return Credentials(
        host=env_settings.HOST,
        username=env_settings.USER,
        password=env_settings.PASSWORD,
        database=env_settings.DATABASE,
        port=env_settings.PORT,
        socket=env_settings.SOCKET,
    )


_default_credentials = _from_env()


def get_credentials() -> Credentials:
    """Return the process-wide default credentials."""
    return _default_credentials


def set_credentials(
    host: Mapping[str, Any] | str | None = None,
    username: str | None = None,
    password: str | None = None,
    database: str | None = None,
    port: int | None = None,
    socket: str | None = None,
) -> Credentials:
    """Update the process-wide default credentials and return them."""
    global _default_credentials
    values = credential_values(host, username, password, database, port, socket)
    _default_credentials = merge_credentials(values, _default_credentials)
    return _default_credentials


def reset_credentials() -> Credentials:
    """Restore the defaults read from the environment."""
    global _default_credentials
    _default_credentials = _from_env()
    return _default_credentials
