"""
Process environment configuration.

Read once at import time from ``SQLINT_*`` environment variables (or a ``.env``
file). Connection defaults seed the process-wide default credentials; the
remaining values tune the driver and the bulk-load path.
"""

import tempfile

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SQLINT_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Connection defaults (process-wide credentials)
    HOST: str | None = None
    PORT: int | None = None
    USER: str | None = None
    PASSWORD: str | None = None
    DATABASE: str | None = None
    SOCKET: str | None = None

    CONNECT_TIMEOUT: int = 10
    # LOAD DATA LOCAL INFILE needs the client flag at connect time
    LOCAL_INFILE: bool = True
    TEMP_DIR: str = tempfile.gettempdir()
    # Log rewritten SQL and parameter types at DEBUG
    LOG_SQL: bool = False


settings = Settings()
