"""
Query settings and their three-layer cascade.

Resolution order for every key: per-call overrides -> per-session overrides ->
process-wide defaults. Keys are accepted in camelCase (``rowsIndexed``),
snake_case (``rows_indexed``) or any case/separator mix of them; unknown keys
are dropped.

The process-wide defaults are plain module state. Mutate them with
``configure()`` at startup; concurrent mutation from several threads is not
synchronized.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from sqlint.core.config import settings as env_settings

_log = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[_\-\s]+")


class QuerySettings(BaseModel):
    """Effective options for one query call."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    charset: str = "utf8"
    max_rows_using_insert: int = 1000
    no_rows_as_array: bool = False
    omit_single_key: bool = False
    rows_indexed: bool = False
    temp_dir: str = Field(default_factory=lambda: env_settings.TEMP_DIR)
    tokens: tuple[str, str] = ("<%", "%>")
    raw_tokens: tuple[str, str] = ("{", "}")
    throw_errors: bool = True

    @field_validator("tokens", "raw_tokens")
    @classmethod
    def _tokens_not_empty(cls, value: tuple[str, str]) -> tuple[str, str]:
        if not value[0] or not value[1]:
            raise ValueError("delimiter tokens must be non-empty strings")
        return value

    def public(self) -> dict[str, Any]:
        """Return the settings keyed by their camelCase names."""
        return self.model_dump(by_alias=True)


def canonical_key(name: str) -> str:
    """``rows_indexed``, ``rowsIndexed`` and ``Rows-Indexed`` all map to ``rowsindexed``."""
    return _SEPARATORS.sub("", name).lower()


_FIELDS_BY_KEY: dict[str, str] = {
    canonical_key(name): name for name in QuerySettings.model_fields
}


def recognized_overrides(overrides: Mapping[str, Any] | QuerySettings | None) -> dict[str, Any]:
    """Map *overrides* to field names, dropping keys that are not settings."""
    if overrides is None:
        return {}
    if isinstance(overrides, QuerySettings):
        return overrides.model_dump()

    updates: dict[str, Any] = {}
    for key, value in overrides.items():
        field = _FIELDS_BY_KEY.get(canonical_key(str(key)))
        if field is None:
            _log.debug("Ignoring unknown query setting %r", key)
            continue
        updates[field] = value
    return updates


def normalize_settings(
    overrides: Mapping[str, Any] | QuerySettings | None,
    base: QuerySettings,
) -> QuerySettings:
    """Apply recognised *overrides* on top of *base* and return the result."""
    updates = recognized_overrides(overrides)
    if not updates:
        return base
    return QuerySettings.model_validate({**base.model_dump(), **updates})


_default_query_settings = QuerySettings()


def get_default_query_settings() -> QuerySettings:
    """Return the process-wide default query settings."""
    return _default_query_settings


def configure(overrides: Mapping[str, Any]) -> QuerySettings:
    """Update the process-wide default query settings and return them."""
    global _default_query_settings
    _default_query_settings = normalize_settings(overrides, _default_query_settings)
    return _default_query_settings


def reset_default_query_settings() -> QuerySettings:
    """Restore the built-in defaults."""
    global _default_query_settings
    _default_query_settings = QuerySettings()
    return _default_query_settings
