"""
Literal and identifier formatting for generated SQL.

``secure_sql_value`` prepares a Python value for a generated statement so it
re-enters the normal parameter-binding path: it is wrapped in the delimiter
tokens and bound as a typed parameter by the executor. Strings wrapped in the
raw tokens (``{...}`` by default) are trusted SQL fragments and pass through
unwrapped; never feed untrusted input through them.
"""

from typing import Any

from sqlint.core.settings import QuerySettings, get_default_query_settings

# MySQL string literal escape: backslash first, then single quotes
_SQL_STRING_ESCAPE = str.maketrans({"\\": "\\\\", "'": "''"})


def secure_sql_value(value: Any, settings: QuerySettings | None = None) -> str:
    """
    Format *value* for inclusion in a generated statement.

    - ``"{NOW()}"`` -> ``NOW()`` (raw fragment)
    - ``""`` -> ``''``, ``None`` -> ``NULL``
    - ``True``/``False`` -> ``<%1%>``/``<%0%>``
    - anything else -> ``<%value%>``
    """
    s = settings or get_default_query_settings()
    raw_open, raw_close = s.raw_tokens
    if (
        isinstance(value, str)
        and len(value) >= len(raw_open) + len(raw_close)
        and value.startswith(raw_open)
        and value.endswith(raw_close)
    ):
        return value[len(raw_open) : len(value) - len(raw_close)]
    if value == "" and isinstance(value, str):
        return "''"
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        value = int(value)
    opening, closing = s.tokens
    return f"{opening}{value}{closing}"


def sql_string(value: Any) -> str:
    """Quote *value* as a MySQL string literal."""
    return "'" + str(value).translate(_SQL_STRING_ESCAPE) + "'"


def quote_identifier(name: str) -> str:
    """Backtick-quote a table, column or savepoint name."""
    return "`" + str(name).replace("`", "``") + "`"
