"""
Statements and staging files for bulk insertion.

Small batches become one multi-row ``INSERT`` whose values go through
``secure_sql_value``; large batches are written to a temporary CSV file and
loaded with ``LOAD DATA LOCAL INFILE``.
"""

from __future__ import annotations

import csv
import logging
import os
import uuid
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from sqlint.core.settings import QuerySettings
from sqlint.engines.sql.filters import quote_identifier, secure_sql_value, sql_string

_log = logging.getLogger(__name__)

# LOAD DATA reads \N as NULL; with the default ESCAPED BY '\\' a literal
# backslash must be doubled.
NULL_MARKER = "\\N"


def normalize_rows(
    rows: Iterable[Mapping[str, Any] | Sequence[Any]],
    fields: Sequence[str] = (),
) -> tuple[list[list[Any]], list[str]]:
    """
    Return rows as value lists plus the column names to insert into.

    Mapping rows are read in *fields* order; without *fields* the keys of the
    first mapping row are used.
    """
    columns = list(fields)
    out: list[list[Any]] = []
    for row in rows:
        if isinstance(row, Mapping):
            if not columns:
                columns = list(row.keys())
            out.append([row.get(c) for c in columns])
        else:
            out.append(list(row))
    return out, columns


def use_insert(row_count: int, settings: QuerySettings) -> bool:
    """True if *row_count* rows go through a multi-row INSERT (negative limit: always)."""
    limit = settings.max_rows_using_insert
    return limit < 0 or row_count <= limit


def column_list(fields: Sequence[str]) -> str:
    return "(" + ", ".join(quote_identifier(f) for f in fields) + ")" if fields else ""


def build_insert_sql(
    table: str,
    rows: Sequence[Sequence[Any]],
    fields: Sequence[str],
    settings: QuerySettings,
) -> str:
    values = ", ".join(
        "(" + ", ".join(secure_sql_value(v, settings) for v in row) + ")" for row in rows
    )
    columns = column_list(fields)
    return f"INSERT INTO {quote_identifier(table)} {columns + ' ' if columns else ''}VALUES {values}"


def csv_value(value: Any) -> str:
    if value is None:
        return NULL_MARKER
    if isinstance(value, bool):
        value = int(value)
    return str(value).replace("\\", "\\\\")


def csv_rows(rows: Iterable[Sequence[Any]]) -> list[list[str]]:
    return [[csv_value(v) for v in row] for row in rows]


def write_staging_file(rows: Sequence[Sequence[Any]], temp_dir: str) -> str:
    """Write *rows* to a new CSV file in *temp_dir* and return its path."""
    path = os.path.join(temp_dir, f"{uuid.uuid4()}.csv")
    with open(path, "w", newline="", encoding="utf-8") as fh:
        writer = csv.writer(fh, lineterminator="\r\n")
        writer.writerows(csv_rows(rows))
    _log.debug("Staged %d rows in %s", len(rows), path)
    return path


def remove_staging_file(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        _log.debug("Staging file %s already removed", path)


def build_load_sql(path: str, table: str, fields: Sequence[str], charset: str) -> str:
    sql = (
        f"LOAD DATA LOCAL INFILE {sql_string(path)} "
        f"INTO TABLE {quote_identifier(table)} "
        f"CHARACTER SET {charset} "
        "FIELDS TERMINATED BY ',' "
        "OPTIONALLY ENCLOSED BY '\"' "
        "LINES TERMINATED BY '\\r\\n'"
    )
    if fields:
        sql += " " + column_list(fields)
    return sql


def loaded_id_range(last_id: int, row_count: int) -> list[int]:
    """Ids of *row_count* rows loaded in one go, given the highest id afterwards."""
    if not last_id:
        return []
    return list(range(last_id - row_count + 1, last_id + 1))
