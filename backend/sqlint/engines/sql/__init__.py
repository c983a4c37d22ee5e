"""
SQL template processing: token extraction, clean-up, literal formatting, execution.

Exports: extract, trim, split_statements, secure_sql_value, QueryExecutor.
"""

from sqlint.engines.sql.executor import PLACEHOLDER, QueryExecutor, insert_id_range, shape_rows
from sqlint.engines.sql.extractor import ExtractedValue, extract, substitute
from sqlint.engines.sql.filters import quote_identifier, secure_sql_value, sql_string
from sqlint.engines.sql.parser import split_statements, trim

__all__ = [
    "PLACEHOLDER",
    "QueryExecutor",
    "insert_id_range",
    "shape_rows",
    "ExtractedValue",
    "extract",
    "substitute",
    "quote_identifier",
    "secure_sql_value",
    "sql_string",
    "split_statements",
    "trim",
]
