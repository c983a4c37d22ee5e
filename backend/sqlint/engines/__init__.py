"""
Engines: SQL template execution, transactions, bulk insertion.
"""

from sqlint.engines.sql import QueryExecutor, extract, secure_sql_value, split_statements, trim
from sqlint.engines.transaction import TransactionContext, TransactionCoordinator

__all__ = [
    "QueryExecutor",
    "TransactionContext",
    "TransactionCoordinator",
    "extract",
    "secure_sql_value",
    "split_statements",
    "trim",
]
