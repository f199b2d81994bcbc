"""Access to the grant tables."""
from privcache.crud.row_source import (
    StorageKind,
    ColumnDescriptor,
    Row,
    RowSource,
    QueryExecutor,
    ResultRowSource,
    SessionQueryExecutor,
    storage_kind,
    table_for_query,
)

__all__ = [
    "StorageKind",
    "ColumnDescriptor",
    "Row",
    "RowSource",
    "QueryExecutor",
    "ResultRowSource",
    "SessionQueryExecutor",
    "storage_kind",
    "table_for_query",
]
