"""Pydantic schemas."""
from privcache.schemas.schemas import (
    UserRecordResponse, DBRecordResponse, TablePrivRecordResponse, ColumnPrivRecordResponse,
    SnapshotSummary, SnapshotResponse,
    LoadErrorResponse, CacheStatusResponse
)

__all__ = [
    "UserRecordResponse", "DBRecordResponse", "TablePrivRecordResponse", "ColumnPrivRecordResponse",
    "SnapshotSummary", "SnapshotResponse",
    "LoadErrorResponse", "CacheStatusResponse"
]
