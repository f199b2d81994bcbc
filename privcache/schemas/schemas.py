"""Pydantic schemas for privilege cache responses."""
from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import datetime

from privcache.models.privileges import privilege_names
from privcache.models.records import ColumnPrivRecord, DBRecord, Snapshot, TablePrivRecord, UserRecord


# --- Record Schemas ---
class UserRecordResponse(BaseModel):
    host: str
    user: str
    privileges: int
    privilege_names: List[str]

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserRecordResponse":
        # password_hash is not exposed over HTTP
        return cls(
            host=record.host,
            user=record.user,
            privileges=int(record.privileges),
            privilege_names=privilege_names(record.privileges),
        )


class DBRecordResponse(BaseModel):
    host: str
    db: str
    user: str
    privileges: int
    privilege_names: List[str]

    @classmethod
    def from_record(cls, record: DBRecord) -> "DBRecordResponse":
        return cls(
            host=record.host,
            db=record.db,
            user=record.user,
            privileges=int(record.privileges),
            privilege_names=privilege_names(record.privileges),
        )


class TablePrivRecordResponse(BaseModel):
    host: str
    db: str
    user: str
    table_name: str
    grantor: str
    granted_at: datetime
    table_privileges: int
    table_privilege_names: List[str]
    column_privileges: int
    column_privilege_names: List[str]

    @classmethod
    def from_record(cls, record: TablePrivRecord) -> "TablePrivRecordResponse":
        return cls(
            host=record.host,
            db=record.db,
            user=record.user,
            table_name=record.table_name,
            grantor=record.grantor,
            granted_at=record.granted_at,
            table_privileges=int(record.table_privileges),
            table_privilege_names=privilege_names(record.table_privileges),
            column_privileges=int(record.column_privileges),
            column_privilege_names=privilege_names(record.column_privileges),
        )


class ColumnPrivRecordResponse(BaseModel):
    host: str
    db: str
    user: str
    table_name: str
    column_name: str
    granted_at: datetime
    privileges: int
    privilege_names: List[str]

    @classmethod
    def from_record(cls, record: ColumnPrivRecord) -> "ColumnPrivRecordResponse":
        return cls(
            host=record.host,
            db=record.db,
            user=record.user,
            table_name=record.table_name,
            column_name=record.column_name,
            granted_at=record.granted_at,
            privileges=int(record.privileges),
            privilege_names=privilege_names(record.privileges),
        )


# --- Snapshot Schemas ---
class SnapshotSummary(BaseModel):
    generation: int
    loaded_at: datetime
    counts: Dict[str, int]
    timestamp_issues: int = 0

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "SnapshotSummary":
        return cls(
            generation=snapshot.generation,
            loaded_at=snapshot.loaded_at,
            counts=snapshot.counts(),
            timestamp_issues=len(snapshot.timestamp_issues),
        )


class SnapshotResponse(SnapshotSummary):
    users: List[UserRecordResponse]
    dbs: List[DBRecordResponse]
    tables_priv: List[TablePrivRecordResponse]
    columns_priv: List[ColumnPrivRecordResponse]

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "SnapshotResponse":
        users, dbs, tables_priv, columns_priv = snapshot.records()
        return cls(
            generation=snapshot.generation,
            loaded_at=snapshot.loaded_at,
            counts=snapshot.counts(),
            timestamp_issues=len(snapshot.timestamp_issues),
            users=[UserRecordResponse.from_record(r) for r in users],
            dbs=[DBRecordResponse.from_record(r) for r in dbs],
            tables_priv=[TablePrivRecordResponse.from_record(r) for r in tables_priv],
            columns_priv=[ColumnPrivRecordResponse.from_record(r) for r in columns_priv],
        )


# --- Cache Status Schemas ---
class LoadErrorResponse(BaseModel):
    error: str
    message: str
    level: Optional[str] = None
    row: Optional[int] = None


class CacheStatusResponse(BaseModel):
    state: str
    generation: int
    last_reload_at: Optional[datetime] = None
    snapshot: Optional[SnapshotSummary] = None
    last_error: Optional[LoadErrorResponse] = None
