"""Typed privilege records and the immutable snapshot that bundles them."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Tuple

from privcache.core.errors import MalformedTimestamp
from privcache.models.privileges import NO_PRIVILEGES, PrivilegeType

# Value used for absent or unparseable timestamps
ZERO_TIME = datetime.min


@dataclass(frozen=True)
class UserRecord:
    host: str = ""
    user: str = ""
    password_hash: str = ""
    privileges: PrivilegeType = NO_PRIVILEGES


@dataclass(frozen=True)
class DBRecord:
    host: str = ""
    db: str = ""
    user: str = ""
    privileges: PrivilegeType = NO_PRIVILEGES


@dataclass(frozen=True)
class TablePrivRecord:
    """A table grant.

    ``column_privileges`` only says that some column-level grant exists on the
    table; the per-column detail lives in ColumnPrivRecord.
    """

    host: str = ""
    db: str = ""
    user: str = ""
    table_name: str = ""
    grantor: str = ""
    granted_at: datetime = ZERO_TIME
    table_privileges: PrivilegeType = NO_PRIVILEGES
    column_privileges: PrivilegeType = NO_PRIVILEGES


@dataclass(frozen=True)
class ColumnPrivRecord:
    host: str = ""
    db: str = ""
    user: str = ""
    table_name: str = ""
    column_name: str = ""
    granted_at: datetime = ZERO_TIME
    privileges: PrivilegeType = NO_PRIVILEGES


@dataclass(frozen=True)
class Snapshot:
    """One complete generation of the privilege cache.

    Each sequence keeps the order of its load query, which the matching
    logic relies on for most-specific-match resolution. Snapshots are never
    edited after construction; a reload always builds a new one.
    """

    users: Tuple[UserRecord, ...] = ()
    dbs: Tuple[DBRecord, ...] = ()
    tables_priv: Tuple[TablePrivRecord, ...] = ()
    columns_priv: Tuple[ColumnPrivRecord, ...] = ()
    generation: int = 0
    loaded_at: datetime = ZERO_TIME
    timestamp_issues: Tuple[MalformedTimestamp, ...] = field(default=(), compare=False)

    def records(self) -> Tuple[tuple, tuple, tuple, tuple]:
        """The four record sequences, in load order."""
        return self.users, self.dbs, self.tables_priv, self.columns_priv

    def counts(self) -> Dict[str, int]:
        return {
            "user": len(self.users),
            "db": len(self.dbs),
            "tables_priv": len(self.tables_priv),
            "columns_priv": len(self.columns_priv),
        }
