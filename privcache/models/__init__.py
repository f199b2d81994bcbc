"""SQLAlchemy grant tables, privilege bits and cached records."""
from privcache.models.privileges import PrivilegeType, GrantLevel
from privcache.models.grant_tables import UserGrant, DBGrant, TablesPrivGrant, ColumnsPrivGrant, GRANT_TABLES
from privcache.models.records import UserRecord, DBRecord, TablePrivRecord, ColumnPrivRecord, Snapshot
from privcache.core.database import Base

__all__ = [
    "PrivilegeType", "GrantLevel",
    "UserGrant", "DBGrant", "TablesPrivGrant", "ColumnsPrivGrant", "GRANT_TABLES",
    "UserRecord", "DBRecord", "TablePrivRecord", "ColumnPrivRecord", "Snapshot",
    "Base",
]
