"""Privilege bits, per-level masks and the grant column -> bit map."""
from enum import Enum, IntFlag
from typing import Dict, List

from privcache.core.errors import PrivilegeOutsideMask, UnknownPrivilegeColumn


class PrivilegeType(IntFlag):
    SELECT = 1 << 0
    INSERT = 1 << 1
    UPDATE = 1 << 2
    DELETE = 1 << 3
    CREATE = 1 << 4
    DROP = 1 << 5
    RELOAD = 1 << 6
    SHUTDOWN = 1 << 7
    PROCESS = 1 << 8
    FILE = 1 << 9
    GRANT = 1 << 10
    REFERENCES = 1 << 11
    INDEX = 1 << 12
    ALTER = 1 << 13
    SHOW_DB = 1 << 14
    SUPER = 1 << 15
    CREATE_TMP_TABLE = 1 << 16
    LOCK_TABLES = 1 << 17
    EXECUTE = 1 << 18
    REPL_SLAVE = 1 << 19
    REPL_CLIENT = 1 << 20
    CREATE_VIEW = 1 << 21
    SHOW_VIEW = 1 << 22
    CREATE_ROUTINE = 1 << 23
    ALTER_ROUTINE = 1 << 24
    CREATE_USER = 1 << 25
    EVENT = 1 << 26
    TRIGGER = 1 << 27
    CREATE_TABLESPACE = 1 << 28


NO_PRIVILEGES = PrivilegeType(0)


class GrantLevel(str, Enum):
    USER = "user"
    DB = "db"
    TABLES_PRIV = "tables_priv"
    COLUMNS_PRIV = "columns_priv"


# Every privilege can be granted globally
GLOBAL_MASK = PrivilegeType(0)
for _priv in PrivilegeType:
    GLOBAL_MASK |= _priv

DB_MASK = (
    PrivilegeType.SELECT | PrivilegeType.INSERT | PrivilegeType.UPDATE | PrivilegeType.DELETE
    | PrivilegeType.CREATE | PrivilegeType.DROP | PrivilegeType.GRANT | PrivilegeType.REFERENCES
    | PrivilegeType.INDEX | PrivilegeType.ALTER | PrivilegeType.CREATE_TMP_TABLE
    | PrivilegeType.LOCK_TABLES | PrivilegeType.CREATE_VIEW | PrivilegeType.SHOW_VIEW
    | PrivilegeType.CREATE_ROUTINE | PrivilegeType.ALTER_ROUTINE | PrivilegeType.EXECUTE
    | PrivilegeType.EVENT | PrivilegeType.TRIGGER
)

TABLE_MASK = (
    PrivilegeType.SELECT | PrivilegeType.INSERT | PrivilegeType.UPDATE | PrivilegeType.DELETE
    | PrivilegeType.CREATE | PrivilegeType.DROP | PrivilegeType.GRANT | PrivilegeType.REFERENCES
    | PrivilegeType.INDEX | PrivilegeType.ALTER | PrivilegeType.CREATE_VIEW
    | PrivilegeType.SHOW_VIEW | PrivilegeType.TRIGGER
)

COLUMN_MASK = PrivilegeType.SELECT | PrivilegeType.INSERT | PrivilegeType.UPDATE | PrivilegeType.REFERENCES

LEVEL_MASKS: Dict[GrantLevel, PrivilegeType] = {
    GrantLevel.USER: GLOBAL_MASK,
    GrantLevel.DB: DB_MASK,
    GrantLevel.TABLES_PRIV: TABLE_MASK,
    GrantLevel.COLUMNS_PRIV: COLUMN_MASK,
}

# Flag columns of mysql.user / mysql.db, keyed by lower-cased column name
COLUMN_PRIVILEGES: Dict[str, PrivilegeType] = {
    "select_priv": PrivilegeType.SELECT,
    "insert_priv": PrivilegeType.INSERT,
    "update_priv": PrivilegeType.UPDATE,
    "delete_priv": PrivilegeType.DELETE,
    "create_priv": PrivilegeType.CREATE,
    "drop_priv": PrivilegeType.DROP,
    "reload_priv": PrivilegeType.RELOAD,
    "shutdown_priv": PrivilegeType.SHUTDOWN,
    "process_priv": PrivilegeType.PROCESS,
    "file_priv": PrivilegeType.FILE,
    "grant_priv": PrivilegeType.GRANT,
    "references_priv": PrivilegeType.REFERENCES,
    "index_priv": PrivilegeType.INDEX,
    "alter_priv": PrivilegeType.ALTER,
    "show_db_priv": PrivilegeType.SHOW_DB,
    "super_priv": PrivilegeType.SUPER,
    "create_tmp_table_priv": PrivilegeType.CREATE_TMP_TABLE,
    "lock_tables_priv": PrivilegeType.LOCK_TABLES,
    "execute_priv": PrivilegeType.EXECUTE,
    "repl_slave_priv": PrivilegeType.REPL_SLAVE,
    "repl_client_priv": PrivilegeType.REPL_CLIENT,
    "create_view_priv": PrivilegeType.CREATE_VIEW,
    "show_view_priv": PrivilegeType.SHOW_VIEW,
    "create_routine_priv": PrivilegeType.CREATE_ROUTINE,
    "alter_routine_priv": PrivilegeType.ALTER_ROUTINE,
    "create_user_priv": PrivilegeType.CREATE_USER,
    "event_priv": PrivilegeType.EVENT,
    "trigger_priv": PrivilegeType.TRIGGER,
    "create_tablespace_priv": PrivilegeType.CREATE_TABLESPACE,
}

# Members of the set-valued Table_priv / Column_priv columns
SET_MEMBER_PRIVILEGES: Dict[str, PrivilegeType] = {
    "select": PrivilegeType.SELECT,
    "insert": PrivilegeType.INSERT,
    "update": PrivilegeType.UPDATE,
    "delete": PrivilegeType.DELETE,
    "create": PrivilegeType.CREATE,
    "drop": PrivilegeType.DROP,
    "grant": PrivilegeType.GRANT,
    "references": PrivilegeType.REFERENCES,
    "index": PrivilegeType.INDEX,
    "alter": PrivilegeType.ALTER,
    "create view": PrivilegeType.CREATE_VIEW,
    "show view": PrivilegeType.SHOW_VIEW,
    "trigger": PrivilegeType.TRIGGER,
}

# Declared members of the set-valued columns, as stored by MySQL
TABLE_PRIV_MEMBERS = (
    "Select", "Insert", "Update", "Delete", "Create", "Drop", "Grant",
    "References", "Index", "Alter", "Create View", "Show view", "Trigger",
)
COLUMN_PRIV_MEMBERS = ("Select", "Insert", "Update", "References")


def canonical_name(name: str) -> str:
    return name.strip().lower()


def resolve_column(name: str) -> PrivilegeType:
    """Return the bit granted by the flag column ``name``."""
    priv = COLUMN_PRIVILEGES.get(canonical_name(name))
    if priv is None:
        raise UnknownPrivilegeColumn(name)
    return priv


def resolve_set_member(name: str) -> PrivilegeType:
    """Return the bit named by one member of a set-valued privilege column."""
    priv = SET_MEMBER_PRIVILEGES.get(canonical_name(name))
    if priv is None:
        raise UnknownPrivilegeColumn(name)
    return priv


def privilege_names(privileges: PrivilegeType) -> List[str]:
    """Sorted names of the bits set in ``privileges``."""
    return sorted(p.name for p in PrivilegeType if p & privileges)


def check_mask(privileges: PrivilegeType, mask: PrivilegeType, level: GrantLevel):
    """Raise PrivilegeOutsideMask if ``privileges`` has bits outside ``mask``."""
    illegal = PrivilegeType(int(privileges) & ~int(mask) & int(GLOBAL_MASK))
    if illegal:
        raise PrivilegeOutsideMask(",".join(privilege_names(illegal)), level=level.value)


def validate_bitmap(metadata):
    """Check the bit map against the declared grant table schema.

    Every yes/no flag column of ``mysql.user`` and ``mysql.db`` and every
    declared member of the set-valued columns must map to a bit that is legal
    at the owning table's level. Meant to run once at process start.
    """
    from privcache.models.grant_tables import GRANT_TABLES, PrivilegeSet, is_flag_type

    for level, table_name in GRANT_TABLES.items():
        table = metadata.tables[table_name]
        mask = LEVEL_MASKS[level]
        for column in table.columns:
            if is_flag_type(column.type):
                check_mask(resolve_column(column.name), mask, level)
            elif isinstance(column.type, PrivilegeSet):
                member_mask = LEVEL_MASKS[GrantLevel(column.type.level)]
                for member in column.type.members:
                    check_mask(resolve_set_member(member), member_mask, level)


# Masks narrow from global down to column level
assert COLUMN_MASK & TABLE_MASK == COLUMN_MASK
assert TABLE_MASK & DB_MASK == TABLE_MASK
assert DB_MASK & GLOBAL_MASK == DB_MASK
