"""SQLAlchemy definitions of the MySQL grant tables the cache is loaded from."""
from sqlalchemy import Column, DateTime, Enum, String, inspect
from sqlalchemy.types import TypeDecorator
from privcache.core.database import Base, GRANT_SCHEMA
from privcache.core.errors import UnknownPrivilegeColumn
from privcache.models.privileges import (
    COLUMN_PRIV_MEMBERS,
    LEVEL_MASKS,
    TABLE_PRIV_MEMBERS,
    GrantLevel,
    check_mask,
    resolve_column,
)


class PrivilegeSet(TypeDecorator):
    """A MySQL ``SET(...)`` column stored as a comma separated string.

    ``level`` names the grant level whose mask the members must respect.
    """

    impl = String(255)
    cache_ok = True

    def __init__(self, members, level: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.members = tuple(members)
        self.level = level

    def process_bind_param(self, value, dialect):
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        return ",".join(value)

    def process_result_value(self, value, dialect):
        if not value:
            return frozenset()
        return frozenset(m for m in value.split(",") if m)


YES_NO = ("N", "Y")


def is_flag_type(column_type) -> bool:
    """True for the yes/no enum type of a privilege flag column."""
    return isinstance(column_type, Enum) and tuple(sorted(column_type.enums)) == YES_NO


def _flag(name: str) -> Column:
    return Column(name, Enum(*YES_NO, name="grant_flag"), nullable=False, default="N", server_default="N")


# Global privileges, one yes/no column per privilege
class UserGrant(Base):
    __tablename__ = "user"
    __table_args__ = {"schema": GRANT_SCHEMA}

    host = Column("Host", String(60), primary_key=True, default="")
    user = Column("User", String(32), primary_key=True, default="")
    password = Column("Password", String(41), nullable=False, default="")
    select_priv = _flag("Select_priv")
    insert_priv = _flag("Insert_priv")
    update_priv = _flag("Update_priv")
    delete_priv = _flag("Delete_priv")
    create_priv = _flag("Create_priv")
    drop_priv = _flag("Drop_priv")
    reload_priv = _flag("Reload_priv")
    shutdown_priv = _flag("Shutdown_priv")
    process_priv = _flag("Process_priv")
    file_priv = _flag("File_priv")
    grant_priv = _flag("Grant_priv")
    references_priv = _flag("References_priv")
    index_priv = _flag("Index_priv")
    alter_priv = _flag("Alter_priv")
    show_db_priv = _flag("Show_db_priv")
    super_priv = _flag("Super_priv")
    create_tmp_table_priv = _flag("Create_tmp_table_priv")
    lock_tables_priv = _flag("Lock_tables_priv")
    execute_priv = _flag("Execute_priv")
    repl_slave_priv = _flag("Repl_slave_priv")
    repl_client_priv = _flag("Repl_client_priv")
    create_view_priv = _flag("Create_view_priv")
    show_view_priv = _flag("Show_view_priv")
    create_routine_priv = _flag("Create_routine_priv")
    alter_routine_priv = _flag("Alter_routine_priv")
    create_user_priv = _flag("Create_user_priv")
    event_priv = _flag("Event_priv")
    trigger_priv = _flag("Trigger_priv")
    create_tablespace_priv = _flag("Create_tablespace_priv")


# Database-level privileges
class DBGrant(Base):
    __tablename__ = "db"
    __table_args__ = {"schema": GRANT_SCHEMA}

    host = Column("Host", String(60), primary_key=True, default="")
    db = Column("DB", String(64), primary_key=True, default="")
    user = Column("User", String(32), primary_key=True, default="")
    select_priv = _flag("Select_priv")
    insert_priv = _flag("Insert_priv")
    update_priv = _flag("Update_priv")
    delete_priv = _flag("Delete_priv")
    create_priv = _flag("Create_priv")
    drop_priv = _flag("Drop_priv")
    grant_priv = _flag("Grant_priv")
    references_priv = _flag("References_priv")
    index_priv = _flag("Index_priv")
    alter_priv = _flag("Alter_priv")
    create_tmp_table_priv = _flag("Create_tmp_table_priv")
    lock_tables_priv = _flag("Lock_tables_priv")
    create_view_priv = _flag("Create_view_priv")
    show_view_priv = _flag("Show_view_priv")
    create_routine_priv = _flag("Create_routine_priv")
    alter_routine_priv = _flag("Alter_routine_priv")
    execute_priv = _flag("Execute_priv")
    event_priv = _flag("Event_priv")
    trigger_priv = _flag("Trigger_priv")


# Table-level privileges; Column_priv only flags that column grants exist
class TablesPrivGrant(Base):
    __tablename__ = "tables_priv"
    __table_args__ = {"schema": GRANT_SCHEMA}

    host = Column("Host", String(60), primary_key=True, default="")
    db = Column("DB", String(64), primary_key=True, default="")
    user = Column("User", String(32), primary_key=True, default="")
    table_name = Column("Table_name", String(64), primary_key=True, default="")
    grantor = Column("Grantor", String(93), nullable=False, default="")
    timestamp = Column("Timestamp", DateTime, nullable=True)
    table_priv = Column("Table_priv", PrivilegeSet(TABLE_PRIV_MEMBERS, GrantLevel.TABLES_PRIV.value),
                        nullable=False, default="")
    column_priv = Column("Column_priv", PrivilegeSet(COLUMN_PRIV_MEMBERS, GrantLevel.COLUMNS_PRIV.value),
                         nullable=False, default="")


# Column-level privileges
class ColumnsPrivGrant(Base):
    __tablename__ = "columns_priv"
    __table_args__ = {"schema": GRANT_SCHEMA}

    host = Column("Host", String(60), primary_key=True, default="")
    db = Column("DB", String(64), primary_key=True, default="")
    user = Column("User", String(32), primary_key=True, default="")
    table_name = Column("Table_name", String(64), primary_key=True, default="")
    column_name = Column("Column_name", String(64), primary_key=True, default="")
    timestamp = Column("Timestamp", DateTime, nullable=True)
    column_priv = Column("Column_priv", PrivilegeSet(COLUMN_PRIV_MEMBERS, GrantLevel.COLUMNS_PRIV.value),
                         nullable=False, default="")


GRANT_TABLES = {
    GrantLevel.USER: UserGrant.__table__.fullname,
    GrantLevel.DB: DBGrant.__table__.fullname,
    GrantLevel.TABLES_PRIV: TablesPrivGrant.__table__.fullname,
    GrantLevel.COLUMNS_PRIV: ColumnsPrivGrant.__table__.fullname,
}


def validate_live_grant_tables(bind):
    """Check the grant tables as they exist in the database against the bit map.

    ``validate_bitmap`` only sees the tables declared above. A server can carry
    privilege columns they do not declare (e.g. ``Create_role_priv``): on
    ``mysql.user`` / ``mysql.db`` every ``*_priv`` column must map to a bit
    legal at that level, on the set-valued tables it must be declared.
    """
    inspector = inspect(bind)
    for level, fullname in GRANT_TABLES.items():
        table = Base.metadata.tables[fullname]
        declared = {c.name.lower() for c in table.columns}
        set_valued = any(isinstance(c.type, PrivilegeSet) for c in table.columns)
        for column in inspector.get_columns(table.name, schema=table.schema):
            name = column["name"]
            if not name.lower().endswith("_priv"):
                continue
            if set_valued:
                if name.lower() not in declared:
                    raise UnknownPrivilegeColumn(name, level=level.value)
            else:
                try:
                    priv = resolve_column(name)
                except UnknownPrivilegeColumn as e:
                    raise e.bind(level.value)
                check_mask(priv, LEVEL_MASKS[level], level)
