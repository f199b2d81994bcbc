"""Decoders turning one grant-table row into one typed privilege record."""
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Sequence, Tuple

from privcache.core.errors import MalformedTimestamp, UnknownPrivilegeColumn
from privcache.crud.row_source import ColumnDescriptor, Row, StorageKind
from privcache.models.privileges import (
    COLUMN_MASK,
    DB_MASK,
    GLOBAL_MASK,
    NO_PRIVILEGES,
    TABLE_MASK,
    GrantLevel,
    PrivilegeType,
    check_mask,
    resolve_column,
    resolve_set_member,
)
from privcache.models.records import (
    ZERO_TIME,
    ColumnPrivRecord,
    DBRecord,
    TablePrivRecord,
    UserRecord,
)


@dataclass(frozen=True)
class RowLayout:
    """How the columns of one grant table land in its record type.

    ``identity`` maps lower-cased column names to record fields,
    ``flag_field`` receives the bits of yes/no flag columns and
    ``set_fields`` maps set-valued columns to the field they fill.
    ``masks`` holds the legal bits for every privilege field.
    """

    level: GrantLevel
    record_type: type
    identity: Dict[str, str]
    flag_field: str
    masks: Dict[str, PrivilegeType]
    set_fields: Dict[str, str] = field(default_factory=dict)
    time_fields: Tuple[str, ...] = ()


USER_LAYOUT = RowLayout(
    level=GrantLevel.USER,
    record_type=UserRecord,
    identity={"host": "host", "user": "user", "password": "password_hash"},
    flag_field="privileges",
    masks={"privileges": GLOBAL_MASK},
)

DB_LAYOUT = RowLayout(
    level=GrantLevel.DB,
    record_type=DBRecord,
    identity={"host": "host", "db": "db", "user": "user"},
    flag_field="privileges",
    masks={"privileges": DB_MASK},
)

TABLES_PRIV_LAYOUT = RowLayout(
    level=GrantLevel.TABLES_PRIV,
    record_type=TablePrivRecord,
    identity={
        "host": "host",
        "db": "db",
        "user": "user",
        "table_name": "table_name",
        "grantor": "grantor",
        "timestamp": "granted_at",
    },
    flag_field="table_privileges",
    masks={"table_privileges": TABLE_MASK, "column_privileges": COLUMN_MASK},
    set_fields={"table_priv": "table_privileges", "column_priv": "column_privileges"},
    time_fields=("granted_at",),
)

COLUMNS_PRIV_LAYOUT = RowLayout(
    level=GrantLevel.COLUMNS_PRIV,
    record_type=ColumnPrivRecord,
    identity={
        "host": "host",
        "db": "db",
        "user": "user",
        "table_name": "table_name",
        "column_name": "column_name",
        "timestamp": "granted_at",
    },
    flag_field="privileges",
    masks={"privileges": COLUMN_MASK},
    set_fields={"column_priv": "privileges"},
    time_fields=("granted_at",),
)


def decode_row(layout: RowLayout, row: Row, columns: Sequence[ColumnDescriptor]):
    """Decode ``row`` into a ``layout.record_type`` record.

    Returns ``(record, issues)`` where ``issues`` lists the timestamps that
    could not be parsed and were replaced by the zero time. Raises
    UnknownPrivilegeColumn for flag columns or set members missing from the
    bit map, and PrivilegeOutsideMask for bits illegal at the level.
    """
    values = {}
    privileges = {name: NO_PRIVILEGES for name in layout.masks}
    issues: List[MalformedTimestamp] = []

    for i, column in enumerate(columns):
        name = column.name.lower()
        target = layout.identity.get(name)
        if target is not None:
            if target in layout.time_fields:
                try:
                    values[target] = row.get_time(i)
                except MalformedTimestamp as issue:
                    values[target] = ZERO_TIME
                    issues.append(issue)
            else:
                values[target] = row.get_string(i)
        elif column.storage_kind is StorageKind.ENUM:
            # Resolve even when not granted: an unmapped flag column is never skipped
            priv = resolve_column(column.name)
            if row.get_enum(i) == "Y":
                privileges[layout.flag_field] |= priv
        elif column.storage_kind is StorageKind.SET or name in layout.set_fields:
            set_field = layout.set_fields.get(name)
            if set_field is None:
                raise UnknownPrivilegeColumn(column.name)
            for member in row.get_set(i):
                privileges[set_field] |= resolve_set_member(member)

    for field_name, mask in layout.masks.items():
        check_mask(privileges[field_name], mask, layout.level)

    values.update(privileges)
    return layout.record_type(**values), issues


def decode_user_row(row: Row, columns: Sequence[ColumnDescriptor]):
    return decode_row(USER_LAYOUT, row, columns)


def decode_db_row(row: Row, columns: Sequence[ColumnDescriptor]):
    return decode_row(DB_LAYOUT, row, columns)


def decode_tables_priv_row(row: Row, columns: Sequence[ColumnDescriptor]):
    return decode_row(TABLES_PRIV_LAYOUT, row, columns)


def decode_columns_priv_row(row: Row, columns: Sequence[ColumnDescriptor]):
    return decode_row(COLUMNS_PRIV_LAYOUT, row, columns)


RowDecoder = Callable[[Row, Sequence[ColumnDescriptor]], tuple]

DECODERS: Dict[GrantLevel, RowDecoder] = {
    GrantLevel.USER: decode_user_row,
    GrantLevel.DB: decode_db_row,
    GrantLevel.TABLES_PRIV: decode_tables_priv_row,
    GrantLevel.COLUMNS_PRIV: decode_columns_priv_row,
}
