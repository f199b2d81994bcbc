"""Row source contract for the grant load queries, and its SQLAlchemy implementation."""
import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Iterator, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from sqlalchemy import DateTime, String, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from privcache.core.database import Base
from privcache.core.errors import FetchError, MalformedTimestamp
from privcache.models.grant_tables import PrivilegeSet, is_flag_type
from privcache.models.records import ZERO_TIME

# MySQL's "no date" value
MYSQL_ZERO_TIMESTAMPS = ("0000-00-00 00:00:00", "0000-00-00")


class StorageKind(str, Enum):
    STRING = "string"
    ENUM = "enum"
    SET = "set"
    TIMESTAMP = "timestamp"
    OTHER = "other"


@dataclass(frozen=True)
class ColumnDescriptor:
    name: str
    storage_kind: StorageKind = StorageKind.OTHER


class Row:
    """One fetched row with typed accessors by column position."""

    def __init__(self, values: Sequence, columns: Sequence[ColumnDescriptor]):
        self.values = tuple(values)
        self.columns = tuple(columns)

    def __len__(self) -> int:
        return len(self.values)

    def kind(self, i: int) -> StorageKind:
        return self.columns[i].storage_kind

    def get_string(self, i: int) -> str:
        value = self.values[i]
        if value is None:
            return ""
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    def get_enum(self, i: int) -> str:
        return self.get_string(i)

    def get_set(self, i: int) -> Tuple[str, ...]:
        """Members of a set-valued column; accepts "a,b" strings or native sets."""
        value = self.values[i]
        if value is None:
            return ()
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        if isinstance(value, str):
            members = value.split(",")
        else:
            members = list(value)
        return tuple(m.strip() for m in members if m and m.strip())

    def get_time(self, i: int) -> datetime:
        """Parse a timestamp column; raises MalformedTimestamp when unparseable."""
        value = self.values[i]
        if value is None:
            return ZERO_TIME
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        raw = self.get_string(i).strip()
        if not raw or raw in MYSQL_ZERO_TIMESTAMPS:
            return ZERO_TIME
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            raise MalformedTimestamp(self.columns[i].name, value)


class RowSource:
    """Lazy, forward-only rows of one executed query.

    Subclasses implement ``columns``, ``next_row`` and ``close``; ``next_row``
    returns None once the rows are exhausted.
    """

    def columns(self) -> List[ColumnDescriptor]:
        raise NotImplementedError

    def next_row(self) -> Optional[Row]:
        raise NotImplementedError

    def close(self):
        pass

    def __iter__(self) -> Iterator[Row]:
        while True:
            row = self.next_row()
            if row is None:
                return
            yield row

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


@runtime_checkable
class QueryExecutor(Protocol):
    """Anything able to run one of the fixed load queries."""

    def execute_query(self, query: str) -> RowSource:
        ...


PRIVILEGE_COLUMN_SUFFIX = "_priv"


def storage_kind(column_type) -> StorageKind:
    """Map a declared SQLAlchemy column type to the kind the decoders dispatch on."""
    if isinstance(column_type, PrivilegeSet):
        return StorageKind.SET
    if is_flag_type(column_type):
        return StorageKind.ENUM
    if isinstance(column_type, DateTime):
        return StorageKind.TIMESTAMP
    if isinstance(column_type, String):
        return StorageKind.STRING
    return StorageKind.OTHER


def undeclared_kind(table, name: str) -> StorageKind:
    """Kind of a result column the declared ``table`` does not know.

    A ``*_priv`` column still reaches the decoders as a privilege column of
    the kind ``table`` uses for privileges, so an unmapped one fails the load
    instead of being skipped.
    """
    if not name.lower().endswith(PRIVILEGE_COLUMN_SUFFIX):
        return StorageKind.OTHER
    if any(isinstance(c.type, PrivilegeSet) for c in table.columns):
        return StorageKind.SET
    return StorageKind.ENUM


_FROM_TABLE = re.compile(r"\bfrom\s+([\w.]+)", re.IGNORECASE)


def table_for_query(query: str, metadata=None):
    """The declared grant table a load query reads from."""
    metadata = metadata if metadata is not None else Base.metadata
    match = _FROM_TABLE.search(query)
    if not match:
        raise FetchError(f"Cannot tell which table '{query}' reads from")
    name = match.group(1).lower()
    for key, table in metadata.tables.items():
        if key.lower() == name:
            return table
    raise FetchError(f"No column metadata declared for table '{match.group(1)}'")


class ResultRowSource(RowSource):
    """RowSource over a SQLAlchemy ``Result``."""

    def __init__(self, result, table):
        self.result = result
        declared = {c.name.lower(): c for c in table.columns}
        descriptors = []
        for key in result.keys():
            column = declared.get(key.lower())
            if column is not None:
                kind = storage_kind(column.type)
            else:
                kind = undeclared_kind(table, key)
            descriptors.append(ColumnDescriptor(name=key, storage_kind=kind))
        self._columns = descriptors

    def columns(self) -> List[ColumnDescriptor]:
        return list(self._columns)

    def next_row(self) -> Optional[Row]:
        try:
            values = self.result.fetchone()
        except SQLAlchemyError as e:
            raise FetchError(f"Fetching row failed: {e}") from e
        if values is None:
            return None
        return Row(tuple(values), self._columns)

    def close(self):
        self.result.close()


class SessionQueryExecutor:
    """Runs the load queries on a SQLAlchemy session."""

    def __init__(self, db: Session, metadata=None):
        self.db = db
        self.metadata = metadata if metadata is not None else Base.metadata

    def execute_query(self, query: str) -> RowSource:
        table = table_for_query(query, self.metadata)
        try:
            result = self.db.execute(text(query))
        except SQLAlchemyError as e:
            raise FetchError(f"Query failed: {e}") from e
        return ResultRowSource(result, table)
