"""Loading one grant table into an ordered sequence of privilege records."""
import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from privcache.core.errors import (
    FetchError,
    MalformedTimestamp,
    PrivilegeLoadError,
    ReloadCancelled,
    RowDecodeError,
)
from privcache.core.logging_config import logger
from privcache.crud.row_source import QueryExecutor
from privcache.models.privileges import GrantLevel
from privcache.services.decoders import DECODERS, RowDecoder

# The ordering of each query is what most-specific-match resolution relies on
LOAD_QUERIES: Dict[GrantLevel, str] = {
    GrantLevel.USER: "select * from mysql.user order by host, user;",
    GrantLevel.DB: "select * from mysql.db order by host, db, user;",
    GrantLevel.TABLES_PRIV: "select * from mysql.tables_priv order by host, db, user, table_name;",
    GrantLevel.COLUMNS_PRIV: "select * from mysql.columns_priv order by host, db, user, table_name, column_name;",
}

LOAD_ORDER = (GrantLevel.USER, GrantLevel.DB, GrantLevel.TABLES_PRIV, GrantLevel.COLUMNS_PRIV)


@dataclass(frozen=True)
class LevelLoad:
    """The complete result of loading one grant level."""

    level: GrantLevel
    records: tuple
    issues: Tuple[MalformedTimestamp, ...] = ()


def _check_cancelled(
    level: GrantLevel,
    row: Optional[int],
    cancel: Optional[threading.Event],
    deadline: Optional[float],
):
    if cancel is not None and cancel.is_set():
        raise ReloadCancelled("Reload cancelled", level=level.value, row=row)
    if deadline is not None and time.monotonic() >= deadline:
        raise ReloadCancelled("Reload timed out", level=level.value, row=row)


def load_table(
    executor: QueryExecutor,
    level: GrantLevel,
    decode_row: Optional[RowDecoder] = None,
    cancel: Optional[threading.Event] = None,
    deadline: Optional[float] = None,
) -> LevelLoad:
    """Run the load query of ``level`` and decode every row it returns.

    The row source is closed on every exit path. Records are accumulated in a
    local list, so a failure never hands out a partial sequence. Errors carry
    the level and the 1-based ordinal of the failing row.
    """
    decode_row = decode_row or DECODERS[level]
    query = LOAD_QUERIES[level]

    _check_cancelled(level, None, cancel, deadline)
    try:
        source = executor.execute_query(query)
    except PrivilegeLoadError as e:
        raise e.bind(level.value)
    except Exception as e:
        raise FetchError(f"Query failed: {e}", level=level.value) from e

    records = []
    issues = []
    with source:
        try:
            columns = source.columns()
        except PrivilegeLoadError as e:
            raise e.bind(level.value)
        except Exception as e:
            raise FetchError(f"Reading column metadata failed: {e}", level=level.value) from e

        ordinal = 0
        while True:
            ordinal += 1
            _check_cancelled(level, ordinal, cancel, deadline)
            try:
                row = source.next_row()
            except PrivilegeLoadError as e:
                raise e.bind(level.value, ordinal)
            except Exception as e:
                raise FetchError(f"Fetching row failed: {e}", level=level.value, row=ordinal) from e
            if row is None:
                break

            try:
                record, row_issues = decode_row(row, columns)
            except PrivilegeLoadError as e:
                raise e.bind(level.value, ordinal)
            except Exception as e:
                raise RowDecodeError(f"Decoding row failed: {e}", level=level.value, row=ordinal) from e

            for issue in row_issues:
                issue.bind(level.value, ordinal)
                logger.warning(f"Timestamp defaulted to zero value: {issue}")
            records.append(record)
            issues.extend(row_issues)

    logger.debug(f"Loaded {len(records)} rows from {level.value}")
    return LevelLoad(level=level, records=tuple(records), issues=tuple(issues))


def load_user_table(executor: QueryExecutor, **kwargs) -> LevelLoad:
    """Load mysql.user."""
    return load_table(executor, GrantLevel.USER, **kwargs)


def load_db_table(executor: QueryExecutor, **kwargs) -> LevelLoad:
    """Load mysql.db."""
    return load_table(executor, GrantLevel.DB, **kwargs)


def load_tables_priv_table(executor: QueryExecutor, **kwargs) -> LevelLoad:
    """Load mysql.tables_priv."""
    return load_table(executor, GrantLevel.TABLES_PRIV, **kwargs)


def load_columns_priv_table(executor: QueryExecutor, **kwargs) -> LevelLoad:
    """Load mysql.columns_priv."""
    return load_table(executor, GrantLevel.COLUMNS_PRIV, **kwargs)


LEVEL_LOADERS = {
    GrantLevel.USER: load_user_table,
    GrantLevel.DB: load_db_table,
    GrantLevel.TABLES_PRIV: load_tables_priv_table,
    GrantLevel.COLUMNS_PRIV: load_columns_priv_table,
}


def load_all(
    executor: QueryExecutor,
    cancel: Optional[threading.Event] = None,
    deadline: Optional[float] = None,
) -> Dict[GrantLevel, LevelLoad]:
    """Load the four grant levels in order; stops at the first failure."""
    loads = {}
    for level in LOAD_ORDER:
        loads[level] = LEVEL_LOADERS[level](executor, cancel=cancel, deadline=deadline)
    return loads
