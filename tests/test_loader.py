"""Table loader tests."""
import threading
import time
import pytest
from privcache.core.errors import (
    FetchError,
    PrivilegeLoadError,
    ReloadCancelled,
    RowDecodeError,
    UnknownPrivilegeColumn,
)
from privcache.models.privileges import GrantLevel, PrivilegeType
from privcache.services.loader import (
    LOAD_ORDER,
    LOAD_QUERIES,
    load_all,
    load_columns_priv_table,
    load_table,
    load_user_table,
)
from tests.conftest import (
    COLUMNS_PRIV_COLUMNS,
    USER_COLUMNS,
    FakeExecutor,
    flag,
    sample_executor,
)


class TestLoadQueries:
    """The fixed load queries."""

    def test_queries_are_exact(self):
        assert LOAD_QUERIES[GrantLevel.USER] == "select * from mysql.user order by host, user;"
        assert LOAD_QUERIES[GrantLevel.DB] == "select * from mysql.db order by host, db, user;"
        assert LOAD_QUERIES[GrantLevel.TABLES_PRIV] == (
            "select * from mysql.tables_priv order by host, db, user, table_name;"
        )
        assert LOAD_QUERIES[GrantLevel.COLUMNS_PRIV] == (
            "select * from mysql.columns_priv order by host, db, user, table_name, column_name;"
        )

    def test_load_all_runs_levels_in_order(self):
        executor = sample_executor()
        loads = load_all(executor)
        assert list(loads) == list(LOAD_ORDER)
        assert executor.queries == [LOAD_QUERIES[level] for level in LOAD_ORDER]


class TestLoadTable:
    """Driving one row source through one decoder."""

    def test_records_keep_row_order(self):
        executor = FakeExecutor({GrantLevel.USER: (USER_COLUMNS, [
            ("%", "a", "", "Y", "N"),
            ("%", "b", "", "N", "Y"),
            ("localhost", "a", "", "N", "N"),
        ])})
        load = load_user_table(executor)
        assert [(r.host, r.user) for r in load.records] == [("%", "a"), ("%", "b"), ("localhost", "a")]
        assert load.records[1].privileges == PrivilegeType.INSERT
        assert isinstance(load.records, tuple)

    def test_source_closed_on_success(self):
        executor = sample_executor()
        load_user_table(executor)
        assert executor.sources[0].closed

    def test_source_closed_on_decode_error(self):
        """The bad row's level and ordinal are attached to the error."""
        columns = USER_COLUMNS + [flag("Teleport_priv")]
        executor = FakeExecutor({GrantLevel.USER: (columns, [
            ("%", "a", "", "Y", "N", "N"),
            ("%", "b", "", "Y", "N", "Y"),
        ])})
        with pytest.raises(UnknownPrivilegeColumn) as exc:
            load_user_table(executor)
        assert exc.value.level == "user"
        assert exc.value.row == 1
        assert executor.sources[0].closed

    def test_source_closed_on_fetch_error(self):
        executor = FakeExecutor(
            {GrantLevel.USER: (USER_COLUMNS, [("%", "a", "", "Y", "N"), ("%", "b", "", "Y", "N")])},
            source_options={GrantLevel.USER: {"fail_at": 2, "fail_with": ConnectionError("server gone")}},
        )
        with pytest.raises(FetchError) as exc:
            load_user_table(executor)
        assert exc.value.level == "user"
        assert exc.value.row == 2
        assert isinstance(exc.value.__cause__, ConnectionError)
        assert executor.sources[0].closed

    def test_execute_error_is_fetch_error(self):
        executor = FakeExecutor(execute_error={GrantLevel.DB: RuntimeError("no such table")})
        with pytest.raises(FetchError) as exc:
            load_all(executor)
        assert exc.value.level == "db"
        assert exc.value.row is None
        # tables_priv and columns_priv were never queried
        assert executor.queries == [LOAD_QUERIES[GrantLevel.USER], LOAD_QUERIES[GrantLevel.DB]]

    def test_undecodable_value_carries_row_context(self):
        """A value the row accessors cannot read fails with its level and row."""
        executor = FakeExecutor({GrantLevel.USER: (USER_COLUMNS, [
            ("%", "a", "", "Y", "N"),
            (b"\xff\xfe", "b", "", "Y", "N"),
        ])})
        with pytest.raises(RowDecodeError) as exc:
            load_user_table(executor)
        assert isinstance(exc.value, PrivilegeLoadError)
        assert isinstance(exc.value.__cause__, UnicodeDecodeError)
        assert exc.value.to_dict()["level"] == "user"
        assert exc.value.row == 2
        assert executor.sources[0].closed

    def test_custom_decoder(self):
        seen = []

        def decode(row, columns):
            seen.append(row.get_string(1))
            return row.get_string(1), []

        executor = sample_executor()
        load = load_table(executor, GrantLevel.USER, decode)
        assert load.records == ("app", "root")
        assert seen == ["app", "root"]

    def test_timestamp_issues_are_collected(self):
        executor = FakeExecutor({GrantLevel.COLUMNS_PRIV: (COLUMNS_PRIV_COLUMNS, [
            ("%", "shop", "app", "orders", "id", "2024-01-01 00:00:00", "Select"),
            ("%", "shop", "app", "orders", "status", "not a time", "Select"),
        ])})
        load = load_columns_priv_table(executor)
        assert len(load.records) == 2
        assert len(load.issues) == 1
        assert load.issues[0].level == "columns_priv"
        assert load.issues[0].row == 2


class TestLoadCancellation:
    """Cancel event and deadline checks between rows."""

    def test_cancel_event_stops_between_rows(self):
        cancel = threading.Event()
        executor = FakeExecutor(
            {GrantLevel.USER: (USER_COLUMNS, [("%", str(i), "", "Y", "N") for i in range(5)])},
            source_options={GrantLevel.USER: {"on_fetch": lambda n: n == 2 and cancel.set()}},
        )
        with pytest.raises(ReloadCancelled) as exc:
            load_user_table(executor, cancel=cancel)
        assert exc.value.level == "user"
        assert exc.value.row == 3
        assert executor.sources[0].closed

    def test_expired_deadline(self):
        executor = sample_executor()
        with pytest.raises(ReloadCancelled):
            load_user_table(executor, deadline=time.monotonic() - 1)
        # Cancelled before the query ran
        assert executor.queries == []
