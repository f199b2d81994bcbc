"""Errors raised while loading and publishing privilege snapshots."""
from typing import Optional


class PrivilegeLoadError(Exception):
    """Base class for every failure in the load/decode/publish path.

    ``level`` is the grant level being loaded (``user``, ``db``,
    ``tables_priv`` or ``columns_priv``) and ``row`` the 1-based ordinal of
    the row being decoded, when known.
    """

    def __init__(self, message: str, level: Optional[str] = None, row: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.level = level
        self.row = row

    def bind(self, level: Optional[str] = None, row: Optional[int] = None) -> "PrivilegeLoadError":
        """Attach grant level / row context without overwriting what is already set."""
        if self.level is None:
            self.level = level
        if self.row is None:
            self.row = row
        return self

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "level": self.level,
            "row": self.row,
        }

    def __str__(self) -> str:
        context = []
        if self.level is not None:
            context.append(f"level={self.level}")
        if self.row is not None:
            context.append(f"row={self.row}")
        if context:
            return f"{self.message} ({', '.join(context)})"
        return self.message


class FetchError(PrivilegeLoadError):
    """The collaborator failed to execute or iterate a load query."""


class RowDecodeError(PrivilegeLoadError):
    """A row value could not be read as the type its column declares."""


class UnknownPrivilegeColumn(PrivilegeLoadError):
    """A flag column or set member has no entry in the privilege bit map."""

    def __init__(self, name: str, level: Optional[str] = None, row: Optional[int] = None):
        super().__init__(f"Unknown privilege column '{name}'", level=level, row=row)
        self.name = name


class PrivilegeOutsideMask(PrivilegeLoadError):
    """A known privilege was granted at a level where it is not legal."""

    def __init__(self, name: str, level: Optional[str] = None, row: Optional[int] = None):
        super().__init__(f"Privilege '{name}' is not allowed at this grant level", level=level, row=row)
        self.name = name


class MalformedTimestamp(PrivilegeLoadError):
    """A timestamp column could not be parsed; the record gets the zero time."""

    def __init__(self, column: str, value, level: Optional[str] = None, row: Optional[int] = None):
        super().__init__(f"Malformed timestamp {value!r} in column '{column}'", level=level, row=row)
        self.column = column
        self.value = value


class ReloadInProgress(PrivilegeLoadError):
    """Another reload is already building a snapshot."""


class ReloadCancelled(PrivilegeLoadError):
    """The reload was cancelled or ran past its deadline."""
