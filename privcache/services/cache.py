"""In-memory privilege cache with all-or-nothing reloads."""
import threading
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from privcache.core.errors import PrivilegeLoadError, ReloadInProgress
from privcache.core.logging_config import logger
from privcache.crud.row_source import QueryExecutor
from privcache.models.privileges import GrantLevel
from privcache.models.records import Snapshot
from privcache.services.loader import load_all

RELOAD_POLICIES = ("reject", "wait")


class CacheState(str, Enum):
    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"


class PrivilegeCache:
    """Holds the published privilege Snapshot and rebuilds it on reload.

    Readers take ``cache.snapshot`` and keep using that object; it is never
    edited. A reload builds the four record sequences in local storage and
    publishes the new Snapshot with a single attribute assignment, so readers
    never wait on row fetching. Only one reload runs at a time: with the
    ``reject`` policy a concurrent reload raises ReloadInProgress, with
    ``wait`` it blocks until the running one is done (at most
    ``wait_timeout`` seconds when set).
    """

    def __init__(
        self,
        reload_policy: str = "reject",
        wait_timeout: float = 0,
        reload_timeout: float = 0,
        strict_timestamps: bool = False,
    ):
        if reload_policy not in RELOAD_POLICIES:
            raise ValueError(f"Unknown reload policy '{reload_policy}'")
        self.reload_policy = reload_policy
        self.wait_timeout = wait_timeout
        self.reload_timeout = reload_timeout
        self.strict_timestamps = strict_timestamps

        self._snapshot: Optional[Snapshot] = None
        self._state = CacheState.EMPTY
        self._reload_lock = threading.Lock()
        self.last_error: Optional[Exception] = None
        self.last_reload_at: Optional[datetime] = None

    @property
    def snapshot(self) -> Optional[Snapshot]:
        """The published Snapshot, or None before the first successful reload."""
        return self._snapshot

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def generation(self) -> int:
        snapshot = self._snapshot
        return snapshot.generation if snapshot is not None else 0

    def _acquire_reload(self) -> bool:
        if self.reload_policy == "wait":
            return self._reload_lock.acquire(timeout=self.wait_timeout if self.wait_timeout else -1)
        return self._reload_lock.acquire(blocking=False)

    def reload(
        self,
        executor: QueryExecutor,
        cancel: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
    ) -> Snapshot:
        """Load every grant level and publish a new Snapshot.

        Levels load in the order user, db, tables_priv, columns_priv. If any
        of them fails the published Snapshot is left untouched and the error,
        bound to its grant level and row, is raised. ``cancel`` and
        ``timeout`` (seconds, defaults to ``reload_timeout``) abort the reload
        between rows with ReloadCancelled.
        """
        if not self._acquire_reload():
            logger.warning("Privilege reload rejected: another reload is in progress")
            raise ReloadInProgress("A privilege reload is already in progress")

        try:
            previous_state = self._state
            self._state = CacheState.LOADING
            logger.info(f"Reloading privilege cache (current generation {self.generation})")

            timeout = self.reload_timeout if timeout is None else timeout
            deadline = time.monotonic() + timeout if timeout else None
            try:
                loads = load_all(executor, cancel=cancel, deadline=deadline)
                issues = tuple(issue for load in loads.values() for issue in load.issues)
                if issues and self.strict_timestamps:
                    raise issues[0]
            except Exception as e:
                self._state = previous_state
                self.last_error = e
                if isinstance(e, PrivilegeLoadError):
                    logger.error(f"Privilege reload failed, keeping generation {self.generation}: {e}")
                else:
                    logger.exception(f"Privilege reload failed unexpectedly, keeping generation {self.generation}")
                raise

            snapshot = Snapshot(
                users=loads[GrantLevel.USER].records,
                dbs=loads[GrantLevel.DB].records,
                tables_priv=loads[GrantLevel.TABLES_PRIV].records,
                columns_priv=loads[GrantLevel.COLUMNS_PRIV].records,
                generation=self.generation + 1,
                loaded_at=datetime.now(timezone.utc),
                timestamp_issues=issues,
            )
            # Publish
            self._snapshot = snapshot
            self._state = CacheState.READY
            self.last_error = None
            self.last_reload_at = snapshot.loaded_at
            logger.info(f"Privilege cache generation {snapshot.generation} published: {snapshot.counts()}")
            if issues:
                logger.warning(f"Generation {snapshot.generation} has {len(issues)} defaulted timestamps")
            return snapshot
        finally:
            self._reload_lock.release()


# How it works:
# - Readers: take cache.snapshot once per authorization check and read the
#   four record tuples from it; no lock is involved.
# - Reload: build a brand-new Snapshot, then swap the reference.
# - Failure: the previous Snapshot (or none) stays published, state returns
#   to what it was before the reload started.
