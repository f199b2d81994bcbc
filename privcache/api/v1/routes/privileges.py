"""Privilege cache management endpoints (reload / inspect)."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from privcache import schemas
from privcache.api.deps import get_db, get_privilege_cache
from privcache.core.errors import PrivilegeLoadError, ReloadInProgress
from privcache.core.security import verify_admin_key
from privcache.crud import SessionQueryExecutor
from privcache.services.cache import PrivilegeCache

router = APIRouter()


@router.get("/status", response_model=schemas.CacheStatusResponse)
def cache_status_api(
    cache: PrivilegeCache = Depends(get_privilege_cache),
    verified: bool = Depends(verify_admin_key)
):
    """Current cache state and a summary of the published snapshot. Requires Admin API Key."""
    snapshot = cache.snapshot
    last_error = None
    if isinstance(cache.last_error, PrivilegeLoadError):
        last_error = schemas.LoadErrorResponse(**cache.last_error.to_dict())
    elif cache.last_error is not None:
        last_error = schemas.LoadErrorResponse(
            error=type(cache.last_error).__name__,
            message=str(cache.last_error),
        )
    return schemas.CacheStatusResponse(
        state=cache.state.value,
        generation=cache.generation,
        last_reload_at=cache.last_reload_at,
        snapshot=schemas.SnapshotSummary.from_snapshot(snapshot) if snapshot else None,
        last_error=last_error,
    )


@router.post("/reload", response_model=schemas.SnapshotSummary)
def reload_privileges_api(
    db: Session = Depends(get_db),
    cache: PrivilegeCache = Depends(get_privilege_cache),
    verified: bool = Depends(verify_admin_key)
):
    """Reload every grant table and publish a new snapshot. Requires Admin API Key."""
    try:
        snapshot = cache.reload(SessionQueryExecutor(db))
    except ReloadInProgress as e:
        raise HTTPException(status_code=409, detail=e.to_dict())
    except PrivilegeLoadError as e:
        raise HTTPException(status_code=500, detail=e.to_dict())
    return schemas.SnapshotSummary.from_snapshot(snapshot)


@router.get("/snapshot", response_model=schemas.SnapshotResponse)
def get_snapshot_api(
    cache: PrivilegeCache = Depends(get_privilege_cache),
    verified: bool = Depends(verify_admin_key)
):
    """The four record sequences of the published snapshot, in load order. Requires Admin API Key."""
    snapshot = cache.snapshot
    if snapshot is None:
        raise HTTPException(status_code=404, detail="No privilege snapshot has been published yet.")
    return schemas.SnapshotResponse.from_snapshot(snapshot)
