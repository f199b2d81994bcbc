"""API dependencies."""
from fastapi import Request
from privcache.core.database import get_db
from privcache.services.cache import PrivilegeCache


def get_privilege_cache(request: Request) -> PrivilegeCache:
    """The process-wide PrivilegeCache held on the application state."""
    return request.app.state.privilege_cache


__all__ = ["get_db", "get_privilege_cache"]
