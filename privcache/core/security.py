"""Bearer-key guard for the /privileges endpoints."""
import secrets
from fastapi import Security, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from privcache.core.config import ADMIN_API_KEY

admin_bearer = HTTPBearer()


def verify_admin_key(credentials: HTTPAuthorizationCredentials = Security(admin_bearer)):
    """Allow the request only when the bearer token is ADMIN_API_KEY."""
    if not secrets.compare_digest(credentials.credentials.encode(), ADMIN_API_KEY.encode()):
        raise HTTPException(
            status_code=403,
            detail="Reloading or inspecting the privilege cache requires the admin API key."
        )
    return True
