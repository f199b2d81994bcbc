"""Main API router that includes all v1 routes."""
from fastapi import APIRouter
from privcache.api.v1.routes import privileges

api_router = APIRouter()

api_router.include_router(privileges.router, prefix="/privileges", tags=["privileges"])
