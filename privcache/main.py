"""FastAPI application entry point."""
from fastapi import FastAPI, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from privcache.core import config
from privcache.core.database import engine, Base, SessionLocal
from privcache.core.errors import PrivilegeLoadError
from privcache.core.logging_config import logger
from privcache.api.v1.router import api_router
from privcache.crud import SessionQueryExecutor
from privcache.models.grant_tables import validate_live_grant_tables
from privcache.models.privileges import validate_bitmap
from privcache.services.cache import PrivilegeCache

logger.info("Starting Privilege Cache Service")

# Refuse to start with a bit map that does not cover the grant table schema
validate_bitmap(Base.metadata)

# Create the grant tables when they do not exist yet
try:
    Base.metadata.create_all(bind=engine)
    logger.info("Grant tables initialized successfully")
except Exception as e:
    logger.error(f"Failed to initialize grant tables: {e}")
    raise

# The live tables may carry privilege columns the declarations above do not
try:
    validate_live_grant_tables(engine)
except PrivilegeLoadError as e:
    logger.error(f"Grant tables do not match the privilege bit map: {e}")
    raise

app = FastAPI(
    title="Privilege Cache Service",
    description="In-memory cache of global, database, table and column grants with atomic reloads",
    version="1.0.0"
)

app.state.privilege_cache = PrivilegeCache(
    reload_policy=config.RELOAD_POLICY,
    wait_timeout=config.RELOAD_WAIT_TIMEOUT,
    reload_timeout=config.RELOAD_TIMEOUT,
    strict_timestamps=config.STRICT_TIMESTAMPS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)
logger.info("API routes registered successfully")


@app.on_event("startup")
async def startup_event():
    """Load the first privilege snapshot."""
    if config.RELOAD_ON_STARTUP:
        db = SessionLocal()
        try:
            app.state.privilege_cache.reload(SessionQueryExecutor(db))
        except PrivilegeLoadError as e:
            # The service still starts; the cache stays empty until a reload succeeds
            logger.error(f"Initial privilege load failed: {e}")
        finally:
            db.close()
    logger.info("Application startup complete")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("Application shutting down")


@app.get("/", tags=["Health"])
def read_root():
    """Basic health check endpoint."""
    return {"status": "Privilege Cache Service is Operational", "docs": "/docs"}


@app.get("/health", tags=["Health"], status_code=status.HTTP_200_OK)
def health_check():
    """Detailed health check endpoint with system status."""
    health_status = {
        "status": "healthy",
        "service": "Privilege Cache Service",
        "version": "1.0.0",
        "checks": {}
    }

    # Database connectivity check
    try:
        db = SessionLocal()
        db.execute(text("SELECT 1"))
        db.close()
        health_status["checks"]["database"] = {
            "status": "healthy",
            "message": "Database connection successful"
        }
    except Exception as e:
        health_status["status"] = "degraded"
        health_status["checks"]["database"] = {
            "status": "unhealthy",
            "message": f"Database connection failed: {str(e)}"
        }
        logger.error(f"Database health check failed: {e}")

    # Privilege cache check
    cache = app.state.privilege_cache
    snapshot = cache.snapshot
    health_status["checks"]["cache"] = {
        "status": "healthy" if snapshot is not None else "warning",
        "message": "Privilege snapshot published" if snapshot is not None else "No privilege snapshot loaded",
        "state": cache.state.value,
        "generation": cache.generation,
        "last_reload_failed": cache.last_error is not None,
    }

    status_code = status.HTTP_200_OK
    if health_status["status"] == "degraded":
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(content=health_status, status_code=status_code)
