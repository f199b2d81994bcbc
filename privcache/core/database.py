"""Database connection and session management."""
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from privcache.core.config import SQLALCHEMY_DATABASE_URL, GRANT_SCHEMA_PATH

# Schema holding the grant tables (mysql.user, mysql.db, ...)
GRANT_SCHEMA = "mysql"


def attach_grant_schema(engine, path: str):
    """Attach ``path`` as the ``mysql`` schema on every new sqlite connection.

    MySQL-compatible engines already expose the grant tables under ``mysql``;
    sqlite needs a second database file attached under that name so the
    fixed ``select * from mysql.<table>`` load queries resolve.
    """
    @event.listens_for(engine, "connect")
    def _attach(dbapi_connection, connection_record):
        dbapi_connection.execute(f"ATTACH DATABASE '{path}' AS {GRANT_SCHEMA}")

    return engine


# Create database engine (SQLite needs special connect_args; others don't)
if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
    )
    attach_grant_schema(engine, GRANT_SCHEMA_PATH)
else:
    engine = create_engine(SQLALCHEMY_DATABASE_URL)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for SQLAlchemy models
Base = declarative_base()


def get_db():
    """Generator function for FastAPI dependency injection.
    Creates a session, yields it, and closes it after usage to ensure proper cleanup.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
