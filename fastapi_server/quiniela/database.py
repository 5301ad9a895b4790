"""
Database engine and session management.
"""
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from quiniela.config import DATABASE_URL

# Use check_same_thread only for SQLite
connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False


def enable_sqlite_foreign_keys(engine: Engine) -> Engine:
    """SQLite ignores REFERENCES unless the pragma is set on every connection."""
    if engine.dialect.name != "sqlite":
        return engine

    @event.listens_for(engine, "connect")
    def _set_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


engine = enable_sqlite_foreign_keys(
    create_engine(DATABASE_URL, echo=False, connect_args=connect_args)
)


def create_db_and_tables(bind=None):
    """Create all tables defined in SQLModel metadata."""
    # Register the table models on the metadata before create_all.
    import quiniela.models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


def get_session():
    """Yield a database session."""
    with Session(engine) as session:
        yield session
