import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import DATABASE_URL

logger = logging.getLogger(__name__)

_SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL;",
    # Comment -> candidate references are enforced, so candidate deletes remove comments first.
    "PRAGMA foreign_keys=ON;",
    "PRAGMA busy_timeout=30000;",
)


def normalize_database_url(url: str) -> str:
    """`mysql://` in `.env` is upgraded to the pymysql driver form."""
    url = (url or "").strip()
    return url.replace("mysql://", "mysql+pymysql://", 1) if url.startswith("mysql://") else url


def enable_sqlite_pragmas(target: Engine) -> Engine:
    """Run the SQLite pragmas on every new DBAPI connection of `target`."""

    @event.listens_for(target, "connect")
    def _set_sqlite_pragmas(dbapi_connection, connection_record):  # noqa: ANN001
        cursor = dbapi_connection.cursor()
        try:
            for pragma in _SQLITE_PRAGMAS:
                cursor.execute(pragma)
        except Exception as e:
            logger.warning("Failed to set SQLite pragmas: %s", e)
        finally:
            cursor.close()

    return target


def build_engine(url: str) -> Engine:
    url = normalize_database_url(url)
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)
    # FastAPI serves requests from a thread pool; the timeout eases "database is locked".
    return enable_sqlite_pragmas(
        create_engine(url, pool_pre_ping=True, connect_args={"check_same_thread": False, "timeout": 30})
    )


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    # Resolved at call time so tests can swap the session factory.
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    # Models must be imported so their tables are on Base.metadata.
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
