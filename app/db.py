# app/db.py
"""Database engine, session utilities and the store availability gate.

The engine is only built when a database URL is configured. Whether the
store is reachable is decided once at startup by `probe_database()`; request
handling reads the result through `store_available()` and never reconnects.
"""
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import get_settings
from .utils import logger, retry

settings = get_settings()

engine = None
if settings.database_url:
    # tuned pool settings for cloud DB
    engine = create_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

_store_connected = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _ping(bind):
    with bind.connect() as conn:
        conn.execute(text("SELECT 1"))


def probe_database(bind=None, tries=None) -> bool:
    """Check once whether the store answers and remember the outcome."""
    global _store_connected
    bind = bind if bind is not None else engine
    if bind is None or settings.use_mock_data:
        logger.warning("Database not configured or mock mode forced, serving fixture data")
        _store_connected = False
        return False
    attempts = tries if tries is not None else settings.db_connect_tries
    try:
        retry(SQLAlchemyError, tries=attempts, delay=1, backoff=2)(_ping)(bind)
    except SQLAlchemyError as e:
        logger.warning("Database connection failed, running in fixture mode: %s", e)
        _store_connected = False
        return False
    logger.info("Connected to database %s", bind.url.render_as_string(hide_password=True))
    _store_connected = True
    return True


def store_available() -> bool:
    return _store_connected
