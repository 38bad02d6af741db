from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
import os
from typing import Optional
from functools import lru_cache

# Database URLs
SQLITE_DEV_DB = "sqlite:///./dev.db"
SQLITE_TEST_DB = "sqlite:///./test.db"
SQLITE_PROD_DB = "sqlite:///./prod.db"

Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite ignores foreign keys unless asked per connection"""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str) -> Engine:
    """Create an engine for the given URL

    SQLite engines get thread sharing and foreign key enforcement so they
    report referential errors the way the hosted Postgres does.
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False}
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_engine(database_url, pool_pre_ping=True)


def get_database_url() -> str:
    """Resolve the database URL from APP_ENV"""
    env = os.getenv("APP_ENV", "development")
    if env == "test":
        return SQLITE_TEST_DB
    elif env == "production":
        return os.getenv("DATABASE_URL", SQLITE_PROD_DB)
    else:  # development
        return SQLITE_DEV_DB


@lru_cache()
def get_engine():
    """Get the process-wide engine"""
    return build_engine(get_database_url())

def get_session_maker():
    """Get the session factory"""
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())

def get_session():
    """Get a database session, one per request"""
    SessionLocal = get_session_maker()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()

def create_tables(db_engine: Optional[object] = None):
    """Create all tables

    Args:
        db_engine: optional engine, the default engine is used when omitted
    """
    # models must be imported so their tables are registered on Base
    from blogcms.models import category, post, post_tag, tag  # noqa: F401

    engine = db_engine or get_engine()
    Base.metadata.create_all(bind=engine)
