# mentorhub/database.py - Database Configuration
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from mentorhub.config import settings

# Database URL loaded from .env via mentorhub/config.py
DATABASE_URL = settings.DATABASE_URL


def enable_sqlite_write_locks(engine):
    """Start every SQLite transaction with BEGIN IMMEDIATE.

    SQLite ignores SELECT ... FOR UPDATE, so the database write lock is taken
    up front instead; concurrent writers queue on the busy timeout.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        # pysqlite would otherwise defer BEGIN until the first write
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def _create_engine(url: str):
    if str(url).startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False, "timeout": 30}}
        if ":memory:" in str(url):
            # one shared connection; there is no second writer to lock out
            kwargs["poolclass"] = StaticPool
            return create_engine(url, **kwargs)
        return enable_sqlite_write_locks(create_engine(url, **kwargs))
    return create_engine(url, pool_pre_ping=True)


engine = _create_engine(DATABASE_URL)

# Session maker
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


# Dependency to get database session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
