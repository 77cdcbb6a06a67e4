"""
Database Configuration
======================

This module sets up:
1. SQLAlchemy engine (connection to PostgreSQL, or SQLite for local runs)
2. SessionLocal (database session factory)
3. Base (declarative base for models)

Key Concepts:
- Engine: The "pool" of database connections
- Session: A "conversation" with the database (one request = one session)
- Base: Parent class for all database models
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from storefront import config


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """
    Build an engine for the given database URL.

    Parameters explained:
    - pool_pre_ping=True
      Tests connections before using them. If the database restarted,
      SQLAlchemy reconnects instead of failing the request.

    SQLite only:
    - check_same_thread=False
      FastAPI serves sync endpoints from a thread pool, so a pooled
      connection may be used by a thread other than the one that opened it.
    - BEGIN IMMEDIATE
      pysqlite defers BEGIN until the first write, which lets two
      transactions read the same stock count and then race to write.
      Taking the write lock at BEGIN serializes writers, so stock checks
      always see committed data.
    """
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            echo=echo,
            pool_pre_ping=True,
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        _use_immediate_transactions(engine)
        return engine

    return create_engine(url, echo=echo, pool_pre_ping=True)


def _use_immediate_transactions(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        # SQLAlchemy emits BEGIN itself from the "begin" hook below
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_session_factory(bind: Engine) -> sessionmaker:
    """
    SessionLocal is a FACTORY, not a session itself.

    - autocommit=False: changes aren't saved until session.commit()
    - autoflush=False:  we control when in-memory changes hit the DB
    """
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


engine = create_db_engine(config.DATABASE_URL, echo=config.SQL_ECHO)

SessionLocal = create_session_factory(engine)

# All database models inherit from this Base class
Base = declarative_base()


def get_db():
    """FastAPI dependency: one session per request, always closed."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
