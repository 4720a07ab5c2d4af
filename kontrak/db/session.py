# ------------------------------------------------------------------------
# File: session.py
# Location: kontrak/db/session.py
# Description:
#     Database session management: one session per application context,
#     closed on teardown.
# ------------------------------------------------------------------------

from flask import g, has_app_context
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from kontrak.logging_config import configure_logging

# Configure logging
logger = configure_logging(
    name="kontrak.db",
    logfile="kontrak.log",
    level=None  # Will use environment-based level
)

engine = None
SessionLocal = sessionmaker(autocommit=False, autoflush=False)


def init_engine(database_url: str):
    """Create the engine for ``database_url`` and bind the session factory to it."""
    global engine
    logger.debug("Using DATABASE_URL: %s", database_url)

    engine_options = {}
    if database_url.startswith("sqlite"):
        engine_options["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection so every session sees the same in-memory database
            engine_options["poolclass"] = StaticPool

    try:
        engine = create_engine(database_url, **engine_options)
    except Exception as e:
        logger.error("Failed to create database engine: %s", str(e), exc_info=True)
        raise

    SessionLocal.configure(bind=engine)
    return engine


def get_engine():
    """Get the SQLAlchemy engine instance."""
    if engine is None:
        raise RuntimeError("Database engine is not initialised; call init_engine() first")
    return engine


def get_session():
    """Session for the current app context, or a new standalone session outside one."""
    if not has_app_context():
        return SessionLocal()

    if "db_session" not in g:
        g.db_session = SessionLocal()
    return g.db_session


def close_session(exception=None):
    session = g.pop("db_session", None)
    if session is None:
        return
    if exception is not None:
        session.rollback()
    session.close()


def ping_database():
    """Run a trivial query; raises if the database is unreachable."""
    with get_engine().connect() as conn:
        conn.execute(text("SELECT 1"))
