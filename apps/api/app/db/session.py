"""Engine and session factory construction.

Nothing here is created at import time: callers build an engine from
explicit settings and pass it (or a session factory bound to it) down.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import Settings


def _configure_sqlite_connection(dbapi_connection, connection_record) -> None:
    # Hand transaction control to SQLAlchemy so DDL joins the open transaction.
    dbapi_connection.isolation_level = None
    # SQLite ignores foreign keys unless asked.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _begin_sqlite_transaction(conn: Connection) -> None:
    conn.exec_driver_sql("BEGIN")


def create_engine_with_settings(settings: Settings) -> Engine:
    """Create an engine using the configured URL, pool bounds and timeouts."""
    engine = create_engine(settings.database_url, **settings.engine_options())
    if engine.dialect.name == "sqlite":
        # pysqlite commits pending work before DDL by default, which would
        # break the all-or-nothing migration batch on local and test databases.
        event.listen(engine, "connect", _configure_sqlite_connection)
        event.listen(engine, "begin", _begin_sqlite_transaction)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
