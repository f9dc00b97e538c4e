"""
SQLAlchemy engine and session setup for the SQLite store.

pysqlite's own transaction handling is switched off and BEGIN is emitted by
SQLAlchemy instead, so that migration DDL and every unit of work run inside
a real SQLite transaction.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def create_db_engine(db_file: str, busy_timeout: float = 5.0) -> Engine:
    """
    Create an engine for the given SQLite file.

    Args:
        db_file: Path to the database file
        busy_timeout: Seconds a writer waits for the write lock

    Returns:
        Engine configured for WAL mode and explicit transactions
    """
    engine = create_engine(
        f"sqlite:///{db_file}",
        connect_args={"check_same_thread": False, "timeout": busy_timeout},
    )

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False)
