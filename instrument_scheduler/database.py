# instrument_scheduler/database.py
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from instrument_scheduler.config import settings

# Connection execution option marking a transaction that will write
WRITE_TRANSACTION = "sqlite_begin_immediate"


def create_db_engine(url: str, busy_timeout: float = settings.DB_BUSY_TIMEOUT_SECONDS):
    """
    Builds an engine for the given URL.

    On SQLite, reads open a deferred transaction and run alongside other
    readers (WAL journal). Transactions started with the WRITE_TRANSACTION
    execution option open with BEGIN IMMEDIATE, so concurrent writers queue
    on the write lock instead of failing on lock upgrade.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    engine = create_engine(
        url,
        connect_args={"check_same_thread": False, "timeout": busy_timeout},
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        dbapi_connection.execute("PRAGMA foreign_keys=ON")
        dbapi_connection.execute("PRAGMA journal_mode=WAL")

    @event.listens_for(engine, "begin")
    def _begin(conn):
        if conn.get_execution_options().get(WRITE_TRANSACTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")

    return engine


def begin_write(db):
    """
    Starts a fresh write transaction on the session.

    Any read transaction still open is committed first; the next statement
    then runs under the store's write lock (BEGIN IMMEDIATE on SQLite).
    """
    if db.in_transaction():
        db.commit()
    db.connection(execution_options={WRITE_TRANSACTION: True})


engine = create_db_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


# Request-scoped session dependency
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
