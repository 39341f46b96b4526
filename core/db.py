"""
core/db.py -- SQLAlchemy engine construction shared by every store.

Both repositories (auth/store.py, payments/store.py) accept a database URL and
build their engine here, so the SQLite tweaks live in exactly one place.
Swapping SQLite for PostgreSQL is a connection string change.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or payments/.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    WAL (Write-Ahead Logging) allows readers to proceed without blocking
    during writes. Set per-connection because SQLite PRAGMAs are not
    inherited by new connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    """Create an engine; SQLite URLs get cross-thread access and WAL mode.

    check_same_thread=False is required because FastAPI runs sync route
    handlers in a threadpool.
    """
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine
