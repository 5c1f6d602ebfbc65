from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from app.core.config import settings
import os
import logging
from contextlib import contextmanager

logger = logging.getLogger(__name__)

if os.getenv("PYTEST_RUN") == "1":
    SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
else:
    SQLALCHEMY_DATABASE_URL = settings.SQLALCHEMY_DATABASE_URL

is_sqlite = SQLALCHEMY_DATABASE_URL.startswith("sqlite")

# Configure engine with optional env-driven pool sizing for non-SQLite.
pool_kwargs = {
    # Avoid stale idle connections causing first-hit failures after inactivity
    "pool_pre_ping": True,
}
if is_sqlite:
    # SQLite uses a per-process connection; pass connect_args and avoid pool sizing
    connect_args = {"check_same_thread": False, "timeout": 15}
else:
    connect_args = {}
    pool_kwargs.update({
        "pool_size": int(os.getenv("DB_POOL_SIZE") or 6),
        "max_overflow": int(os.getenv("DB_MAX_OVERFLOW") or 6),
        "pool_recycle": int(os.getenv("DB_POOL_RECYCLE") or 300),
        "pool_timeout": float(os.getenv("DB_POOL_TIMEOUT") or 5.0),
    })


def configure_sqlite_engine(target: Engine, *, wal: bool = True) -> Engine:
    """Make every SQLite transaction take the write lock up front.

    pysqlite defers BEGIN until the first write, so two requests could both
    read an empty conflict set before either inserts. Emitting
    ``BEGIN IMMEDIATE`` ourselves serializes every transaction for the whole
    check-then-write sequence.
    """

    @event.listens_for(target, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # type: ignore[no-redef]
        # Hand transaction control to SQLAlchemy's "begin" hook below.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        if wal:
            # WAL improves read concurrency; NORMAL reduces fsync pressure.
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.execute("PRAGMA synchronous=NORMAL;")
        # Back off rather than instantly failing on transient locks (ms)
        cursor.execute("PRAGMA busy_timeout=15000;")
        cursor.close()

    @event.listens_for(target, "begin")
    def _begin_immediate(conn):  # type: ignore[no-redef]
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return target


engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args=connect_args,
    **pool_kwargs,
)

if is_sqlite:
    configure_sqlite_engine(engine, wal=":memory:" not in SQLALCHEMY_DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


# Dependency
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session):
    """Commit on success, roll back on any error.

    Store-level uniqueness violations surface as scheduling conflicts so a
    race lost at the database is reported like one lost in the checker.
    """
    from app.utils.errors import SchedulingConflict

    try:
        yield db
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Integrity violation rolled back: %s", exc.orig)
        raise SchedulingConflict(
            "The requested time was taken by a concurrent request.",
            code="concurrent_write",
        ) from exc
    except Exception:
        db.rollback()
        raise


def begin_snapshot(db: Session) -> None:
    """Pin the rest of a read path to a single consistent snapshot.

    SQLite transactions are already serializable, so only PostgreSQL needs
    the isolation bump. Whatever read-only work opened the current
    transaction (identity lookups) is committed first so the new isolation
    level takes effect.
    """
    bind = db.get_bind()
    if bind.dialect.name != "postgresql":
        return
    if db.in_transaction():
        db.commit()
    db.connection(execution_options={"isolation_level": "REPEATABLE READ"})
