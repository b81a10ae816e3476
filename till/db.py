from __future__ import annotations

import logging
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from till.config import Settings
from till.errors import TransactionFailure

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def create_store_engine(settings: Settings) -> Engine:
    engine = create_engine(
        settings.database_url,
        connect_args={"check_same_thread": False, "timeout": settings.db_busy_timeout},
    )
    _install_sqlite_hooks(engine)
    return engine


def _install_sqlite_hooks(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:
        # pysqlite must not issue its own BEGIN; _on_begin owns transaction start.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.execute("PRAGMA journal_mode = WAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn) -> None:
        # Writers take the reserved lock up front so two read-then-write
        # transactions queue on the busy timeout instead of deadlocking.
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def prepare_data_file(settings: Settings) -> Path:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    target = settings.database_path
    seed = settings.seed_database
    if not target.exists() and seed is not None and seed.is_file():
        shutil.copyfile(seed, target)
        logger.info("Copied seed database %s to %s", seed, target)
    return target


def create_schema(engine: Engine) -> None:
    import till.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


@contextmanager
def transaction(sessions: sessionmaker[Session]) -> Iterator[Session]:
    """Run the enclosed statements as one atomic unit.

    Commits when the block exits normally. Any exception rolls everything
    back; store errors surface as ``TransactionFailure``, our own typed
    errors propagate unchanged.
    """
    session = sessions()
    try:
        with session.begin():
            yield session
    except SQLAlchemyError as exc:
        logger.error("Transaction rolled back: %s", exc)
        raise TransactionFailure(str(exc)) from exc
    finally:
        session.close()


def reset_identity(session: Session, table_name: str) -> None:
    session.execute(text("DELETE FROM sqlite_sequence WHERE name = :name"), {"name": table_name})
