import logging
from collections.abc import Generator

from sqlalchemy import Engine, event
from sqlmodel import Session, SQLModel, create_engine

from mod_catalog.config import settings

logger = logging.getLogger(__name__)


def configure_sqlite(eng: Engine) -> Engine:
    """Apply connection pragmas and hand transaction control to SQLAlchemy.

    pysqlite defers ``BEGIN`` on its own, which breaks the SAVEPOINTs the
    relation sync relies on, so the driver is put in autocommit mode and
    ``BEGIN`` is emitted explicitly.
    """

    @event.listens_for(eng, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.close()

    @event.listens_for(eng, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return eng


settings.db_path.parent.mkdir(parents=True, exist_ok=True)
engine = configure_sqlite(
    create_engine(
        f"sqlite:///{settings.db_path}",
        echo=False,
        connect_args={"timeout": 30, "check_same_thread": False},
    )
)


def create_db_and_tables() -> None:
    SQLModel.metadata.create_all(engine)
    logger.info("Database ready at %s", settings.db_path)


def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session
