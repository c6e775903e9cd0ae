import logging
import uuid
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from delphi_api.config import settings

logger = logging.getLogger(__name__)


def create_db_engine(url: str, **kwargs):
    """
    Build an engine for `url`. SQLite needs foreign key enforcement switched on
    per connection, otherwise the ON DELETE CASCADE clauses are ignored.
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    engine = create_engine(url, **kwargs)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def _enable_sqlite_fks(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = create_db_engine(settings.DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session):
    """
    Run the enclosed block as one transaction: commit on success, roll back
    and re-raise on any exception.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        logger.warning("Transaction rolled back", exc_info=True)
        raise


def dispose_engine():
    engine.dispose()
    logger.info("Database engine disposed")


def generate_uuid() -> str:
    return str(uuid.uuid4())
