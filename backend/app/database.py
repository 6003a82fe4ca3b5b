import logging

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.config import get_settings
from app.core.errors import Internal
from app.monitoring.metrics import storage_failures_total

settings = get_settings()
logger = logging.getLogger(__name__)

engine_options: dict = {"echo": settings.debug, "future": True}
if settings.database_url.startswith("sqlite"):
    engine_options["connect_args"] = {"check_same_thread": False}
else:
    # pool_pre_ping drops connections the server closed while idle
    engine_options.update(pool_size=10, max_overflow=20, pool_pre_ping=True)

engine = create_engine(settings.database_url, **engine_options)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit_or_fail(db: Session, operation: str) -> None:
    """Commit the unit of work or roll it back entirely.

    Storage failures are logged with the operation name and surface to callers
    as an opaque :class:`~app.core.errors.Internal` error.
    """

    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        storage_failures_total.inc(operation=operation)
        logger.exception("Storage failure during %s; transaction rolled back", operation)
        raise Internal() from exc
