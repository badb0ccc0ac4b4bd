import logging
import re

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from feedbacts.core.config import settings

logger = logging.getLogger(__name__)


def _mask(url: str) -> str:
    """Hide the password part of a database URL."""
    return re.sub(r"://([^:]+):([^@]+)@", r"://\1:***@", url)


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "pool_pre_ping": True,
    }


engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))
logger.debug("Database engine created for %s", _mask(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency: one session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
