"""
Database connection, session management and unit of work
"""
import logging
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from orderflow.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def _engine_options(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_size": 5, "max_overflow": 10}


engine = create_engine(settings.DATABASE_URL, echo=False, **_engine_options(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db():
    """Create all tables"""
    # Register models on Base.metadata
    import orderflow.models  # noqa: F401

    logger.info("Creating database tables")
    Base.metadata.create_all(bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency for getting database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class UnitOfWork:
    """
    Explicit transaction boundary over a session.

    Every multi-row mutation (status write, tracking entry, inventory
    adjustments, payment update) runs inside one unit of work: it is
    committed as a whole on a clean exit and rolled back as a whole
    when anything inside raises.

    Usage:
        with UnitOfWork(db):
            inventory.reserve(product_id, 2)
            order.status = OrderStatus.CONFIRMED
    """

    def __init__(self, db: Session):
        self.db = db

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.commit()
        else:
            logger.debug(f"Rolling back unit of work: {exc_type.__name__}")
            self.rollback()
        return False

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
