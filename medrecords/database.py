"""
Database engine, session factory and declarative base.

Tables are created on startup by init_db(); there are no migrations.
"""
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from .config import settings

# Set up logging
logger = logging.getLogger(__name__)

# SQLite needs cross-thread access since FastAPI runs sync work in a threadpool
connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, connect_args=connect_args)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

Base = declarative_base()

def init_db(bind=None):
    """
    Create any missing tables for the users, refresh token and notification models.

    Args:
        bind: Engine to create the tables on (default: the application engine)
    """
    # Model modules register their tables on Base when imported
    from .auth import models as auth_models  # noqa: F401
    from .notifications import models as notification_models  # noqa: F401

    target = bind or engine
    Base.metadata.create_all(bind=target)
    logger.info(f"Database ready ({target.url.get_backend_name()})")

def get_session_factory():
    """
    Session factory for long-lived connections such as websockets, which open
    one short session per message instead of holding one for their lifetime.
    """
    return SessionLocal

def get_db():
    """
    Request-scoped database session.

    Yields:
        SQLAlchemy Session: closed once the response has been sent
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
