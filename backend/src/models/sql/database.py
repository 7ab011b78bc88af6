"""Database engine and session management.

The ``feedback`` table is queried with parameterized SQL built in
``src.lib.feedback.query_builder``; no ORM models are mapped here.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool

from src.config import get_app_database_url, get_db_max_overflow, get_db_pool_size


DATABASE_URL = get_app_database_url()

engine = create_engine(
    DATABASE_URL,
    poolclass=QueuePool,
    pool_size=get_db_pool_size(),
    max_overflow=get_db_max_overflow(),
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def get_db():
    """Yield one session per request.

    Anything left uncommitted when the request fails is rolled back before
    the connection returns to the pool.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
