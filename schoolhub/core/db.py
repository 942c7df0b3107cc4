# schoolhub/core/db.py
from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from schoolhub.core.config import settings

from schoolhub.models.base import Base

_connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True, future=True, connect_args=_connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

@contextmanager
def db_session(factory=None):
    db = (factory or SessionLocal)()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

# FastAPI dependency
def get_db():
    with db_session() as db:
        yield db

# FastAPI dependency for work that opens its own sessions (report batches)
def get_session_factory():
    return SessionLocal

def create_tables():
    """Create all tables in the database"""
    import schoolhub.models  # noqa: F401  register mappers
    Base.metadata.create_all(bind=engine)
