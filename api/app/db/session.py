"""Engine, session factory and schema bootstrap for the SQLite store."""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.config import settings
from app.db.base import Base

_connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, connect_args=_connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_schema() -> None:
    """Create any missing tables. Existing tables are left untouched."""
    import app.models.models  # noqa: F401  (registers tables on Base.metadata)

    Base.metadata.create_all(bind=engine)
