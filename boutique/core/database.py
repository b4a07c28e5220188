from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from boutique.core.config import settings


def _engine_kwargs(url: str) -> dict:
    # SQLite connections are shared across FastAPI's threadpool
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None) -> None:
    """Create all tables that do not exist yet."""
    import boutique.models  # noqa: F401  registers mappers on Base

    Base.metadata.create_all(bind=bind or engine)
