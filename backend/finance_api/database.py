"""Database engine, session factory and the ``get_db`` dependency.

``DATABASE_URL`` selects the backend: a SQLite file for local work, an
in-memory SQLite database (``sqlite://``) for throwaway runs, Postgres for
the deployed site.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from finance_api.config import settings


def engine_options(database_url: str) -> dict:
    """Engine keyword arguments for ``database_url``."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return {"pool_size": 10, "max_overflow": 20, "pool_pre_ping": True}

    # Requests run in a threadpool, so connections cross threads.
    options: dict = {"connect_args": {"check_same_thread": False}}
    if url.database in (None, "", ":memory:"):
        # One shared connection, otherwise every checkout sees an empty database.
        options["poolclass"] = StaticPool
    return options


engine = create_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Yield a session for one request and always close it."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
