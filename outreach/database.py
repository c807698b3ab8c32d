from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

Base = declarative_base()


def create_session_factory(database_url: str):
    """Engine + session factory for a ledger database. Creates tables on first use."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False  # Required for SQLite
        db_path = database_url.split("///", 1)[-1]
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(database_url, connect_args=connect_args)

    from outreach.models import OutcomeRecord  # noqa: F401
    Base.metadata.create_all(bind=engine)

    return engine, sessionmaker(autocommit=False, autoflush=False, bind=engine)
