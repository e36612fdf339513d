from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from flightsearch.config import settings


def build_engine(database_url: str):
    # Sessions are used from worker threads, SQLite must allow that
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args)


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Centralized base for all tables
Base = declarative_base()

def init_db(bind=None):
    """Create the airport and favorite tables if they do not exist yet."""
    # Register the models on Base.metadata
    from flightsearch.models import airport, favorite  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
