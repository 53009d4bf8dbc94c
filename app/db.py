import os
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from app.config import SQLALCHEMY_DATABASE_URL, DB_TIMEOUT


def make_engine(url: str, timeout: float = DB_TIMEOUT):
    """Create an engine whose lock waits are bounded by ``timeout`` seconds."""
    if make_url(url).get_backend_name() == "sqlite":
        return create_engine(
            url, connect_args={"check_same_thread": False, "timeout": timeout}
        )
    return create_engine(url, pool_pre_ping=True, pool_timeout=timeout)


engine = make_engine(SQLALCHEMY_DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_database():
    # models register themselves on Base.metadata when imported
    from app.models import reservation, room, snack, user  # noqa: F401

    database = make_url(SQLALCHEMY_DATABASE_URL).database
    if database and database != ":memory:":
        directory = os.path.dirname(database)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)
    Base.metadata.create_all(bind=engine)


def get_db():
    """Provide a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
