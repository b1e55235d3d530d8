from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from graphdone.config import settings


class Base(DeclarativeBase):
    pass


def make_engine(database_url: str | None = None) -> Engine:
    """Create an engine, making sure the SQLite parent directory exists."""
    url = database_url or settings.database_url
    if url.startswith("sqlite:///"):
        db_path = Path(url[len("sqlite:///"):]).expanduser()
        if str(db_path) != ":memory:":
            db_path.parent.mkdir(parents=True, exist_ok=True)
            url = f"sqlite:///{db_path}"
    return create_engine(
        url,
        connect_args={"check_same_thread": False} if url.startswith("sqlite") else {},  # Needed for SQLite
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
