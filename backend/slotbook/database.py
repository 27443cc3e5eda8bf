from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .config import settings
from .models.slots import Base


def build_engine(url: str, **kwargs) -> Engine:
    """
    Create an engine for the slot store.

    SQLite needs check_same_thread=False: FastAPI runs sync endpoints
    in a thread pool.
    """
    if url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        kwargs["connect_args"] = connect_args
    return create_engine(url, **kwargs)


engine = build_engine(settings.resolved_database_url)

# SessionLocal: the only way stores talk to the database
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


def init_db(bind: Engine | None = None) -> None:
    """Create the time_slots table if it does not exist yet."""
    Base.metadata.create_all(bind=bind or engine)
