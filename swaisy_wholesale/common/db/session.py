from contextlib import contextmanager
from pathlib import Path
from typing import Callable, ContextManager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..models.base import Base
from ..models import blob_record  # noqa: F401  registers the table


def _ensure_sqlite_parent(database_url: str) -> None:
    # Ensure sqlite file parent directory exists to avoid 'unable to open database file'
    if database_url.startswith("sqlite:///") and ":memory:" not in database_url:
        db_path = database_url.split("sqlite:///")[-1]
        Path(db_path).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)


def build_session_factory(database_url: str) -> Callable[[], ContextManager[Session]]:
    """Create the engine and tables, returning a transactional session factory."""

    _ensure_sqlite_parent(database_url)
    engine_kwargs = {"future": True}
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        # one shared connection so every session sees the same in-memory database
        engine_kwargs.update(
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    engine = create_engine(database_url, **engine_kwargs)
    Base.metadata.create_all(engine)
    session_local = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)

    @contextmanager
    def get_session():
        session = session_local()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return get_session
