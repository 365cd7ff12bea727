from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker


Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Sync routes run on the threadpool, so sessions cross threads.
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args)


class Database:
    """Engine and session factory owned by one application instance."""

    def __init__(self, database_url: str):
        self.engine = build_engine(database_url)
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
        )

    def create_schema(self) -> None:
        # Registers the mapped tables on Base.metadata.
        from userhub.models import user  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    def dispose(self) -> None:
        self.engine.dispose()
