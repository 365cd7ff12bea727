"""Request-scoped access to the objects ``create_app`` puts on ``app.state``."""

from collections.abc import Iterator

from fastapi import Request
from sqlalchemy.orm import Session

from userhub.stores.base import UserStore


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_user_store(request: Request) -> UserStore:
    return request.app.state.user_store


def get_db_user_store(request: Request) -> UserStore:
    return request.app.state.db_user_store
