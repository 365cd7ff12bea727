"""Database-backed user store with the same contract as the JSON file store."""

import logging
from collections.abc import Callable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from userhub.errors import (
    RecordValidationError,
    StorageReadError,
    StorageWriteError,
    UserConflictError,
    UserNotFoundError,
)
from userhub.models.user import ROLE_USER, User
from userhub.stores.base import UserRecord

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = ("id", "name", "email", "role")


class SqlUserStore:
    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def initialize(self) -> None:
        # Tables are created by Database.create_schema at startup.
        return None

    def list_users(self) -> list[UserRecord]:
        try:
            with self._session_factory() as db:
                return [user.to_public_dict() for user in db.query(User).order_by(User.id).all()]
        except SQLAlchemyError as exc:
            logger.exception("Listing users from the database failed")
            raise StorageReadError("Could not read users from the database") from exc

    def create_user(self, record: UserRecord) -> UserRecord:
        if record.get("id") is None:
            raise RecordValidationError("User id is required")

        with self._session_factory() as db:
            try:
                if db.get(User, record["id"]) is not None:
                    raise UserConflictError(f"A user with id {record['id']} already exists")
                user = User(
                    id=record["id"],
                    name=record.get("name"),
                    email=record.get("email"),
                    role=record.get("role") or ROLE_USER,
                )
                db.add(user)
                db.commit()
                created = user.to_public_dict()
            except IntegrityError as exc:
                db.rollback()
                raise UserConflictError("A user with this email already exists") from exc
            except SQLAlchemyError as exc:
                db.rollback()
                logger.exception("Creating user %s failed", record["id"])
                raise StorageWriteError("Could not save the user") from exc

        logger.info("Created user %s in the database", created["id"])
        return created

    def update_user(self, user_id: int, changes: UserRecord) -> UserRecord:
        with self._session_factory() as db:
            try:
                user = db.get(User, user_id)
                if user is None:
                    raise UserNotFoundError(user_id)
                for field in MUTABLE_FIELDS:
                    if field in changes:
                        setattr(user, field, changes[field])
                db.commit()
                updated = user.to_public_dict()
            except IntegrityError as exc:
                db.rollback()
                raise UserConflictError("A user with this email or id already exists") from exc
            except SQLAlchemyError as exc:
                db.rollback()
                logger.exception("Updating user %s failed", user_id)
                raise StorageWriteError("Could not update the user") from exc

        logger.info("Updated user %s in the database", user_id)
        return updated

    def delete_user(self, user_id: int) -> None:
        with self._session_factory() as db:
            try:
                user = db.get(User, user_id)
                if user is None:
                    raise UserNotFoundError(user_id)
                db.delete(user)
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                logger.exception("Deleting user %s failed", user_id)
                raise StorageWriteError("Could not delete the user") from exc

        logger.info("Deleted user %s from the database", user_id)
