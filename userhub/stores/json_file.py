"""
JSON-file user store.

The whole array of user records lives in one file. Every mutation loads
the file, changes the list in memory and writes the full list back.
Each load-change-write sequence runs under the store's lock, and writes
go to a temporary file in the same directory that is then moved over
the target, so readers never see a half-written file. The lock only
covers threads of one process; separate processes sharing the file can
still lose each other's updates.
"""

import json
import logging
import os
import stat
import tempfile
from pathlib import Path
from threading import Lock

from userhub.errors import (
    RecordValidationError,
    StorageParseError,
    StorageReadError,
    StorageWriteError,
    UserConflictError,
    UserNotFoundError,
)
from userhub.stores.base import UserRecord

logger = logging.getLogger(__name__)

DEFAULT_FILE_MODE = 0o644


class JsonFileUserStore:
    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = Lock()

    def initialize(self) -> None:
        """Create the backing file with an empty array if it is missing."""
        with self._lock:
            if self.path.exists():
                return
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._save([])
        logger.info("Created empty users file at %s", self.path)

    def list_users(self) -> list[UserRecord]:
        with self._lock:
            return self._load()

    def create_user(self, record: UserRecord) -> UserRecord:
        if record.get("id") is None:
            raise RecordValidationError("User id is required")

        with self._lock:
            users = self._load()
            if any(user.get("id") == record["id"] for user in users):
                raise UserConflictError(f"A user with id {record['id']} already exists")
            users.append(record)
            self._save(users)

        logger.info("Created user %s in %s", record["id"], self.path.name)
        return record

    def update_user(self, user_id: int, changes: UserRecord) -> UserRecord:
        """Shallow-merge ``changes`` over the stored record.

        Fields missing from ``changes`` keep their stored values. An ``id``
        inside ``changes`` replaces the stored id as well.
        """
        with self._lock:
            users = self._load()
            for index, user in enumerate(users):
                if user.get("id") == user_id:
                    merged = {**user, **changes}
                    users[index] = merged
                    self._save(users)
                    break
            else:
                raise UserNotFoundError(user_id)

        logger.info("Updated user %s in %s", user_id, self.path.name)
        return merged

    def delete_user(self, user_id: int) -> None:
        with self._lock:
            users = self._load()
            remaining = [user for user in users if user.get("id") != user_id]
            if len(remaining) == len(users):
                raise UserNotFoundError(user_id)
            self._save(remaining)

        logger.info("Deleted user %s from %s", user_id, self.path.name)

    def _load(self) -> list[UserRecord]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StorageReadError(f"Could not read users from {self.path}") from exc

        try:
            users = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StorageParseError(f"Users file {self.path} is not valid JSON") from exc

        if not isinstance(users, list):
            raise StorageParseError(f"Users file {self.path} must contain a JSON array")
        return users

    def _file_mode(self) -> int:
        # NamedTemporaryFile creates 0600 files; keep the target's permissions.
        try:
            return stat.S_IMODE(self.path.stat().st_mode)
        except FileNotFoundError:
            return DEFAULT_FILE_MODE

    def _save(self, users: list[UserRecord]) -> None:
        temp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
            ) as tf:
                temp_path = Path(tf.name)
                json.dump(users, tf, indent=2, ensure_ascii=False)
            os.chmod(temp_path, self._file_mode())
            os.replace(temp_path, self.path)
        except OSError as exc:
            if temp_path is not None and temp_path.exists():
                temp_path.unlink()
            raise StorageWriteError(f"Could not write users to {self.path}") from exc
