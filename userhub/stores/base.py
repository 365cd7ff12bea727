from typing import Any, Protocol

UserRecord = dict[str, Any]


class UserStore(Protocol):
    """Record store contract shared by the file and database backends."""

    def initialize(self) -> None: ...

    def list_users(self) -> list[UserRecord]: ...

    def create_user(self, record: UserRecord) -> UserRecord: ...

    def update_user(self, user_id: int, changes: UserRecord) -> UserRecord: ...

    def delete_user(self, user_id: int) -> None: ...
