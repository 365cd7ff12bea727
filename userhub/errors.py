"""Error types raised by the record stores and the credential service."""


class UserHubError(Exception):
    """Base class for errors the routes translate into HTTP responses."""


class RecordValidationError(UserHubError):
    pass


class UserConflictError(UserHubError):
    pass


class UserNotFoundError(UserHubError):
    def __init__(self, user_id: int):
        super().__init__(f"User with id {user_id} does not exist")
        self.user_id = user_id


class StorageError(UserHubError):
    pass


class StorageReadError(StorageError):
    pass


class StorageParseError(StorageError):
    pass


class StorageWriteError(StorageError):
    pass


class InvalidCredentialsError(UserHubError):
    def __init__(self) -> None:
        super().__init__("Invalid email or password")
