"""Storage layer exceptions."""


class StorageError(Exception):
    """Base class for storage failures."""


class UserAlreadyExistsError(StorageError):
    """Raised when a username or email is already registered."""


class UserNotFoundError(StorageError):
    """Raised when a user lookup by id fails."""


class EntryNotFoundError(StorageError):
    """Raised when an authenticator entry does not exist or belongs to another user."""
