"""Exceptions related to gitstore."""

__all__ = [
    "GitstoreException",
    "InputException",
    "KeyNotFoundError",
    "CommandException",
    "GitException",
]


class GitstoreException(Exception):
    """Generic base exception used for this library."""


class InputException(GitstoreException):
    """Raised when stored content is not formatted as expected."""


class KeyNotFoundError(GitstoreException):
    """Raised when a tracked key has no content in any tier."""

    def __init__(self, key: str) -> None:
        super().__init__(f"No stored content found for '{key}'")
        self.key = key


class CommandException(GitstoreException):
    """Raised when there is a failure running a subcommand."""


class GitException(CommandException):
    """Raised when there is a failure running a git command."""
