class LeagueError(Exception):
    """Base class for errors raised by league services."""


class ValidationError(LeagueError, ValueError):
    pass


class NotFoundError(LeagueError, LookupError):
    pass


class ConflictError(LeagueError, ValueError):
    pass


class StorageError(LeagueError):
    """The database rejected or lost a write; the transaction was rolled back."""
