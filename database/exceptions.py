"""Storage-level errors shared by the asyncpg and in-memory repositories.

Services translate these into ``services.errors`` before they reach the API.
"""


class DatabaseError(Exception):
    pass


class NotFoundError(DatabaseError):
    """The row a write depends on (e.g. the round being scored) is gone."""


class DuplicateError(DatabaseError):
    """A unique rule was hit: second active round, repeated shot number."""


class IntegrityError(DatabaseError):
    """A referenced row is missing (round for an unknown course)."""
