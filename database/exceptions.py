"""Database exceptions."""


class DatabaseError(Exception):
    """Base exception for database failures."""
    pass


class DatabaseSchemaError(DatabaseError):
    """Raised when schema files are invalid or a migration fails."""
    pass
