"""
Exception hierarchy for autocomplete resolvers.

Store failures are not wrapped: anything SQLAlchemy raises reaches the caller
as-is, re-exported here as PersistenceError for convenience.
"""

from sqlalchemy.exc import SQLAlchemyError as PersistenceError


class AutocompleteError(Exception):
    """Base class for errors raised by this package."""
    pass


class ConfigurationError(AutocompleteError):
    """Raised when a resolver, connection or fetcher is misconfigured."""
    pass


class InvalidPropertyPathError(ConfigurationError):
    """Raised when a property path string cannot be parsed."""
    pass


class FieldResolutionError(AutocompleteError):
    """Raised when a property path does not resolve on an object."""

    def __init__(self, path: str, step: str, obj_type: str):
        self.path = path
        self.step = step
        self.obj_type = obj_type
        super().__init__(
            f"Cannot read '{step}' of property path '{path}' on object of type {obj_type}"
        )


__all__ = [
    "AutocompleteError",
    "ConfigurationError",
    "InvalidPropertyPathError",
    "FieldResolutionError",
    "PersistenceError",
]
