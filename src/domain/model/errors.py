"""Domain-level exceptions.

Adapters raise these errors to express failures that are not tied to HTTP.
Route handlers and security dependencies catch them and map to status codes.
"""


class DomainError(Exception):
    """Base class for all domain errors."""


class AuthenticationError(DomainError):
    """Bearer token is missing, malformed, or fails verification."""


class IdentityProviderError(DomainError):
    """The identity provider could not be reached or returned garbage."""


class DuplicateError(DomainError):
    """Entity with the same unique key already exists."""
