"""
Custom exceptions for the completion layer.
"""


class AppError(Exception):
    """Base exception for application errors."""

    pass


class LLMProviderError(AppError):
    """Raised when the upstream model provider fails."""

    pass


class ValidationError(AppError):
    """Raised when validation fails."""

    pass


class ConfigurationError(AppError):
    """Raised when configuration is invalid."""

    pass


class FixtureError(AppError):
    """Raised when a test fixture is missing data or misconfigured."""

    pass


class FixtureNotFoundError(FixtureError):
    """Raised when a fixture file does not exist."""

    pass


class FixtureIndexError(FixtureError):
    """Raised when a response index falls outside a fixture's responses."""

    pass
