"""
Error taxonomy for the TabWriter service.

Fatal errors (configuration, invalid input, unreadable source, completion
outage in a non-isolated step) propagate to the caller. Soft failures are
logged where they happen and replaced by documented neutral defaults.
"""

from typing import Optional


class TabWriterError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(TabWriterError):
    """Required configuration (such as a completion credential) is missing."""


class InvalidInputError(TabWriterError, ValueError):
    """Caller supplied empty or out-of-range input."""


class SourceReadError(TabWriterError):
    """The secondary source document could not be read or decoded."""


class CompletionUnavailable(TabWriterError):
    """The hosted completion model failed (network, auth, rate limit)."""


class SearchProviderError(TabWriterError):
    """A search provider returned an unusable response."""

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider


class RateLimitedError(SearchProviderError):
    """Exception raised when a search provider answers HTTP 429."""

    def __init__(
        self,
        message: Optional[str] = None,
        provider: Optional[str] = None,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message or "Rate limited", provider=provider)
        self.retry_after = retry_after
