"""
Exception types for the mockup autogen pipeline.

Every fatal generation error is caught at the service boundary and turned
into the fallback image, so these carry enough context for the logs rather
than for the HTTP caller.
"""

from typing import Any, Dict, Optional


class AutogenError(Exception):
    """Base exception for all autogen errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'details': self.details,
        }


class RequestParseError(AutogenError):
    """Raised when a request identifier does not follow the filename grammar."""
    pass


class ClassificationAmbiguous(AutogenError):
    """Raised internally when a template cannot be classified; never fatal."""
    pass


class RegistryError(AutogenError):
    """Raised when placement data is malformed at registry build time."""
    pass


class AssetStoreError(AutogenError):
    """Raised when the storage backend fails to read or write."""
    pass


class AssetFetchFailed(AutogenError):
    """Raised when a design asset is missing, undersized or undecodable."""
    pass


class ExtractionFailed(AutogenError):
    """Raised when trimmed design content is degenerate."""
    pass


class CompositionFailed(AutogenError):
    """Raised when the composite cannot be decoded, placed or encoded."""
    pass


class TemplateNotFound(CompositionFailed):
    """Raised when the base template asset does not exist."""
    pass


class GenerationTimeout(AutogenError):
    """Raised when a generation exceeds its time budget."""
    pass


class GenerationCancelled(AutogenError):
    """Raised from CPU stages when their cancel signal has been set."""
    pass
