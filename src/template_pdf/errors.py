"""
Exception hierarchy for the template PDF pipeline.
"""

from typing import Optional


class TemplatePDFError(Exception):
    """Base exception for template PDF operations."""
    pass


class ConfigurationError(TemplatePDFError):
    """Exception raised when configuration cannot be loaded."""
    pass


class TemplateNotFoundError(TemplatePDFError):
    """Exception raised when a logical template name doesn't resolve to a path."""
    pass


class SourceFetchError(TemplatePDFError):
    """Exception raised when a document, listing or archive fetch fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ArchiveExtractionError(TemplatePDFError):
    """Exception raised when an archive snapshot cannot be read."""
    pass


class RenderError(TemplatePDFError):
    """Exception raised when the rendering engine fails."""
    pass
