"""Custom exceptions for docstamp."""

from typing import Optional


class DocStampError(Exception):
    """Base exception for docstamp errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ExtractionError(DocStampError):
    """Raised when the markup holds too little text to be a real document."""

    pass


class LayoutError(DocStampError):
    """Exception raised during layout estimation or pagination."""

    pass


class RenderingError(DocStampError):
    """Exception raised while drawing onto the rendering surface."""

    pass


class MediaError(DocStampError):
    """Exception raised when an image payload cannot be decoded or embedded."""

    pass


class SettingsError(DocStampError):
    """Exception raised for invalid watermark settings."""

    pass
