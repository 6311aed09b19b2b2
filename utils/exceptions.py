"""
Custom Exception Classes for xpost

This module defines custom exceptions for better error handling and
categorization of failures across the application.
"""


class XPostError(Exception):
    """Base exception for all xpost application errors."""
    pass


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(XPostError):
    """Raised when configuration validation fails or required settings are missing."""
    pass


# =============================================================================
# Local Resource Errors
# =============================================================================

class ImageError(XPostError):
    """Raised when an image cannot be read, decoded or re-encoded as PNG."""
    pass


class DraftStorageError(XPostError):
    """Raised when a draft cannot be written, read or deleted."""
    pass


# =============================================================================
# Social Media Errors
# =============================================================================

class SocialMediaError(XPostError):
    """Base exception for social media platform errors."""
    pass


class TransportError(SocialMediaError):
    """Raised when the service cannot be reached (DNS, TLS, connection, timeout)."""
    pass


class ApiError(SocialMediaError):
    """Raised when the service answers with a non-2xx status."""

    def __init__(self, status_code: int, body: str, context: str = ""):
        self.status_code = status_code
        self.body = body
        self.context = context
        prefix = f"{context}: " if context else ""
        super().__init__(f"{prefix}API error {status_code}: {body}")


class SerializationError(SocialMediaError):
    """Raised when a response body is not the JSON the service documents."""
    pass
