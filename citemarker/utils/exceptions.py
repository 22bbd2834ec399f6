"""
Custom exceptions for citemarker.

All application-specific exceptions inherit from CitemarkerError.
"""

from typing import Optional


class CitemarkerError(Exception):
    """Base exception for all citemarker errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[str] = None,
        recoverable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__.upper()
        self.details = details
        self.recoverable = recoverable

    def to_dict(self, safe: bool = False) -> dict:
        """Convert exception to dictionary for callers that report errors.

        Args:
            safe: If True, omit internal details.
        """
        result = {
            "error": {
                "code": self.code,
                "message": self.message,
                "recoverable": self.recoverable,
            }
        }
        if not safe and self.details:
            result["error"]["details"] = self.details
        return result


# --- Style Errors ---

class StyleError(CitemarkerError):
    """Style property has a value the marker builders cannot use."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(
            message=message,
            code="STYLE_ERROR",
            details=details,
            recoverable=False,
        )


# --- Entry Errors ---

class InvalidCitationEntryError(CitemarkerError):
    """Citation entry was constructed with invalid values."""

    def __init__(self, citation_key: str, reason: str):
        super().__init__(
            message=f"Invalid citation entry: {reason}",
            code="INVALID_CITATION_ENTRY",
            details=f"Citation key: {citation_key}",
            recoverable=False,
        )


# --- Marker Errors ---

class MarkerBuildError(CitemarkerError):
    """Errors raised while producing a citation marker."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(
            message=message,
            code="MARKER_BUILD_ERROR",
            details=details,
            recoverable=False,
        )


class NonUniqueCitationMarkerError(MarkerBuildError):
    """Two different records would render identical marker text."""

    def __init__(self, first_key: str, second_key: str, marker: str):
        super().__init__(
            message="Different citation keys but same citation marker",
            details=f"Keys: {first_key}, {second_key}; marker: {marker!r}",
        )
        self.code = "NON_UNIQUE_CITATION_MARKER"
        self.first_key = first_key
        self.second_key = second_key
        self.marker = marker


# --- Config Errors ---

class ConfigError(CitemarkerError):
    """Errors related to configuration."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(
            message=message,
            code="CONFIG_ERROR",
            details=details,
            recoverable=False,
        )
