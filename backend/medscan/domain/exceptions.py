"""
Domain Exceptions

Custom exceptions for the medicine identification domain.
Exceptions are grouped by pipeline concern. None of them is allowed to
escape the analysis service; each boundary converts them into typed results.
"""

from typing import Optional, Dict, Any


class DomainException(Exception):
    """
    Base exception for all domain-level errors.

    Attributes:
        message: Human-readable error message
        details: Additional error details
        is_recoverable: Whether the operation can be retried
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        is_recoverable: bool = True
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.is_recoverable = is_recoverable

    def __str__(self) -> str:
        return f"{self.__class__.__name__}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "is_recoverable": self.is_recoverable,
        }


# =============================================================================
# Vision Analysis Exceptions
# =============================================================================

class VisionAnalysisError(DomainException):
    """Base exception for vision analysis errors."""
    pass


class VisionModelConnectionError(VisionAnalysisError):
    """The generative vision model could not be reached or errored."""

    def __init__(
        self,
        message: str = "Failed to reach the vision model",
        provider: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        if provider:
            self.details["provider"] = provider


class ModelResponseMalformedError(VisionAnalysisError):
    """The model answered, but no JSON object could be parsed from the text."""

    def __init__(
        self,
        message: str = "Model response did not contain a parseable JSON object",
        raw_text: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        if raw_text:
            self.details["raw_text_preview"] = raw_text[:200]


class VerifiedNameRequiredError(VisionAnalysisError):
    """Comprehensive analysis was requested without a user-verified name."""

    def __init__(
        self,
        message: str = "Comprehensive analysis requires a verified medicine name",
        **kwargs
    ):
        super().__init__(message, is_recoverable=False, **kwargs)


# =============================================================================
# External Source Exceptions
# =============================================================================

class SourceError(DomainException):
    """Base exception for external data source errors."""

    def __init__(
        self,
        message: str,
        source_id: Optional[str] = None,
        term: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        if source_id:
            self.details["source_id"] = source_id
        if term:
            self.details["term"] = term


class SourceUnavailableError(SourceError):
    """Provider could not be reached (connection error or timeout)."""
    pass


class SourceResponseError(SourceError):
    """Provider answered with an unexpected status or an unreadable body."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        if status_code is not None:
            self.details["status_code"] = status_code


# =============================================================================
# Aggregation Exceptions
# =============================================================================

class AggregationError(DomainException):
    """Base exception for aggregation engine errors."""
    pass


class AggregationConfigurationError(AggregationError):
    """Engine is not properly configured."""

    def __init__(
        self,
        message: str = "Aggregation engine is not properly configured",
        missing_components: Optional[list] = None,
        **kwargs
    ):
        super().__init__(message, is_recoverable=False, **kwargs)
        if missing_components:
            self.details["missing_components"] = missing_components


class PhaseExecutionError(AggregationError):
    """An aggregation phase failed to execute."""

    def __init__(
        self,
        phase_name: str,
        original_error: Exception,
        **kwargs
    ):
        message = f"Phase '{phase_name}' failed: {str(original_error)}"
        super().__init__(message, **kwargs)
        self.phase_name = phase_name
        self.original_error = original_error
        self.details["phase"] = phase_name
        self.details["original_error"] = str(original_error)


# =============================================================================
# Validation Exceptions
# =============================================================================

class ValidationError(DomainException):
    """Base exception for validation errors."""
    pass


class InvalidImageError(ValidationError):
    """Input image is invalid or corrupted."""

    def __init__(
        self,
        message: str = "Invalid or corrupted image",
        **kwargs
    ):
        super().__init__(message, is_recoverable=False, **kwargs)


class InvalidInputError(ValidationError):
    """Invalid input provided to a function or method."""

    def __init__(
        self,
        field: str,
        reason: str,
        **kwargs
    ):
        message = f"Invalid input for '{field}': {reason}"
        super().__init__(message, is_recoverable=False, **kwargs)
        self.details["field"] = field
        self.details["reason"] = reason
