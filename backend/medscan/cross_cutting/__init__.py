"""
Cross-Cutting Concerns

Utilities and services that span across multiple layers.
"""

from .logging import setup_logging, PipelineLogger
from .validation import validate_image, validate_image_set, validate_verified_name, decode_images
from .error_handling import ErrorHandler, safe_call
from .safety import DisclaimerInjector, MEDICAL_DISCLAIMER

__all__ = [
    "setup_logging",
    "PipelineLogger",
    "validate_image",
    "validate_image_set",
    "validate_verified_name",
    "decode_images",
    "ErrorHandler",
    "safe_call",
    "DisclaimerInjector",
    "MEDICAL_DISCLAIMER",
]
