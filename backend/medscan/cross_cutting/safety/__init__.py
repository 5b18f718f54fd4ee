"""
Safety Module

Medical disclaimers.
"""

from .disclaimers import DisclaimerInjector, DisclaimerLanguage, MEDICAL_DISCLAIMER

__all__ = [
    "DisclaimerInjector",
    "DisclaimerLanguage",
    "MEDICAL_DISCLAIMER",
]
