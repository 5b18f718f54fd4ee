"""
Confidence Score Value Object

Model-supplied identification confidence on a fixed 1-10 ordinal scale.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


MIN_CONFIDENCE = 1
MAX_CONFIDENCE = 10


class ConfidenceLevel(Enum):
    """Categorical confidence levels for user-facing decisions."""

    LOW = "low"          # 1-3: unreliable, user must verify
    MEDIUM = "medium"    # 4-6: plausible
    HIGH = "high"        # 7-10: clear identification


@dataclass(frozen=True)
class ConfidenceScore:
    """
    Immutable value object for the 1-10 confidence the model reports.

    The score is never recalibrated, only clamped into range.

    Attributes:
        value: Integer between 1 and 10
    """

    value: int

    def __post_init__(self) -> None:
        """Validate confidence score is within valid range."""
        if not MIN_CONFIDENCE <= self.value <= MAX_CONFIDENCE:
            raise ValueError(
                f"Confidence must be between {MIN_CONFIDENCE} and {MAX_CONFIDENCE}, got {self.value}"
            )

    @property
    def level(self) -> ConfidenceLevel:
        """Get categorical confidence level."""
        if self.value <= 3:
            return ConfidenceLevel.LOW
        elif self.value <= 6:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.HIGH

    @property
    def requires_verification(self) -> bool:
        """Low scores always need the user to confirm the name."""
        return self.level == ConfidenceLevel.LOW

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"{self.value}/{MAX_CONFIDENCE}"

    @classmethod
    def minimum(cls) -> "ConfidenceScore":
        """Create the lowest confidence score."""
        return cls(value=MIN_CONFIDENCE)

    @classmethod
    def clamped(cls, raw: Any) -> "ConfidenceScore":
        """
        Build a score from whatever the model returned.

        Numbers (and numeric strings) are rounded and clamped to the nearest
        bound; anything else becomes the minimum.
        """
        if isinstance(raw, bool):
            return cls.minimum()
        try:
            number = float(raw)
        except (TypeError, ValueError):
            return cls.minimum()
        if number != number:  # NaN
            return cls.minimum()
        return cls(value=int(round(max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, number)))))
