"""
Search Term Value Object

A query string derived from a vision result, with provenance and rank.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any


class TermOrigin(Enum):
    """Field of the vision result a term was derived from."""

    BRAND_NAME = "brand_name"
    GENERIC_NAME = "generic_name"
    ACTIVE_INGREDIENT = "active_ingredient"
    CODE = "code"
    DRUG_NAME_TOKEN = "drug_name_token"
    FREE_TEXT = "free_text"
    COMPOUND = "compound"


@dataclass(frozen=True)
class SearchTerm:
    """
    Immutable search term.

    Attributes:
        text: Query string sent to the providers
        origin: Which vision-result field produced it
        rank: Position in priority order (0 is highest)
    """

    text: str
    origin: TermOrigin
    rank: int = 0

    def __post_init__(self) -> None:
        if not self.text or not self.text.strip():
            raise ValueError("Search term text cannot be empty")

    @property
    def key(self) -> str:
        """Case-normalized form used for de-duplication."""
        return " ".join(self.text.lower().split())

    def __str__(self) -> str:
        return self.text

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "origin": self.origin.value, "rank": self.rank}
