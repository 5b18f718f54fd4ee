"""
DailyMed Adapter

Official label repository. DailyMed offers no query API suited to this
lookup, so the adapter always answers not found; it keeps its place in
the phases and reliability model so a real implementation can replace it.
"""

from typing import Any

from ...domain.entities.source_result import SourceKind
from .base import BaseSourceAdapter


class DailyMedAdapter(BaseSourceAdapter):
    """Placeholder adapter for the official label repository."""

    SOURCE_KIND = SourceKind.LABEL_REPOSITORY
    DISPLAY_NAME = "DailyMed"

    def _fetch(self, term: str) -> Any:
        return None
