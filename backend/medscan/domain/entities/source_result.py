"""
Source Result Entity

Outcome of one adapter query against one external data provider.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Dict
from enum import Enum
from datetime import datetime, timezone


class SourceKind(Enum):
    """External data providers known to the aggregation engine."""

    REGULATORY_FILINGS = "regulatory_filings"   # openFDA Drugs@FDA
    DRUG_NOMENCLATURE = "drug_nomenclature"     # RxNorm / RxNav
    LABEL_REPOSITORY = "label_repository"       # DailyMed
    ADVERSE_EVENTS = "adverse_events"           # openFDA FAERS counts
    STRUCTURED_LABEL = "structured_label"       # openFDA drug labels
    LOCAL_CATALOG = "local_catalog"             # bundled JSON catalog


class SourceStatus(Enum):
    """Status of an adapter query."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SourceResult:
    """
    Raw provider response owned by one aggregation run.

    Attributes:
        source_id: Provider that answered
        display_name: Name recorded in the sources ledger
        reliability_weight: Provider reliability in [0, 1]
        status: Found / NotFound / Error
        term: Search term the query used
        payload: Provider-specific response body (only when found)
        fetched_at: When the response was received
        error: Failure description (only when status is ERROR)
    """

    source_id: SourceKind
    display_name: str
    reliability_weight: float
    status: SourceStatus
    term: str = ""
    payload: Any = None
    fetched_at: datetime = field(default_factory=_utcnow, compare=False)
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.reliability_weight <= 1.0:
            raise ValueError(f"Reliability weight must be in [0, 1], got {self.reliability_weight}")

    @property
    def is_found(self) -> bool:
        return self.status == SourceStatus.FOUND

    def __str__(self) -> str:
        return f"SourceResult({self.source_id.value}, '{self.term}', {self.status.value})"

    @classmethod
    def found(
        cls,
        source_id: SourceKind,
        display_name: str,
        reliability_weight: float,
        term: str,
        payload: Any
    ) -> "SourceResult":
        return cls(source_id, display_name, reliability_weight, SourceStatus.FOUND, term, payload)

    @classmethod
    def not_found(
        cls,
        source_id: SourceKind,
        display_name: str,
        reliability_weight: float,
        term: str
    ) -> "SourceResult":
        return cls(source_id, display_name, reliability_weight, SourceStatus.NOT_FOUND, term)

    @classmethod
    def failed(
        cls,
        source_id: SourceKind,
        display_name: str,
        reliability_weight: float,
        term: str,
        error: str
    ) -> "SourceResult":
        return cls(source_id, display_name, reliability_weight, SourceStatus.ERROR, term, error=error)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "sourceId": self.source_id.value,
            "source": self.display_name,
            "reliabilityWeight": self.reliability_weight,
            "status": self.status.value,
            "term": self.term,
            "fetchedAt": self.fetched_at.isoformat(),
            "error": self.error,
        }
