"""
Aggregation Context

Carries state through the aggregation phases of one run.
"""

from concurrent.futures import Executor
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Tuple
from datetime import datetime
from enum import Enum
import uuid

from ...domain.entities.vision_result import VisionAnalysisResult
from ...domain.entities.source_result import SourceResult, SourceKind
from ...domain.entities.data_quality import CrossReferenceReport
from ...domain.value_objects.search_term import SearchTerm
from ..synthesis.search_terms import top_terms


class AggregationPhase(Enum):
    """Ordered aggregation phases."""

    PRIMARY_IDENTIFICATION = "p1_primary_identification"
    PRESCRIBING_INFO = "p2_prescribing_info"
    PHARMACOLOGY = "p3_pharmacology"
    SAFETY = "p4_safety"
    REGULATORY_MANUFACTURING = "p5_regulatory_manufacturing"
    PRICING_ALTERNATIVES = "p6_pricing_alternatives"
    CROSS_REFERENCE = "p7_cross_reference"


@dataclass
class PhaseMetrics:
    """
    Timing of a single phase execution.

    Attributes:
        phase: The aggregation phase
        start_time: When execution started
        end_time: When execution completed
        duration_ms: Total execution time in milliseconds
        calls: Adapter queries issued by the phase
    """

    phase: AggregationPhase
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration_ms: float = 0.0
    calls: int = 0

    def start(self) -> None:
        self.start_time = datetime.now()

    def finish(self) -> None:
        self.end_time = datetime.now()
        if self.start_time:
            delta = self.end_time - self.start_time
            self.duration_ms = delta.total_seconds() * 1000


@dataclass(frozen=True)
class PhaseError:
    """An error recorded by a phase; never fatal to the run."""

    phase: AggregationPhase
    error_type: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "type": self.error_type,
            "message": self.message,
            "details": self.details,
        }


@dataclass(frozen=True)
class AggregationOutcome:
    """
    Everything one aggregation run produced.

    Attributes:
        request_id: Identifier of the run
        search_terms: Terms derived from the vision result
        results: Every adapter result, in phase order then submission order
        sources: Display names of adapters with at least one found result
        cross_reference: Report from the cross-reference phase
        warnings: Non-fatal notes
        errors: Phase-level errors
        phase_durations: Phase value -> duration in milliseconds
    """

    request_id: str
    search_terms: Tuple[SearchTerm, ...] = ()
    results: Tuple[SourceResult, ...] = ()
    sources: Tuple[str, ...] = ()
    cross_reference: CrossReferenceReport = field(default_factory=CrossReferenceReport.empty)
    warnings: Tuple[str, ...] = ()
    errors: Tuple[PhaseError, ...] = ()
    phase_durations: Dict[str, float] = field(default_factory=dict)

    @property
    def found_results(self) -> List[SourceResult]:
        return [r for r in self.results if r.is_found]


@dataclass
class AggregationContext:
    """
    Context object that carries state through the phases.

    Phases read the vision result and terms, append adapter results, and
    record warnings and errors. Results are kept per phase in the order
    their tasks were submitted, so a run is reproducible regardless of
    the order in which concurrent calls complete.

    Attributes:
        request_id: Unique identifier for this run
        vision_result: Input vision analysis
        search_terms: Prioritized search terms
        executor: Thread pool for concurrent adapter calls (None = sequential)
        phase_timeout: Maximum wait for one phase's calls, in seconds
    """

    vision_result: VisionAnalysisResult
    search_terms: List[SearchTerm] = field(default_factory=list)
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    executor: Optional[Executor] = None
    phase_timeout: float = 90.0

    # Accumulated state
    results: Dict[AggregationPhase, List[SourceResult]] = field(default_factory=dict)
    cross_reference: CrossReferenceReport = field(default_factory=CrossReferenceReport.empty)
    errors: List[PhaseError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    # Execution metadata
    created_at: datetime = field(default_factory=datetime.now)
    phase_metrics: Dict[AggregationPhase, PhaseMetrics] = field(default_factory=dict)
    current_phase: Optional[AggregationPhase] = None

    def add_results(self, phase: AggregationPhase, results: List[SourceResult]) -> None:
        self.results.setdefault(phase, []).extend(results)
        if phase in self.phase_metrics:
            self.phase_metrics[phase].calls += len(results)

    def add_error(
        self,
        phase: AggregationPhase,
        error_type: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        self.errors.append(PhaseError(phase, error_type, message, details or {}))

    def add_warning(self, warning: str) -> None:
        """Add a warning to include in the final output."""
        if warning not in self.warnings:
            self.warnings.append(warning)

    def start_phase(self, phase: AggregationPhase) -> None:
        self.current_phase = phase
        self.phase_metrics[phase] = PhaseMetrics(phase=phase)
        self.phase_metrics[phase].start()

    def finish_phase(self, phase: AggregationPhase) -> None:
        if phase in self.phase_metrics:
            self.phase_metrics[phase].finish()

    def terms(self, limit: int) -> List[SearchTerm]:
        """Top ``limit`` search terms in rank order."""
        return top_terms(self.search_terms, limit)

    @property
    def all_results(self) -> List[SourceResult]:
        """All results in phase order."""
        ordered = []
        for phase in AggregationPhase:
            ordered.extend(self.results.get(phase, []))
        return ordered

    def found(
        self,
        kind: SourceKind,
        phase: Optional[AggregationPhase] = None
    ) -> List[SourceResult]:
        """Found results of one source, optionally restricted to one phase."""
        results = self.results.get(phase, []) if phase else self.all_results
        return [r for r in results if r.is_found and r.source_id == kind]

    @property
    def sources_ledger(self) -> List[str]:
        """Display names of sources with a found result, in first-found order."""
        ledger = []
        for result in self.all_results:
            if result.is_found and result.display_name not in ledger:
                ledger.append(result.display_name)
        return ledger

    @property
    def total_duration_ms(self) -> float:
        return sum(m.duration_ms for m in self.phase_metrics.values())

    def to_outcome(self) -> AggregationOutcome:
        return AggregationOutcome(
            request_id=self.request_id,
            search_terms=tuple(self.search_terms),
            results=tuple(self.all_results),
            sources=tuple(self.sources_ledger),
            cross_reference=self.cross_reference,
            warnings=tuple(self.warnings),
            errors=tuple(self.errors),
            phase_durations={
                phase.value: metrics.duration_ms
                for phase, metrics in self.phase_metrics.items()
            },
        )

    def __str__(self) -> str:
        found = sum(1 for r in self.all_results if r.is_found)
        return (
            f"AggregationContext(id={self.request_id[:8]}..., "
            f"results={len(self.all_results)}, found={found}, errors={len(self.errors)})"
        )
