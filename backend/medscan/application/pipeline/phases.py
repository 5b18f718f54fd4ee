"""
Aggregation Phase Definitions

Defines the seven aggregation phases and their execution logic. Network
phases submit adapter tasks to the run's thread pool; derivation phases
only check that the data they summarize exists.
"""

from abc import ABC, abstractmethod
from concurrent.futures import wait
from dataclasses import dataclass
from typing import Optional, Dict, List, Sequence, Tuple
import logging

from .context import AggregationContext, AggregationPhase
from ...config.settings import AggregationConfig
from ...domain.entities.source_result import SourceResult, SourceKind
from ...domain.ports.source_adapter import SourceAdapterPort
from ...domain.exceptions import DomainException, PhaseExecutionError


logger = logging.getLogger(__name__)


def query_safely(adapter: SourceAdapterPort, term: str) -> SourceResult:
    """Query an adapter, converting anything it raises into an ERROR result."""
    try:
        return adapter.query(term)
    except Exception as e:
        logger.warning(f"{adapter.source_id.value} raised for '{term}': {e}")
        return SourceResult.failed(
            adapter.source_id, adapter.display_name, adapter.reliability_weight, term, str(e)
        )


@dataclass(frozen=True)
class AdapterTask:
    """
    One unit of concurrent work: an adapter queried for one or more terms.

    With ``stop_on_found`` the terms are tried in order and the task stops
    at the first FOUND result.
    """

    adapter: SourceAdapterPort
    terms: Tuple[str, ...]
    stop_on_found: bool = False

    def __call__(self) -> List[SourceResult]:
        results = []
        for term in self.terms:
            result = query_safely(self.adapter, term)
            results.append(result)
            if self.stop_on_found and result.is_found:
                break
        return results

    def timed_out(self, timeout: float) -> List[SourceResult]:
        return [
            SourceResult.failed(
                self.adapter.source_id,
                self.adapter.display_name,
                self.adapter.reliability_weight,
                self.terms[0] if self.terms else "",
                f"No answer within the {timeout:g}s phase limit",
            )
        ]


def run_tasks(context: AggregationContext, tasks: Sequence[AdapterTask]) -> List[SourceResult]:
    """
    Execute tasks and return their results in task order.

    Tasks run on the context's executor when one is set. Tasks still
    running when the phase timeout expires contribute an ERROR result.
    """
    if context.executor is None:
        results = []
        for task in tasks:
            results.extend(task())
        return results

    futures = [context.executor.submit(task) for task in tasks]
    wait(futures, timeout=context.phase_timeout)

    results = []
    for task, future in zip(tasks, futures):
        if future.done():
            try:
                results.extend(future.result())
            except Exception as e:
                logger.warning(f"Task for {task.adapter.source_id.value} failed: {e}")
                results.extend(task.timed_out(context.phase_timeout))
        else:
            future.cancel()
            logger.warning(
                f"{task.adapter.source_id.value} did not answer within {context.phase_timeout}s"
            )
            results.extend(task.timed_out(context.phase_timeout))
    return results


# =============================================================================
# Phase Executor Base
# =============================================================================

class PhaseExecutor(ABC):
    """
    Abstract base class for aggregation phase executors.

    Phases never raise: ``run`` records any exception on the context and
    the engine moves on to the next phase. There are no retries.
    """

    def __init__(
        self,
        adapters: Dict[SourceKind, SourceAdapterPort],
        config: Optional[AggregationConfig] = None
    ):
        self.adapters = adapters
        self.config = config or AggregationConfig()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    @abstractmethod
    def phase(self) -> AggregationPhase:
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def execute(self, context: AggregationContext) -> None:
        """Read inputs from the context and record results on it."""
        pass

    def adapter(self, kind: SourceKind) -> Optional[SourceAdapterPort]:
        return self.adapters.get(kind)

    def run(self, context: AggregationContext) -> bool:
        """
        Run the phase with error handling.

        Returns:
            True if the phase completed without an exception
        """
        context.start_phase(self.phase)
        try:
            self.logger.debug(f"Executing phase {self.name}")
            self.execute(context)
            return True
        except DomainException as e:
            self.logger.warning(f"Phase {self.name} failed: {e}")
            context.add_error(self.phase, e.__class__.__name__, e.message, e.details)
            return False
        except Exception as e:
            error = PhaseExecutionError(self.name, e)
            self.logger.error(f"Unexpected error in phase {self.name}: {e}", exc_info=True)
            context.add_error(self.phase, e.__class__.__name__, error.message, error.details)
            return False
        finally:
            context.finish_phase(self.phase)

    def _tasks(
        self,
        kinds: Sequence[SourceKind],
        terms: Sequence[str],
        stop_on_found: bool = False
    ) -> List[AdapterTask]:
        """One task per (term, adapter), or one sequential task per adapter."""
        adapters = [a for a in (self.adapter(kind) for kind in kinds) if a is not None]
        if stop_on_found:
            return [AdapterTask(a, tuple(terms), stop_on_found=True) for a in adapters if terms]
        return [AdapterTask(a, (term,)) for term in terms for a in adapters]


# =============================================================================
# Concrete Phase Executors
# =============================================================================

class PrimaryIdentificationPhase(PhaseExecutor):
    """
    P1: top terms against regulatory filings, nomenclature and local catalog.

    The regulatory lookup walks the terms in order and stops at the first
    match; nomenclature and the local catalog are queried for every term.
    """

    @property
    def phase(self) -> AggregationPhase:
        return AggregationPhase.PRIMARY_IDENTIFICATION

    @property
    def name(self) -> str:
        return "Primary Identification"

    def execute(self, context: AggregationContext) -> None:
        terms = [t.text for t in context.terms(self.config.primary_term_limit)]
        if not terms:
            context.add_warning(
                "No search terms could be derived from the image analysis; "
                "external sources were not queried"
            )
            return

        tasks = self._tasks([SourceKind.REGULATORY_FILINGS], terms, stop_on_found=True)
        tasks += self._tasks([SourceKind.DRUG_NOMENCLATURE], terms)
        tasks += self._tasks([SourceKind.LOCAL_CATALOG], terms)

        context.add_results(self.phase, run_tasks(context, tasks))


class PrescribingInfoPhase(PhaseExecutor):
    """P2: official label repository, stopping at the first match."""

    @property
    def phase(self) -> AggregationPhase:
        return AggregationPhase.PRESCRIBING_INFO

    @property
    def name(self) -> str:
        return "Prescribing Info"

    def execute(self, context: AggregationContext) -> None:
        terms = [t.text for t in context.terms(self.config.secondary_term_limit)]
        tasks = self._tasks([SourceKind.LABEL_REPOSITORY], terms, stop_on_found=True)
        context.add_results(self.phase, run_tasks(context, tasks))


class PharmacologyPhase(PhaseExecutor):
    """P3: no network calls; pharmacology is derived from P1 results."""

    @property
    def phase(self) -> AggregationPhase:
        return AggregationPhase.PHARMACOLOGY

    @property
    def name(self) -> str:
        return "Pharmacology"

    def execute(self, context: AggregationContext) -> None:
        primary = AggregationPhase.PRIMARY_IDENTIFICATION
        if not any(
            context.found(kind, primary)
            for kind in (SourceKind.REGULATORY_FILINGS, SourceKind.DRUG_NOMENCLATURE, SourceKind.LOCAL_CATALOG)
        ):
            context.add_warning(
                "Pharmacology is limited to the image analysis: no identification source matched"
            )


class SafetyPhase(PhaseExecutor):
    """P4: adverse events and structured labels for every secondary term."""

    @property
    def phase(self) -> AggregationPhase:
        return AggregationPhase.SAFETY

    @property
    def name(self) -> str:
        return "Safety"

    def execute(self, context: AggregationContext) -> None:
        terms = [t.text for t in context.terms(self.config.secondary_term_limit)]
        tasks = self._tasks([SourceKind.ADVERSE_EVENTS, SourceKind.STRUCTURED_LABEL], terms)
        context.add_results(self.phase, run_tasks(context, tasks))


class RegulatoryManufacturingPhase(PhaseExecutor):
    """P5: no network calls; derived from the P1 regulatory filing only."""

    @property
    def phase(self) -> AggregationPhase:
        return AggregationPhase.REGULATORY_MANUFACTURING

    @property
    def name(self) -> str:
        return "Regulatory & Manufacturing"

    def execute(self, context: AggregationContext) -> None:
        if not context.found(SourceKind.REGULATORY_FILINGS, AggregationPhase.PRIMARY_IDENTIFICATION):
            context.add_warning("No regulatory filing matched; regulatory information is unavailable")


class PricingAlternativesPhase(PhaseExecutor):
    """P6: no network calls; derived from P1 nomenclature related concepts."""

    @property
    def phase(self) -> AggregationPhase:
        return AggregationPhase.PRICING_ALTERNATIVES

    @property
    def name(self) -> str:
        return "Pricing & Alternatives"

    def execute(self, context: AggregationContext) -> None:
        nomenclature = context.found(SourceKind.DRUG_NOMENCLATURE, AggregationPhase.PRIMARY_IDENTIFICATION)
        if not any(isinstance(r.payload, dict) and r.payload.get("relatedGroup") for r in nomenclature):
            context.add_warning("No related drug concepts found; alternatives are unavailable")


class CrossReferencePhase(PhaseExecutor):
    """P7: compare overlapping fields across reporters; conflicts never block."""

    def __init__(
        self,
        adapters: Dict[SourceKind, SourceAdapterPort],
        config: Optional[AggregationConfig] = None,
        validator=None  # CrossReferenceValidator
    ):
        super().__init__(adapters, config)
        if validator is None:
            from ..compiler.cross_reference import CrossReferenceValidator
            validator = CrossReferenceValidator(agreement_threshold=self.config.agreement_threshold)
        self.validator = validator

    @property
    def phase(self) -> AggregationPhase:
        return AggregationPhase.CROSS_REFERENCE

    @property
    def name(self) -> str:
        return "Cross Reference"

    def execute(self, context: AggregationContext) -> None:
        found = [r for r in context.all_results if r.is_found]
        report = self.validator.validate(context.vision_result, found)
        context.cross_reference = report

        for conflict in report.conflicts:
            context.add_warning(conflict.describe())
        for ndc in report.invalid_ndcs:
            context.add_warning(f"NDC '{ndc}' does not match the expected NDC format")


def default_phases(
    adapters: Dict[SourceKind, SourceAdapterPort],
    config: Optional[AggregationConfig] = None,
    validator=None
) -> List[PhaseExecutor]:
    """The seven phases in execution order."""
    return [
        PrimaryIdentificationPhase(adapters, config),
        PrescribingInfoPhase(adapters, config),
        PharmacologyPhase(adapters, config),
        SafetyPhase(adapters, config),
        RegulatoryManufacturingPhase(adapters, config),
        PricingAlternativesPhase(adapters, config),
        CrossReferencePhase(adapters, config, validator),
    ]
