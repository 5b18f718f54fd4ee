"""
Aggregation Engine

Runs the source adapters across the synthesized search terms in seven
ordered phases. Calls inside a phase run concurrently; phases run one
after another. No adapter failure ever fails the run.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Dict, List, Union, Iterable
import logging
import time

from .context import AggregationContext, AggregationOutcome
from .phases import PhaseExecutor, default_phases
from ..synthesis.search_terms import SearchTermSynthesizer
from ...config.settings import AggregationConfig
from ...cross_cutting.logging import PipelineLogger
from ...domain.entities.vision_result import VisionAnalysisResult
from ...domain.entities.source_result import SourceKind
from ...domain.ports.source_adapter import SourceAdapterPort
from ...domain.exceptions import AggregationConfigurationError


logger = logging.getLogger(__name__)


class AggregationEngine:
    """
    Multi-source aggregation over a fixed set of adapters.

    Flow: P1 identification -> P2 prescribing -> P3 pharmacology ->
    P4 safety -> P5 regulatory -> P6 alternatives -> P7 cross-reference

    Usage:
        engine = (
            AggregationEngineBuilder()
            .with_adapters(SourceAdapterFactory.create_all(config.sources))
            .with_config(config.aggregation)
            .build()
        )

        outcome = engine.run(vision_result)
    """

    def __init__(
        self,
        adapters: Dict[SourceKind, SourceAdapterPort],
        config: Optional[AggregationConfig] = None,
        synthesizer: Optional[SearchTermSynthesizer] = None,
        phases: Optional[List[PhaseExecutor]] = None,
        validator=None
    ):
        self.config = config or AggregationConfig()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._adapters = dict(adapters)
        self._synthesizer = synthesizer or SearchTermSynthesizer()
        self._phases = phases or default_phases(self._adapters, self.config, validator)

        self.logger.info(
            f"Aggregation engine initialized with {len(self._adapters)} adapters "
            f"and {len(self._phases)} phases"
        )

    def run(
        self,
        vision_result: VisionAnalysisResult,
        request_id: Optional[str] = None
    ) -> AggregationOutcome:
        """
        Aggregate provider data for a vision result.

        Args:
            vision_result: Result of the comprehensive vision analysis
            request_id: Identifier to log under (generated when omitted)

        Returns:
            AggregationOutcome with every result, the sources ledger and warnings
        """
        start_time = time.time()
        terms = self._synthesizer.synthesize(vision_result)

        context_args = {"vision_result": vision_result, "search_terms": terms}
        if request_id:
            context_args["request_id"] = request_id
        context = AggregationContext(phase_timeout=self.config.phase_timeout_seconds, **context_args)
        run_logger = PipelineLogger(context.request_id)

        self.logger.info(
            f"Starting aggregation (request_id={context.request_id}, terms={len(terms)})"
        )

        executor = ThreadPoolExecutor(
            max_workers=max(1, self.config.max_workers),
            thread_name_prefix="medscan-source",
        )
        context.executor = executor
        try:
            for phase in self._phases:
                run_logger.phase_start(phase.name)
                success = phase.run(context)
                run_logger.phase_end(phase.name, success)
        finally:
            context.executor = None
            executor.shutdown(wait=False, cancel_futures=True)

        outcome = context.to_outcome()
        elapsed_ms = (time.time() - start_time) * 1000
        run_logger.metric("aggregation_time", round(elapsed_ms, 2), "ms")

        self.logger.info(
            f"Aggregation completed: {len(outcome.results)} results, "
            f"{len(outcome.found_results)} found, sources={list(outcome.sources)}, "
            f"errors={len(outcome.errors)}, total time: {elapsed_ms:.2f}ms"
        )
        return outcome

    def close(self) -> None:
        """Close every adapter; the HTTP sessions they own are reused across runs until then."""
        for kind, adapter in self._adapters.items():
            try:
                adapter.close()
            except Exception as e:
                self.logger.warning(f"Failed to close {kind.value} adapter: {e}")
        self.logger.info("Aggregation engine closed")

    @property
    def adapters(self) -> Dict[SourceKind, SourceAdapterPort]:
        return dict(self._adapters)

    @property
    def phase_names(self) -> List[str]:
        return [p.name for p in self._phases]


class AggregationEngineBuilder:
    """
    Builder for aggregation engines.

    Every source kind needs an adapter; tests inject doubles per kind.

    Usage:
        engine = (
            AggregationEngineBuilder()
            .with_adapter(DrugsFDAAdapter(1.0))
            .with_adapter(RxNormAdapter(0.8))
            ...
            .build()
        )
    """

    def __init__(self):
        self._adapters: Dict[SourceKind, SourceAdapterPort] = {}
        self._config: Optional[AggregationConfig] = None
        self._synthesizer: Optional[SearchTermSynthesizer] = None
        self._validator = None

    def with_adapter(self, adapter: SourceAdapterPort) -> "AggregationEngineBuilder":
        """Register an adapter under its own source kind."""
        self._adapters[adapter.source_id] = adapter
        return self

    def with_adapters(
        self,
        adapters: Union[Dict[SourceKind, SourceAdapterPort], Iterable[SourceAdapterPort]]
    ) -> "AggregationEngineBuilder":
        """Register several adapters at once."""
        values = adapters.values() if isinstance(adapters, dict) else adapters
        for adapter in values:
            self.with_adapter(adapter)
        return self

    def with_config(self, config: AggregationConfig) -> "AggregationEngineBuilder":
        self._config = config
        return self

    def with_synthesizer(self, synthesizer: SearchTermSynthesizer) -> "AggregationEngineBuilder":
        self._synthesizer = synthesizer
        return self

    def with_validator(self, validator) -> "AggregationEngineBuilder":
        """Set the cross-reference validator used by the last phase."""
        self._validator = validator
        return self

    def build(self) -> AggregationEngine:
        """
        Build the engine.

        Raises:
            AggregationConfigurationError: If any source kind has no adapter
        """
        missing = [kind.value for kind in SourceKind if kind not in self._adapters]
        if missing:
            raise AggregationConfigurationError(
                message=f"Cannot build aggregation engine, missing adapters: {', '.join(missing)}",
                missing_components=missing
            )

        return AggregationEngine(
            adapters=self._adapters,
            config=self._config,
            synthesizer=self._synthesizer,
            validator=self._validator,
        )
