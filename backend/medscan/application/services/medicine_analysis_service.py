"""
Medicine Analysis Service

High-level application service: vision analysis, aggregation, profile
compilation and quality scoring behind a single call that always returns
a structurally valid response carrying the disclaimer.
"""

from typing import Optional, Dict, Any, List, Sequence, Union
import logging
import time
import uuid

from ..pipeline.engine import AggregationEngine, AggregationEngineBuilder
from ..pipeline.context import AggregationOutcome
from ..compiler.profile_compiler import ProfileCompiler
from ..scoring.quality_scorer import DataQualityScorer
from ...config.settings import AppConfig
from ...cross_cutting.error_handling import ErrorHandler
from ...cross_cutting.safety.disclaimers import DisclaimerInjector
from ...domain.ports.vision_analyzer import VisionAnalyzerPort
from ...domain.entities.vision_result import VisionAnalysisResult, AnalysisMode
from ...domain.entities.analysis_response import AnalysisResponse, MedicineInfo
from ...domain.entities.medicine_profile import ComprehensiveMedicineProfile
from ...domain.entities.data_quality import CrossReferenceReport
from ...domain.value_objects.image_data import ImageData


logger = logging.getLogger(__name__)


def build_basic_info(result: VisionAnalysisResult) -> Dict[str, Any]:
    """Flat summary of the vision result for quick display."""
    return {
        "identified": result.identified,
        "confidence": result.confidence.value,
        "brandName": result.candidate_names.brand or result.candidate_names.primary,
        "genericName": result.candidate_names.generic,
        "strength": result.strength,
        "dosageForm": result.dosage_form,
        "manufacturer": result.manufacturer,
        "ndc": result.manufacturing_info.ndc,
        "physicalCharacteristics": result.physical_characteristics.to_dict(),
        "extractedText": result.extracted_text.to_dict(),
        "expirationDate": result.manufacturing_info.expiration_date,
        "lotNumber": result.manufacturing_info.lot_number,
    }


def build_data_sources(outcome: Optional[AggregationOutcome]) -> Dict[str, List[Any]]:
    """Payloads of found results grouped by source id."""
    data_sources: Dict[str, List[Any]] = {}
    if outcome is None:
        return data_sources
    for result in outcome.found_results:
        data_sources.setdefault(result.source_id.value, []).append(result.payload)
    return data_sources


class MedicineAnalysisService:
    """
    Application service for medicine photo analysis.

    This is the main entry point for the request-handling layer. Quick mode
    stops after the vision analysis; comprehensive mode also runs the
    aggregation engine. ``analyze`` never raises.

    Usage:
        service = MedicineAnalysisService.from_config(AppConfig.from_env())

        quick = service.analyze(images)
        full = service.analyze(images, AnalysisMode.COMPREHENSIVE, "Advil")
    """

    def __init__(
        self,
        analyzer: VisionAnalyzerPort,
        engine: Optional[AggregationEngine] = None,
        compiler: Optional[ProfileCompiler] = None,
        scorer: Optional[DataQualityScorer] = None,
        disclaimer_injector: Optional[DisclaimerInjector] = None
    ):
        """
        Initialize the service.

        Args:
            analyzer: Vision analyzer implementation
            engine: Aggregation engine (comprehensive mode is vision-only without one)
            compiler: Profile compiler
            scorer: Data quality scorer
            disclaimer_injector: Disclaimer guard
        """
        self.analyzer = analyzer
        self.engine = engine
        self.compiler = compiler or ProfileCompiler()
        self.scorer = scorer or DataQualityScorer()
        self.disclaimer_injector = disclaimer_injector or DisclaimerInjector()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        analyzer: Optional[VisionAnalyzerPort] = None,
        adapters=None
    ) -> "MedicineAnalysisService":
        """
        Wire the service from configuration.

        Args:
            config: Application configuration
            analyzer: Override for the configured vision analyzer
            adapters: Override for the configured source adapters
        """
        from ...infrastructure.vision.factory import VisionAnalyzerFactory
        from ...infrastructure.sources.factory import SourceAdapterFactory
        from ..compiler.cross_reference import CrossReferenceValidator

        if analyzer is None:
            vision = config.vision
            options = {
                "type": vision.type,
                "api_key": vision.api_key,
                "temperature": vision.temperature,
                "max_tokens": vision.max_tokens,
                "timeout": vision.timeout,
            }
            if vision.type == "ollama":
                options.update(base_url=vision.ollama_base_url, model=vision.ollama_model)
            else:
                options["model"] = vision.model
            analyzer = VisionAnalyzerFactory.create_from_config(options)

        vision_weight = config.sources.weight_for("vision_analysis")
        engine = (
            AggregationEngineBuilder()
            .with_adapters(adapters if adapters is not None else SourceAdapterFactory.create_all(config.sources))
            .with_config(config.aggregation)
            .with_validator(CrossReferenceValidator(
                agreement_threshold=config.aggregation.agreement_threshold,
                vision_weight=vision_weight,
            ))
            .build()
        )

        return cls(
            analyzer=analyzer,
            engine=engine,
            compiler=ProfileCompiler(
                common_threshold=config.quality.common_reaction_threshold,
                serious_threshold=config.quality.serious_reaction_threshold,
                vision_weight=vision_weight,
            ),
            scorer=DataQualityScorer(config.quality),
            disclaimer_injector=DisclaimerInjector(config.safety.disclaimer_language),
        )

    def analyze(
        self,
        images: Sequence[ImageData],
        mode: Union[AnalysisMode, str] = AnalysisMode.QUICK,
        verified_name: Optional[str] = None
    ) -> AnalysisResponse:
        """
        Analyze medicine photographs.

        Args:
            images: One or more decoded images
            mode: Quick (name only) or comprehensive (full profile)
            verified_name: User-confirmed name, required for comprehensive mode

        Returns:
            AnalysisResponse; failures degrade to low-confidence content
        """
        if not isinstance(mode, AnalysisMode):
            mode = AnalysisMode.from_string(mode)
        request_id = str(uuid.uuid4())
        start_time = time.time()

        self.logger.info(
            f"Starting {mode.value} analysis (request_id={request_id}, images={len(images or [])})"
        )

        try:
            response = self._analyze(images, mode, verified_name, request_id)
        except Exception as e:
            self.logger.error(f"Analysis failed unexpectedly: {e}", exc_info=True)
            response = self._fallback_response(images, mode, verified_name, request_id, str(e))

        response.processing_time_ms = (time.time() - start_time) * 1000
        response = self.disclaimer_injector.ensure(response)

        self.logger.info(
            f"Analysis finished: identified={response.is_identified}, "
            f"sources={response.medicine_info.sources}, "
            f"completeness={response.medicine_info.data_quality.completeness}, "
            f"time: {response.processing_time_ms:.2f}ms"
        )
        return response

    def _analyze(
        self,
        images: Sequence[ImageData],
        mode: AnalysisMode,
        verified_name: Optional[str],
        request_id: str
    ) -> AnalysisResponse:
        vision = self._run_vision(images, mode, verified_name)

        outcome = None
        warnings: List[str] = []
        if mode == AnalysisMode.COMPREHENSIVE:
            outcome, warnings = self._run_aggregation(vision, request_id)

        results = outcome.results if outcome else ()
        sources = list(outcome.sources) if outcome else []
        cross_reference = outcome.cross_reference if outcome else CrossReferenceReport.empty()

        profile = self.compiler.compile(vision, results)
        quality = self.scorer.score(profile, sources, cross_reference)

        return AnalysisResponse(
            analysis=vision,
            medicine_info=MedicineInfo(
                basic_info=build_basic_info(vision),
                profile=profile,
                data_quality=quality,
                data_sources=build_data_sources(outcome),
                sources=sources,
                cross_reference=cross_reference,
                warnings=warnings,
            ),
            request_id=request_id,
            disclaimer=self.disclaimer_injector.get_disclaimer(),
            localized_disclaimer=self.disclaimer_injector.get_localized(),
            error=vision.error,
        )

    def close(self) -> None:
        """Release the engine's source connections."""
        if self.engine is not None:
            self.engine.close()

    def _run_vision(
        self,
        images: Sequence[ImageData],
        mode: AnalysisMode,
        verified_name: Optional[str]
    ) -> VisionAnalysisResult:
        try:
            return self.analyzer.analyze(images, mode, verified_name)
        except Exception as e:
            self.logger.error(f"Vision analyzer raised: {e}")
            return VisionAnalysisResult.failure(
                str(e), mode=mode, image_count=max(1, len(images or [])), verified_name=verified_name
            )

    def _run_aggregation(self, vision: VisionAnalysisResult, request_id: str):
        if self.engine is None:
            return None, ["No aggregation engine configured; the profile uses the image analysis only"]
        outcome = None
        with ErrorHandler(self.logger, "aggregation", suppress=True) as handler:
            outcome = self.engine.run(vision, request_id=request_id)
        if handler.has_error:
            return None, [f"Source aggregation failed: {handler.error}"]
        return outcome, list(outcome.warnings)

    def _fallback_response(
        self,
        images: Sequence[ImageData],
        mode: AnalysisMode,
        verified_name: Optional[str],
        request_id: str,
        reason: str
    ) -> AnalysisResponse:
        vision = VisionAnalysisResult.failure(
            reason, mode=mode, image_count=max(1, len(images or [])), verified_name=verified_name
        )
        profile = ComprehensiveMedicineProfile()
        return AnalysisResponse(
            analysis=vision,
            medicine_info=MedicineInfo(
                basic_info=build_basic_info(vision),
                profile=profile,
                data_quality=DataQualityScorer(self.scorer.config).score(profile, []),
                warnings=[f"Analysis failed: {reason}"],
            ),
            request_id=request_id,
            disclaimer=self.disclaimer_injector.get_disclaimer(),
            localized_disclaimer=self.disclaimer_injector.get_localized(),
            error=reason,
        )

