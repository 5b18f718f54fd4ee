"""
Unit tests for the medicine analysis service
"""

from unittest.mock import MagicMock

from medscan.application.pipeline import AggregationEngineBuilder
from medscan.application.services import MedicineAnalysisService
from medscan.config.settings import AppConfig, AggregationConfig
from medscan.cross_cutting.safety.disclaimers import DisclaimerInjector, MEDICAL_DISCLAIMER
from medscan.domain.entities.analysis_response import DEFAULT_DISCLAIMER
from medscan.domain.entities.source_result import SourceKind
from medscan.domain.entities.vision_result import AnalysisMode
from medscan.domain.ports.vision_analyzer import VisionAnalyzerPort
from medscan.infrastructure.vision.dummy_analyzer import DummyVisionAnalyzer
from medscan.infrastructure.vision.groq_analyzer import GroqVisionAnalyzer


class StaticAnalyzer(VisionAnalyzerPort):
    """Returns a prepared result, or raises when given an exception."""

    def __init__(self, result=None, raises=None):
        self.result = result
        self.raises = raises
        self.calls = []

    def analyze(self, images, mode=AnalysisMode.QUICK, verified_name=None):
        self.calls.append((mode, verified_name))
        if self.raises is not None:
            raise self.raises
        return self.result

    @property
    def model_name(self) -> str:
        return "static"


def build_service(analyzer, adapters, **kwargs):
    engine = (
        AggregationEngineBuilder()
        .with_adapters(adapters)
        .with_config(AggregationConfig(max_workers=4, phase_timeout_seconds=5))
        .build()
    )
    return MedicineAnalysisService(analyzer, engine=engine, **kwargs)


def test_quick_mode_skips_aggregation(image, ibuprofen_adapters):
    service = build_service(DummyVisionAnalyzer(), ibuprofen_adapters)

    response = service.analyze([image])

    assert response.is_identified
    assert response.medicine_info.basic_info["brandName"] == "Advil"
    assert response.medicine_info.sources == []
    assert response.medicine_info.warnings == []
    assert all(adapter.calls == [] for adapter in ibuprofen_adapters.values())
    assert response.disclaimer == DEFAULT_DISCLAIMER


def test_comprehensive_mode_aggregates(image, ibuprofen_adapters):
    service = build_service(DummyVisionAnalyzer(), ibuprofen_adapters)

    response = service.analyze([image], AnalysisMode.COMPREHENSIVE, "Advil")
    info = response.medicine_info

    assert info.sources[:2] == ["FDA Drugs@FDA", "RxNorm"]
    assert "OpenFDA Labeling" in info.sources
    assert info.data_quality.cross_referenced_sources == len(info.sources)
    assert info.data_quality.accuracy >= 95
    assert SourceKind.REGULATORY_FILINGS.value in info.data_sources
    assert info.profile.regulatory_info.application_number == "NDA018989"
    assert response.request_id
    assert response.processing_time_ms >= 0
    assert response.disclaimer == DEFAULT_DISCLAIMER


def test_mode_accepts_string(image, fake_adapters):
    analyzer = StaticAnalyzer(raises=RuntimeError("unused"))
    service = build_service(analyzer, fake_adapters)

    service.analyze([image], "comprehensive", "Advil")

    assert analyzer.calls == [(AnalysisMode.COMPREHENSIVE, "Advil")]


def test_comprehensive_runs_even_when_unidentified(image, fake_adapters, unidentified_vision):
    """The verified name is still searched when the image analysis failed"""
    service = build_service(StaticAnalyzer(unidentified_vision), fake_adapters)

    response = service.analyze([image], AnalysisMode.COMPREHENSIVE, "Advil")

    assert fake_adapters[SourceKind.REGULATORY_FILINGS].calls == ["Advil"]
    assert response.medicine_info.sources == []
    assert response.medicine_info.profile.identification.primary_brand_name is None


def test_failing_analyzer_degrades(image, fake_adapters):
    service = build_service(StaticAnalyzer(raises=RuntimeError("model crashed")), fake_adapters)

    response = service.analyze([image])

    assert response.is_identified is False
    assert response.analysis.confidence.value == 1
    assert response.error == "model crashed"
    assert response.disclaimer == DEFAULT_DISCLAIMER
    assert response.to_dict()["error"] == "model crashed"


def test_unreachable_groq_model_degrades(image, fake_adapters):
    client = MagicMock()
    client.chat.completions.create.side_effect = ConnectionError("connection refused")
    analyzer = GroqVisionAnalyzer(api_key="test-key", client=client)

    response = build_service(analyzer, fake_adapters).analyze([image])

    assert response.is_identified is False
    assert "Groq request failed" in response.error
    assert response.disclaimer == DEFAULT_DISCLAIMER


def test_unexpected_error_returns_fallback(image, fake_adapters):
    compiler = MagicMock()
    compiler.compile.side_effect = RuntimeError("boom")
    service = build_service(DummyVisionAnalyzer(), fake_adapters, compiler=compiler)

    response = service.analyze([image])

    assert response.error == "boom"
    assert response.is_identified is False
    assert response.medicine_info.warnings == ["Analysis failed: boom"]
    assert response.medicine_info.data_quality.completeness == 0
    assert response.disclaimer == DEFAULT_DISCLAIMER


def test_aggregation_failure_is_a_warning(image, fake_adapters):
    engine = MagicMock()
    engine.run.side_effect = RuntimeError("pool exhausted")
    service = MedicineAnalysisService(DummyVisionAnalyzer(), engine=engine)

    response = service.analyze([image], AnalysisMode.COMPREHENSIVE, "Advil")

    assert response.is_identified
    assert response.medicine_info.warnings == ["Source aggregation failed: pool exhausted"]
    assert response.medicine_info.sources == []


def test_comprehensive_without_engine(image):
    response = MedicineAnalysisService(DummyVisionAnalyzer()).analyze(
        [image], AnalysisMode.COMPREHENSIVE, "Advil"
    )

    assert response.medicine_info.warnings == [
        "No aggregation engine configured; the profile uses the image analysis only"
    ]
    assert response.medicine_info.profile.identification.primary_brand_name == "Advil"


def test_disclaimer_language(image):
    service = MedicineAnalysisService(DummyVisionAnalyzer(), disclaimer_injector=DisclaimerInjector("tr"))

    response = service.analyze([image])

    assert response.disclaimer == DEFAULT_DISCLAIMER
    assert response.localized_disclaimer == MEDICAL_DISCLAIMER["tr"]
    assert response.to_dict()["localizedDisclaimer"] == MEDICAL_DISCLAIMER["tr"]


def test_english_has_no_translation(image):
    response = MedicineAnalysisService(DummyVisionAnalyzer()).analyze([image])

    assert response.localized_disclaimer is None
    assert "localizedDisclaimer" not in response.to_dict()


def test_unknown_language_keeps_verbatim_disclaimer():
    injector = DisclaimerInjector("xx")

    assert injector.get_disclaimer() == DEFAULT_DISCLAIMER
    assert injector.get_localized() is None
    assert injector.ensure_payload({"error": "bad"}) == {"error": "bad", "disclaimer": DEFAULT_DISCLAIMER}


def test_translated_disclaimer_does_not_replace_english():
    injector = DisclaimerInjector("tr")

    payload = injector.ensure_payload({"disclaimer": MEDICAL_DISCLAIMER["tr"]})

    assert payload["disclaimer"] == DEFAULT_DISCLAIMER
    assert payload["localizedDisclaimer"] == MEDICAL_DISCLAIMER["tr"]


def test_from_config_wires_components(image, fake_adapters):
    config = AppConfig.from_dict({
        "vision": {"type": "dummy"},
        "aggregation": {"max_workers": 2},
        "quality": {"total_possible_fields": 40},
    })

    service = MedicineAnalysisService.from_config(config, adapters=fake_adapters)
    response = service.analyze([image])

    assert service.analyzer.model_name == "dummy"
    assert service.engine.adapters[SourceKind.LOCAL_CATALOG] is fake_adapters[SourceKind.LOCAL_CATALOG]
    assert response.medicine_info.data_quality.total_possible_data_points == 40


def test_close_releases_engine():
    engine = MagicMock()
    service = MedicineAnalysisService(DummyVisionAnalyzer(), engine=engine)

    service.close()
    MedicineAnalysisService(DummyVisionAnalyzer()).close()

    engine.close.assert_called_once_with()
