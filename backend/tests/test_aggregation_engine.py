"""
Unit tests for the aggregation engine and its phases
"""

import threading

import pytest

from medscan.application.pipeline import (
    AggregationEngine,
    AggregationEngineBuilder,
    AggregationPhase,
    PhaseExecutor,
    CrossReferencePhase,
)
from medscan.config.settings import AggregationConfig
from medscan.domain.entities.source_result import SourceKind, SourceStatus
from medscan.domain.entities.vision_result import VisionAnalysisResult
from medscan.domain.exceptions import AggregationConfigurationError

from conftest import FakeAdapter


def build_engine(adapters, **config):
    return (
        AggregationEngineBuilder()
        .with_adapters(adapters)
        .with_config(AggregationConfig(**config))
        .build()
    )


def test_builder_requires_every_source_kind():
    builder = AggregationEngineBuilder().with_adapter(FakeAdapter(SourceKind.REGULATORY_FILINGS))

    with pytest.raises(AggregationConfigurationError) as exc_info:
        builder.build()

    missing = exc_info.value.details["missing_components"]
    assert SourceKind.REGULATORY_FILINGS.value not in missing
    assert len(missing) == len(SourceKind) - 1


def test_builder_accepts_iterable(fake_adapters):
    engine = AggregationEngineBuilder().with_adapters(list(fake_adapters.values())).build()

    assert set(engine.adapters) == set(SourceKind)
    assert len(engine.phase_names) == 7


def test_phase_queries(ibuprofen_adapters, identified_vision):
    """P1 short-circuits on the regulatory source; P2 and P4 use the top three terms"""
    outcome = build_engine(ibuprofen_adapters).run(identified_vision)

    top_five = ["Advil", "ibuprofen", "Ibuprofen 200 mg", "0573-0164-30", "Pain Reliever"]
    assert ibuprofen_adapters[SourceKind.REGULATORY_FILINGS].calls == ["Advil"]
    assert sorted(ibuprofen_adapters[SourceKind.DRUG_NOMENCLATURE].calls) == sorted(top_five)
    assert sorted(ibuprofen_adapters[SourceKind.LOCAL_CATALOG].calls) == sorted(top_five)
    assert sorted(ibuprofen_adapters[SourceKind.LABEL_REPOSITORY].calls) == sorted(top_five[:3])
    assert sorted(ibuprofen_adapters[SourceKind.ADVERSE_EVENTS].calls) == sorted(top_five[:3])
    assert sorted(ibuprofen_adapters[SourceKind.STRUCTURED_LABEL].calls) == sorted(top_five[:3])
    assert len(outcome.results) == 1 + 5 + 5 + 3 + 3 + 3


def test_sources_ledger_in_first_found_order(ibuprofen_adapters, identified_vision):
    outcome = build_engine(ibuprofen_adapters).run(identified_vision)

    assert outcome.sources == (
        "FDA Drugs@FDA",
        "RxNorm",
        "OpenFDA Adverse Events",
        "OpenFDA Labeling",
    )
    assert all(r.is_found for r in outcome.found_results)
    assert {r.source_id for r in outcome.found_results} == {
        SourceKind.REGULATORY_FILINGS,
        SourceKind.DRUG_NOMENCLATURE,
        SourceKind.ADVERSE_EVENTS,
        SourceKind.STRUCTURED_LABEL,
    }


def test_results_are_reproducible(ibuprofen_adapters, identified_vision):
    engine = build_engine(ibuprofen_adapters)

    first = engine.run(identified_vision)
    second = engine.run(identified_vision)

    assert [(r.source_id, r.term, r.status) for r in first.results] == [
        (r.source_id, r.term, r.status) for r in second.results
    ]
    assert first.sources == second.sources
    assert first.request_id != second.request_id


def test_request_id_is_kept(fake_adapters, identified_vision):
    outcome = build_engine(fake_adapters).run(identified_vision, request_id="req-123")

    assert outcome.request_id == "req-123"
    assert set(outcome.phase_durations) == {phase.value for phase in AggregationPhase}


def test_every_adapter_failing_still_completes(identified_vision):
    adapters = {kind: FakeAdapter(kind, raises=RuntimeError("provider down")) for kind in SourceKind}

    outcome = build_engine(adapters).run(identified_vision)

    assert outcome.results
    assert all(r.status == SourceStatus.ERROR for r in outcome.results)
    assert all(r.error == "provider down" for r in outcome.results)
    assert outcome.sources == ()
    assert outcome.errors == ()
    # without a match the regulatory lookup walks every primary term
    assert len(adapters[SourceKind.REGULATORY_FILINGS].calls) == 5
    assert any("no identification source matched" in w for w in outcome.warnings)


def test_all_not_found(fake_adapters, identified_vision):
    outcome = build_engine(fake_adapters).run(identified_vision)

    assert all(r.status == SourceStatus.NOT_FOUND for r in outcome.results)
    assert outcome.sources == ()
    assert outcome.cross_reference.max_agreement == 1
    assert any("regulatory information is unavailable" in w for w in outcome.warnings)
    assert any("alternatives are unavailable" in w for w in outcome.warnings)


def test_no_search_terms_skips_network(fake_adapters):
    outcome = build_engine(fake_adapters).run(VisionAnalysisResult())

    assert outcome.results == ()
    assert outcome.search_terms == ()
    assert any("No search terms" in w for w in outcome.warnings)
    assert all(not adapter.calls for adapter in fake_adapters.values())


def test_slow_adapter_times_out(fake_adapters, identified_vision):
    release = threading.Event()

    class SlowAdapter(FakeAdapter):
        def query(self, term):
            release.wait(5)
            return super().query(term)

    fake_adapters[SourceKind.LOCAL_CATALOG] = SlowAdapter(SourceKind.LOCAL_CATALOG)
    try:
        outcome = build_engine(fake_adapters, phase_timeout_seconds=0.5, max_workers=16).run(identified_vision)
    finally:
        release.set()

    local = [r for r in outcome.results if r.source_id == SourceKind.LOCAL_CATALOG]
    assert local
    assert all(r.status == SourceStatus.ERROR for r in local)
    assert "phase limit" in local[0].error
    assert [r.status for r in outcome.results if r.source_id == SourceKind.DRUG_NOMENCLATURE] == [
        SourceStatus.NOT_FOUND
    ] * 5


def test_cross_reference_phase_populates_outcome(ibuprofen_adapters, identified_vision):
    outcome = build_engine(ibuprofen_adapters).run(identified_vision)
    report = outcome.cross_reference

    assert report.corroborated is True
    assert report.max_agreement == 4
    assert report.consensus["genericName"] == "ibuprofen"
    assert any(c.field_name == "manufacturer" for c in report.conflicts)
    assert any(w.startswith("manufacturer differs between sources") for w in outcome.warnings)


def test_failing_phase_is_recorded_and_run_continues(fake_adapters, identified_vision):
    class BrokenPhase(PhaseExecutor):
        @property
        def phase(self):
            return AggregationPhase.PHARMACOLOGY

        @property
        def name(self):
            return "Broken"

        def execute(self, context):
            raise KeyError("missing")

    engine = AggregationEngine(
        fake_adapters,
        phases=[BrokenPhase(fake_adapters), CrossReferencePhase(fake_adapters)],
    )

    outcome = engine.run(identified_vision)

    assert len(outcome.errors) == 1
    assert outcome.errors[0].phase == AggregationPhase.PHARMACOLOGY
    assert outcome.errors[0].error_type == "KeyError"
    assert outcome.cross_reference.max_agreement == 1


def test_sequential_execution_without_executor(ibuprofen_adapters, identified_vision):
    """Phases also run without a thread pool, in submission order"""
    from medscan.application.pipeline import AggregationContext, PrimaryIdentificationPhase
    from medscan.application.synthesis.search_terms import SearchTermSynthesizer

    context = AggregationContext(
        vision_result=identified_vision,
        search_terms=SearchTermSynthesizer().synthesize(identified_vision),
    )

    assert PrimaryIdentificationPhase(ibuprofen_adapters).run(context) is True
    nomenclature = ibuprofen_adapters[SourceKind.DRUG_NOMENCLATURE].calls
    assert nomenclature == ["Advil", "ibuprofen", "Ibuprofen 200 mg", "0573-0164-30", "Pain Reliever"]
    assert context.sources_ledger == ["FDA Drugs@FDA", "RxNorm"]


class ClosingAdapter(FakeAdapter):
    def __init__(self, kind, fail_close=False):
        super().__init__(kind)
        self.closed = 0
        self.fail_close = fail_close

    def close(self):
        self.closed += 1
        if self.fail_close:
            raise OSError("socket already closed")


def test_close_closes_every_adapter():
    adapters = {kind: ClosingAdapter(kind) for kind in SourceKind}
    adapters[SourceKind.DRUG_NOMENCLATURE] = ClosingAdapter(SourceKind.DRUG_NOMENCLATURE, fail_close=True)
    engine = build_engine(adapters)

    engine.close()

    assert all(adapter.closed == 1 for adapter in adapters.values())


def test_runs_do_not_close_adapters(identified_vision):
    adapters = {kind: ClosingAdapter(kind) for kind in SourceKind}
    engine = build_engine(adapters, max_workers=2)

    engine.run(identified_vision)
    engine.run(identified_vision)

    assert all(adapter.closed == 0 for adapter in adapters.values())
