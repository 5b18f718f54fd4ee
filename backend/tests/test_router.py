"""
Endpoint tests for the medicine router
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from medscan.application.pipeline import AggregationEngineBuilder
from medscan.application.services import MedicineAnalysisService, MedicineLookupService
from medscan.config.settings import AggregationConfig
from medscan.domain.entities.analysis_response import DEFAULT_DISCLAIMER
from medscan.domain.entities.source_result import SourceKind, SourceResult
from medscan.infrastructure.vision.dummy_analyzer import DummyVisionAnalyzer
from medscan.main import app
from medscan import router as router_module
from medscan.router import get_service, get_lookup_service

from conftest import FakeAdapter, png_base64, DRUGSFDA_IBUPROFEN, NDC_ADVIL


@pytest.fixture
def client(fake_adapters):
    engine = (
        AggregationEngineBuilder()
        .with_adapters(fake_adapters)
        .with_config(AggregationConfig(max_workers=2, phase_timeout_seconds=5))
        .build()
    )
    service = MedicineAnalysisService(DummyVisionAnalyzer(), engine=engine)
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def assert_bad_request(response):
    assert response.status_code == 400
    body = response.json()
    assert body["error"]
    assert body["disclaimer"] == DEFAULT_DISCLAIMER
    return body


def test_verify_name(client, image_payload):
    response = client.post("/api/medicine/verify-name", json={"image": image_payload})

    assert response.status_code == 200
    body = response.json()
    assert {"analysis", "medicineInfo", "requestId", "processingTimeMs", "timestamp", "disclaimer"} <= set(body)
    assert body["analysis"]["candidateNames"]["brand"] == "Advil"
    assert body["analysis"]["mode"] == "quick"
    assert body["medicineInfo"]["sources"] == []
    assert body["disclaimer"] == DEFAULT_DISCLAIMER


def test_verify_name_accepts_data_url(client, image_payload):
    response = client.post("/api/medicine/verify-name", json={"image": f"data:image/png;base64,{image_payload}"})

    assert response.status_code == 200


def test_verify_name_rejects_undecodable_image(client):
    assert_bad_request(client.post("/api/medicine/verify-name", json={"image": "not an image"}))


def test_verify_multi_name(client):
    images = [png_base64("white"), png_base64("red"), png_base64("blue")]

    response = client.post("/api/medicine/verify-multi-name", json={"images": images})

    assert response.status_code == 200
    assert response.json()["analysis"]["imageCount"] == 3


def test_verify_multi_name_rejects_more_than_three(client, image_payload):
    body = assert_bad_request(
        client.post("/api/medicine/verify-multi-name", json={"images": [image_payload] * 4})
    )

    assert body["details"]["field"] == "images"


def test_verify_multi_name_rejects_empty_list(client):
    assert_bad_request(client.post("/api/medicine/verify-multi-name", json={"images": []}))


def test_comprehensive_requires_verified_name(client, image_payload):
    body = assert_bad_request(
        client.post("/api/medicine/comprehensive-details", json={"images": [image_payload], "verifiedName": "  "})
    )

    assert body["details"]["field"] == "verifiedName"


def test_comprehensive_details(client, image_payload):
    response = client.post(
        "/api/medicine/comprehensive-details",
        json={"images": [image_payload], "verifiedName": "Advil"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["analysis"]["mode"] == "comprehensive"
    assert body["analysis"]["verifiedName"] == "Advil"
    comprehensive = body["medicineInfo"]["comprehensiveInfo"]
    assert comprehensive["identification"]["primaryBrandName"] == "Advil"
    assert "safetyProfile" in comprehensive
    assert body["medicineInfo"]["dataQuality"]["totalPossibleDataPoints"] == 50
    assert body["medicineInfo"]["warnings"]


def test_analyze_without_name_is_quick(client, image_payload):
    response = client.post("/api/medicine/analyze", json={"images": [image_payload]})

    assert response.status_code == 200
    assert response.json()["analysis"]["mode"] == "quick"


def test_health(client):
    response = client.get("/api/medicine/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["vision_model"] == "dummy"
    assert len(body["sources"]) == 6
    assert body["disclaimer"] == DEFAULT_DISCLAIMER


def test_root(client):
    body = client.get("/").json()

    assert "/api/medicine/comprehensive-details" in body["endpoints"]
    assert "/api/medicine/ndc/{ndc}" in body["endpoints"]
    assert body["disclaimer"] == DEFAULT_DISCLAIMER


# ============ Lookups ============

@pytest.fixture
def lookup_client():
    ndc = MagicMock()
    ndc.display_name = "FDA NDC Directory"
    ndc.query.return_value = SourceResult.found(
        SourceKind.REGULATORY_FILINGS, "FDA NDC Directory", 1.0, "0573-0164", [NDC_ADVIL]
    )
    lookup = MedicineLookupService(
        search_adapters=[
            FakeAdapter(SourceKind.REGULATORY_FILINGS, {"advil": DRUGSFDA_IBUPROFEN, "ibuprofen": DRUGSFDA_IBUPROFEN}),
            FakeAdapter(SourceKind.LOCAL_CATALOG),
        ],
        ndc_adapter=ndc,
    )
    app.dependency_overrides[get_lookup_service] = lambda: lookup
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_search(lookup_client):
    response = lookup_client.get("/api/medicine/search", params={"q": "Advil"})

    assert response.status_code == 200
    body = response.json()
    assert body["query"] == "Advil"
    assert body["results"][0]["brandName"] == "ADVIL"
    assert body["results"][0]["relevance"] == 150
    assert body["disclaimer"] == DEFAULT_DISCLAIMER


@pytest.mark.parametrize("params", [{}, {"q": "a"}, {"q": "  "}])
def test_search_requires_two_characters(lookup_client, params):
    body = assert_bad_request(lookup_client.get("/api/medicine/search", params=params))

    assert body["details"]["field"] == "q"


def test_ndc_lookup(lookup_client):
    response = lookup_client.get("/api/medicine/ndc/0573-0164")

    assert response.status_code == 200
    body = response.json()
    assert body["found"] is True
    assert body["data"]["brandName"] == "Advil"
    assert body["source"] == "FDA NDC Directory"
    assert body["disclaimer"] == DEFAULT_DISCLAIMER


@pytest.mark.parametrize("ndc", ["573", "ABCDE-1234", "0573-0164-123"])
def test_ndc_lookup_rejects_malformed_codes(lookup_client, ndc):
    body = assert_bad_request(lookup_client.get(f"/api/medicine/ndc/{ndc}"))

    assert body["details"]["field"] == "ndc"


def test_lookup_from_scan(lookup_client):
    response = lookup_client.post(
        "/api/medicine/lookup",
        json={"scanData": {"medicine": {"genericName": "ibuprofen"}}},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["query"] == "ibuprofen"
    assert body["totalFound"] == 1


@pytest.mark.parametrize("payload", [{}, {"scanData": {"medicine": {}}}, {"scanData": {"medicine": "Advil"}}])
def test_lookup_requires_a_name(lookup_client, payload):
    body = assert_bad_request(lookup_client.post("/api/medicine/lookup", json=payload))

    assert body["details"]["field"] == "scanData"


def test_shutdown_closes_services(monkeypatch):
    service = MagicMock()
    lookup = MagicMock()
    monkeypatch.setattr(router_module, "_service", service)
    monkeypatch.setattr(router_module, "_lookup_service", lookup)

    with TestClient(app):
        pass

    service.close.assert_called_once_with()
    lookup.close.assert_called_once_with()
    assert router_module._service is None
    assert router_module._lookup_service is None
