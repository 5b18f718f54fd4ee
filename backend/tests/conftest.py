"""
Pytest configuration and shared fixtures.

Source adapters are replaced by in-memory doubles so no test touches the
network; the vision model is replaced by the canned-answer analyzer.
"""

import base64
from io import BytesIO
from typing import Any, Dict, Optional

import pytest
from PIL import Image

from medscan.domain.entities.source_result import SourceResult, SourceKind
from medscan.domain.entities.vision_result import (
    VisionAnalysisResult,
    AnalysisMode,
    CandidateNames,
    ManufacturingDetails,
    ExtractedText,
)
from medscan.domain.ports.source_adapter import SourceAdapterPort
from medscan.domain.value_objects.confidence_score import ConfidenceScore
from medscan.domain.value_objects.image_data import ImageData


DISPLAY_NAMES = {
    SourceKind.REGULATORY_FILINGS: "FDA Drugs@FDA",
    SourceKind.DRUG_NOMENCLATURE: "RxNorm",
    SourceKind.LABEL_REPOSITORY: "DailyMed",
    SourceKind.ADVERSE_EVENTS: "OpenFDA Adverse Events",
    SourceKind.STRUCTURED_LABEL: "OpenFDA Labeling",
    SourceKind.LOCAL_CATALOG: "Local Database",
}

WEIGHTS = {
    SourceKind.REGULATORY_FILINGS: 1.0,
    SourceKind.DRUG_NOMENCLATURE: 0.8,
    SourceKind.LABEL_REPOSITORY: 0.9,
    SourceKind.ADVERSE_EVENTS: 0.8,
    SourceKind.STRUCTURED_LABEL: 1.0,
    SourceKind.LOCAL_CATALOG: 0.5,
}


class FakeAdapter(SourceAdapterPort):
    """
    Adapter double answering from a term -> payload map.

    Terms are matched case-insensitively; unknown terms are not found.
    With ``raises`` set, every query raises that exception instead.
    """

    def __init__(
        self,
        kind: SourceKind,
        responses: Optional[Dict[str, Any]] = None,
        raises: Optional[Exception] = None
    ):
        self.kind = kind
        self.responses = {k.lower(): v for k, v in (responses or {}).items()}
        self.raises = raises
        self.calls = []

    @property
    def source_id(self) -> SourceKind:
        return self.kind

    @property
    def display_name(self) -> str:
        return DISPLAY_NAMES[self.kind]

    @property
    def reliability_weight(self) -> float:
        return WEIGHTS[self.kind]

    def query(self, term: str) -> SourceResult:
        self.calls.append(term)
        if self.raises is not None:
            raise self.raises
        payload = self.responses.get(term.lower())
        if payload is None:
            return SourceResult.not_found(self.kind, self.display_name, self.reliability_weight, term)
        return SourceResult.found(self.kind, self.display_name, self.reliability_weight, term, payload)


def make_result(kind: SourceKind, payload: Any, term: str = "ibuprofen") -> SourceResult:
    return SourceResult.found(kind, DISPLAY_NAMES[kind], WEIGHTS[kind], term, payload)


def png_base64(color: str = "white", size=(16, 16)) -> str:
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode("ascii")


# ============ Canned provider payloads ============

DRUGSFDA_IBUPROFEN = [
    {
        "application_number": "NDA018989",
        "sponsor_name": "PFIZER",
        "openfda": {
            "brand_name": ["ADVIL"],
            "generic_name": ["ibuprofen"],
            "manufacturer_name": ["Pfizer Laboratories Div Pfizer Inc"],
            "product_ndc": ["0573-0164"],
            "substance_name": ["IBUPROFEN"],
            "route": ["ORAL"],
            "pharm_class_epc": ["Nonsteroidal Anti-inflammatory Drug [EPC]"],
            "pharm_class_moa": ["Cyclooxygenase Inhibitors [MoA]"],
        },
        "products": [
            {
                "dosage_form": "TABLET, COATED",
                "route": "ORAL",
                "marketing_status": "Over-the-counter",
                "active_ingredients": [{"name": "IBUPROFEN", "strength": "200MG"}],
            }
        ],
        "submissions": [
            {"submission_type": "SUPPL", "submission_status": "AP", "submission_status_date": "20200101"},
            {"submission_type": "ORIG", "submission_status": "AP", "submission_status_date": "19840518"},
        ],
    }
]

RXNORM_IBUPROFEN = {
    "rxcui": "5640",
    "conceptGroup": [
        {"tty": "BN", "conceptProperties": [{"rxcui": "153010", "name": "Advil", "tty": "BN"}]},
        {"tty": "IN", "conceptProperties": [{"rxcui": "5640", "name": "ibuprofen", "tty": "IN"}]},
    ],
    "properties": {"rxcui": "5640", "name": "ibuprofen", "tty": "IN"},
    "relatedGroup": {
        "conceptGroup": [
            {
                "tty": "SCD",
                "conceptProperties": [
                    {"rxcui": "310965", "name": "ibuprofen 200 MG Oral Tablet", "tty": "SCD"},
                ],
            },
            {
                "tty": "SBD",
                "conceptProperties": [
                    {"rxcui": "731531", "name": "ibuprofen 200 MG Oral Tablet [Advil]", "tty": "SBD"},
                ],
            },
        ]
    },
    "ndcs": ["00573016440"],
}

LABEL_IBUPROFEN = [
    {
        "openfda": {
            "brand_name": ["Advil"],
            "generic_name": ["IBUPROFEN"],
            "manufacturer_name": ["Haleon US Holdings LLC"],
            "product_ndc": ["0573-0164"],
            "route": ["ORAL"],
        },
        "indications_and_usage": ["temporarily relieves minor aches and pains"],
        "dosage_and_administration": ["do not take more than directed"],
        "warnings": ["Allergy alert: ibuprofen may cause a severe allergic reaction"],
        "do_not_use": ["right before or after heart surgery"],
        "adverse_reactions": ["nausea", "heartburn"],
        "storage_and_handling": ["store at 20-25°C"],
    }
]

EVENTS_IBUPROFEN = [
    {"term": "NAUSEA", "count": 2500},
    {"term": "DIZZINESS", "count": 450},
    {"term": "RASH", "count": 40},
]

NDC_ADVIL = {
    "product_ndc": "0573-0164",
    "brand_name": "Advil",
    "generic_name": "Ibuprofen",
    "labeler_name": "Haleon US Holdings LLC",
    "dosage_form": "TABLET, COATED",
    "route": ["ORAL"],
    "active_ingredients": [{"name": "IBUPROFEN", "strength": "200 mg/1"}],
    "application_number": "NDA018989",
    "packaging": [{"package_ndc": "0573-0164-40", "description": "1 BOTTLE in 1 CARTON"}],
}


@pytest.fixture
def image():
    return ImageData.from_base64(png_base64(), format="png", source="test")


@pytest.fixture
def image_payload():
    """A small valid PNG as a base64 string."""
    return png_base64()


@pytest.fixture
def identified_vision():
    """Comprehensive vision result naming Advil / ibuprofen."""
    return VisionAnalysisResult(
        identified=True,
        confidence=ConfidenceScore(8),
        mode=AnalysisMode.COMPREHENSIVE,
        candidate_names=CandidateNames(brand="Advil", generic="ibuprofen", primary="Advil"),
        active_ingredients=("Ibuprofen 200 mg",),
        strength="200 mg",
        manufacturer="Pfizer",
        manufacturing_info=ManufacturingDetails(ndc="0573-0164-30"),
        extracted_text=ExtractedText(all_text=("Advil", "Pain Reliever")),
        verified_name="Advil",
        reasoning="Brand name printed on the box",
        verification_needed=False,
    )


@pytest.fixture
def unidentified_vision():
    return VisionAnalysisResult.failure(
        "model unavailable", mode=AnalysisMode.COMPREHENSIVE, verified_name="Advil"
    )


@pytest.fixture
def fake_adapters():
    """One adapter per kind, every one answering not found."""
    return {kind: FakeAdapter(kind) for kind in SourceKind}


@pytest.fixture
def ibuprofen_adapters():
    """Adapters that know ibuprofen under its brand and generic names."""
    regulatory = {"Advil": DRUGSFDA_IBUPROFEN, "ibuprofen": DRUGSFDA_IBUPROFEN}
    nomenclature = {"Advil": RXNORM_IBUPROFEN, "ibuprofen": RXNORM_IBUPROFEN}
    label = {"Advil": LABEL_IBUPROFEN}
    events = {"Advil": EVENTS_IBUPROFEN}
    return {
        SourceKind.REGULATORY_FILINGS: FakeAdapter(SourceKind.REGULATORY_FILINGS, regulatory),
        SourceKind.DRUG_NOMENCLATURE: FakeAdapter(SourceKind.DRUG_NOMENCLATURE, nomenclature),
        SourceKind.LABEL_REPOSITORY: FakeAdapter(SourceKind.LABEL_REPOSITORY),
        SourceKind.ADVERSE_EVENTS: FakeAdapter(SourceKind.ADVERSE_EVENTS, events),
        SourceKind.STRUCTURED_LABEL: FakeAdapter(SourceKind.STRUCTURED_LABEL, label),
        SourceKind.LOCAL_CATALOG: FakeAdapter(SourceKind.LOCAL_CATALOG),
    }
