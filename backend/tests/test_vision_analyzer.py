"""
Unit tests for the vision analyzers and the model response parser
"""

import json
from unittest.mock import MagicMock

import pytest
import requests

from medscan.domain.entities.vision_result import AnalysisMode
from medscan.domain.exceptions import ModelResponseMalformedError
from medscan.domain.value_objects.confidence_score import ConfidenceScore, ConfidenceLevel
from medscan.infrastructure.vision.dummy_analyzer import DummyVisionAnalyzer
from medscan.infrastructure.vision.factory import VisionAnalyzerFactory
from medscan.infrastructure.vision.groq_analyzer import GroqVisionAnalyzer
from medscan.infrastructure.vision.ollama_analyzer import OllamaVisionAnalyzer
from medscan.infrastructure.vision.prompts import build_quick_prompt, build_comprehensive_prompt
from medscan.infrastructure.vision.response_parser import (
    extract_json_region,
    parse_json_object,
    deep_merge,
    clean_text,
    clean_list,
    detect_image_conflicts,
    DEFAULT_SHAPE,
)


# ============ Response parsing ============

def test_extract_json_region_ignores_surrounding_prose():
    text = 'Here is the result:\n```json\n{"identified": true, "reasoning": "label says {Advil}"}\n```\nDone.'

    region = extract_json_region(text)

    assert region == '{"identified": true, "reasoning": "label says {Advil}"}'


def test_extract_json_region_returns_tail_of_truncated_object():
    assert extract_json_region('prefix {"a": {"b": 1}') == '{"a": {"b": 1}'
    assert extract_json_region("no json here") is None


def test_parse_json_object_repairs_invalid_json():
    parsed = parse_json_object('{"identified": true, "confidence": 9,}')

    assert parsed["identified"] is True
    assert parsed["confidence"] == 9


@pytest.mark.parametrize("text", ["", "   ", "I cannot identify this medicine."])
def test_parse_json_object_rejects_text_without_object(text):
    with pytest.raises(ModelResponseMalformedError):
        parse_json_object(text)


def test_deep_merge_fills_default_shape():
    merged = deep_merge(DEFAULT_SHAPE, {
        "medicineName": "Advil",
        "medicine": {"activeIngredients": "Ibuprofen 200 mg", "extraField": 1},
        "customKey": "kept",
    })

    assert merged["medicineName"] == DEFAULT_SHAPE["medicineName"]
    assert merged["medicine"]["activeIngredients"] == ["Ibuprofen 200 mg"]
    assert merged["medicine"]["extraField"] == 1
    assert merged["customKey"] == "kept"
    assert merged["extractedText"]["codes"] == []


def test_clean_helpers():
    assert clean_text("  N/A ") is None
    assert clean_text("Not Visible") is None
    assert clean_text("  Advil   200 ") == "Advil 200"
    assert clean_text(["200 mg", None, "oral"]) == "200 mg, oral"
    assert clean_list(["a", "a", None, "unknown", "b"]) == ("a", "b")


def test_detect_image_conflicts_reports_differing_lots():
    conflicts = detect_image_conflicts(
        {
            "image1": {"lotNumber": "A123", "expirationDate": "2026-01"},
            "image2": {"lotNumber": "B456", "expirationDate": "2026-01"},
        },
        labels=["Front", "Back"],
    )

    assert conflicts == ["Lot number differs between images: image1 (Front)=A123, image2 (Back)=B456"]


# ============ Analyzer behaviour ============

def test_dummy_analyzer_default_answer(image):
    result = DummyVisionAnalyzer().analyze([image])

    assert result.identified is True
    assert result.candidate_names.brand == "Advil"
    assert result.candidate_names.generic == "ibuprofen"
    assert result.mode == AnalysisMode.QUICK
    assert result.image_count == 1
    assert "imageContributions" not in result.to_dict()


@pytest.mark.parametrize("raw, expected", [(15, 10), (0, 1), ("7", 7), ("high", 1), (None, 1), (6.6, 7)])
def test_confidence_is_clamped(image, raw, expected):
    analyzer = DummyVisionAnalyzer({"identified": True, "confidence": raw})

    assert analyzer.analyze([image]).confidence.value == expected


def test_unparseable_answer_becomes_failure(image):
    result = DummyVisionAnalyzer("Sorry, I can't help with that.").analyze([image])

    assert result.identified is False
    assert result.confidence.value == 1
    assert result.verification_needed is True
    assert result.error
    assert result.raw_response == "Sorry, I can't help with that."


@pytest.mark.parametrize("raw", ["1e999", "Infinity"])
def test_infinite_confidence_is_clamped_to_maximum(image, raw):
    answer = '{"identified": true, "confidence": ' + raw + ', "medicineName": {"brandName": "Advil"}}'

    result = DummyVisionAnalyzer(answer).analyze([image])

    assert result.error is None
    assert result.identified is True
    assert result.confidence.value == 10
    assert result.candidate_names.brand == "Advil"


def test_negative_infinite_confidence_is_clamped_to_minimum(image):
    result = DummyVisionAnalyzer('{"identified": true, "confidence": -1e999}').analyze([image])

    assert result.error is None
    assert result.confidence.value == 1


def test_low_confidence_always_needs_verification(image):
    result = DummyVisionAnalyzer({"identified": True, "confidence": 3, "verificationNeeded": False}).analyze([image])

    assert result.identified is True
    assert result.verification_needed is True


def test_confident_answer_may_skip_verification(image):
    result = DummyVisionAnalyzer({"identified": True, "confidence": 8, "verificationNeeded": False}).analyze([image])

    assert result.verification_needed is False


def test_unidentified_answer_always_needs_verification(image):
    result = DummyVisionAnalyzer({"identified": False, "verificationNeeded": False}).analyze([image])

    assert result.verification_needed is True


def test_comprehensive_mode_requires_verified_name(image):
    result = DummyVisionAnalyzer().analyze([image], AnalysisMode.COMPREHENSIVE, "  ")

    assert result.identified is False
    assert result.mode == AnalysisMode.COMPREHENSIVE
    assert "verified medicine name" in result.error


def test_no_images_becomes_failure():
    result = DummyVisionAnalyzer().analyze([])

    assert result.identified is False
    assert result.error == "no images were provided"


def test_multi_image_lot_conflict_forces_verification(image):
    """Three photos where the back shows a different lot number"""
    answer = {
        "identified": True,
        "confidence": 9,
        "medicineName": {"brandName": "Advil", "primaryName": "Advil"},
        "imageContributions": {
            "image1": {"lotNumber": "L12345"},
            "image2": {"lotNumber": "L99999"},
            "image3": {"lotNumber": "L12345"},
        },
        "dataQuality": {"completeness": 8, "consistency": 6, "conflictingInfo": []},
        "verificationNeeded": False,
        "reasoning": "Name is clear on the front.",
    }

    result = DummyVisionAnalyzer(answer).analyze([image, image, image])
    data = result.to_dict()

    assert result.verification_needed is True
    assert result.image_count == 3
    assert any("Lot number differs" in c for c in result.image_quality.conflicting_info)
    assert "Lot number differs" in result.reasoning
    assert "image2 (Back)=L99999" in data["dataQuality"]["conflictingInfo"][0]
    assert data["imageContributions"]["image2"]["lotNumber"] == "L99999"


def test_groq_transport_error_becomes_failure(image):
    client = MagicMock()
    client.chat.completions.create.side_effect = ConnectionError("connection reset")
    analyzer = GroqVisionAnalyzer(api_key="test-key", client=client)

    result = analyzer.analyze([image], AnalysisMode.COMPREHENSIVE, "Advil")

    assert result.identified is False
    assert result.confidence.value == 1
    assert result.verification_needed is True
    assert "Groq request failed" in result.error
    assert result.verified_name == "Advil"


def test_groq_without_api_key_becomes_failure(image, monkeypatch):
    monkeypatch.delenv("GROQ_API_KEY", raising=False)

    result = GroqVisionAnalyzer(api_key=None).analyze([image])

    assert result.identified is False
    assert "GROQ_API_KEY" in result.error


def test_groq_sends_images_as_data_urls(image):
    message = MagicMock()
    message.content = json.dumps({"identified": True, "confidence": 8, "medicineName": {"brandName": "Tylenol"}})
    response = MagicMock()
    response.choices = [MagicMock(message=message)]
    client = MagicMock()
    client.chat.completions.create.return_value = response

    result = GroqVisionAnalyzer(api_key="test-key", model="test-model", client=client).analyze([image, image])

    kwargs = client.chat.completions.create.call_args.kwargs
    content = kwargs["messages"][0]["content"]
    assert kwargs["model"] == "test-model"
    assert content[0]["type"] == "text"
    assert [c["image_url"]["url"][:22] for c in content[1:]] == ["data:image/png;base64,"] * 2
    assert result.candidate_names.brand == "Tylenol"
    assert result.image_count == 2


# ============ Prompts and factory ============

def test_prompts_mention_labels_and_verified_name():
    quick = build_quick_prompt(["Front", "Back"])
    comprehensive = build_comprehensive_prompt(["Front"], 'Advil "Liqui-Gels"')

    assert "Image 2 (Back)" in quick
    assert '"image2"' in quick
    assert "Advil 'Liqui-Gels'" in comprehensive


def test_factory_falls_back_to_dummy_for_unknown_type():
    analyzer = VisionAnalyzerFactory.create_from_config({"type": "mystery"})

    assert isinstance(analyzer, DummyVisionAnalyzer)
    assert analyzer.model_name == "dummy"


def test_factory_builds_groq_analyzer():
    analyzer = VisionAnalyzerFactory.create_from_config({"type": "groq", "api_key": "k", "model": "m"})

    assert isinstance(analyzer, GroqVisionAnalyzer)
    assert analyzer.model_name == "groq/m"


def test_factory_builds_ollama_analyzer():
    analyzer = VisionAnalyzerFactory.create_from_config(
        {"type": "ollama", "base_url": "http://ollama:11434/", "model": "llava:13b"}
    )

    assert isinstance(analyzer, OllamaVisionAnalyzer)
    assert analyzer.model_name == "ollama/llava:13b"


def test_ollama_posts_base64_images(image):
    session = MagicMock()
    session.post.return_value.json.return_value = {"response": json.dumps({"identified": True, "confidence": 6})}
    analyzer = OllamaVisionAnalyzer(base_url="http://ollama:11434/")
    analyzer._session = session

    result = analyzer.analyze([image])

    url = session.post.call_args.args[0]
    payload = session.post.call_args.kwargs["json"]
    assert url == "http://ollama:11434/api/generate"
    assert payload["images"] == [image.base64_string]
    assert payload["stream"] is False
    assert result.identified is True
    assert result.confidence.value == 6


def test_ollama_connection_error_becomes_failure(image):
    session = MagicMock()
    session.post.side_effect = requests.ConnectionError("refused")
    analyzer = OllamaVisionAnalyzer()
    analyzer._session = session

    result = analyzer.analyze([image])

    assert result.identified is False
    assert "Ollama API error" in result.error


@pytest.mark.parametrize("raw, expected", [
    (float("inf"), 10),
    (float("-inf"), 1),
    ("Infinity", 10),
    (float("nan"), 1),
    (True, 1),
])
def test_confidence_score_clamps_non_finite_values(raw, expected):
    assert ConfidenceScore.clamped(raw).value == expected


@pytest.mark.parametrize("value, level", [(1, ConfidenceLevel.LOW), (5, ConfidenceLevel.MEDIUM), (7, ConfidenceLevel.HIGH)])
def test_confidence_levels(value, level):
    assert ConfidenceScore(value).level == level
    assert ConfidenceScore(value).requires_verification is (level == ConfidenceLevel.LOW)
