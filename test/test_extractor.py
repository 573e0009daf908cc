import json

import pytest

from botanai.models.plant_analysis import HealthStatus, Language
from botanai.services.extractor import ExtractionError, extract_analysis, parse_reply
from botanai.services.fallback import build_mock_analysis

POTHOS_REPLY = (
    '{"scientificName":"Epipremnum aureum","commonName":"Pothos","confidence":0.9,'
    '"healthStatus":"Healthy","diagnosis":"ok","symptoms":[],"treatment":[],'
    '"careInstructions":{"water":"w","light":"l","temperature":"t","humidity":"h"},"funFact":"f"}'
)


def reply_with(**overrides) -> str:
    payload = json.loads(POTHOS_REPLY)
    payload.update(overrides)
    return json.dumps(payload)


def test_plain_json_reply_is_parsed():
    analysis = extract_analysis(POTHOS_REPLY, now=lambda: 1700000000.5, id_factory=lambda: "abc")

    assert analysis.id == "abc"
    assert analysis.timestamp == 1700000000500
    assert analysis.scientific_name == "Epipremnum aureum"
    assert analysis.common_name == "Pothos"
    assert analysis.health_status is HealthStatus.HEALTHY
    assert analysis.health_status.value == "Healthy"
    assert analysis.care_instructions.humidity == "h"
    assert analysis.is_mock is False
    assert analysis.image is None


@pytest.mark.parametrize("prefix, suffix", [
    ("Here is the analysis: ", ""),
    ("", "\nHope this helps!"),
    ("Sure.\n\n", "\n\nLet me know if you need more."),
])
def test_json_surrounded_by_prose_is_recovered(prefix, suffix):
    text = prefix + POTHOS_REPLY + suffix
    assert parse_reply(text) == json.loads(POTHOS_REPLY)


def test_markdown_fence_is_ignored():
    text = "```json\n" + reply_with(healthStatus="Unknown") + "\n```"
    analysis = extract_analysis(text)
    assert analysis.health_status is HealthStatus.UNKNOWN


@pytest.mark.parametrize("text", [
    "Sorry, I cannot identify this.",
    "",
    "} backwards {",
    "{ not json at all }",
])
def test_reply_without_json_surfaces_text_as_error(text):
    with pytest.raises(ExtractionError) as exc_info:
        extract_analysis(text)
    if text.strip():
        assert exc_info.value.detail == text.strip()
    assert exc_info.value.raw_text == text


def test_refusal_is_surfaced_verbatim():
    with pytest.raises(ExtractionError) as exc_info:
        extract_analysis("Sorry, I cannot identify this.")
    assert str(exc_info.value) == "Sorry, I cannot identify this."


def test_deeply_nested_reply_is_an_extraction_error():
    text = "[" * 100000 + "]" * 100000
    with pytest.raises(ExtractionError) as exc_info:
        extract_analysis(text)
    assert exc_info.value.raw_text == text


def test_translated_health_status_is_rejected():
    with pytest.raises(ExtractionError) as exc_info:
        extract_analysis(reply_with(healthStatus="En bonne santé"))
    assert "healthStatus" in exc_info.value.detail


def test_confidence_out_of_range_is_rejected():
    with pytest.raises(ExtractionError):
        extract_analysis(reply_with(confidence=1.5))


def test_missing_care_instructions_is_rejected():
    payload = json.loads(POTHOS_REPLY)
    del payload["careInstructions"]
    with pytest.raises(ExtractionError):
        extract_analysis(json.dumps(payload))


def test_model_cannot_set_reserved_fields():
    text = reply_with(id="from-model", timestamp=1, isMock=True, image="data:image/png;base64,AA")
    analysis = extract_analysis(text, id_factory=lambda: "ours")

    assert analysis.id == "ours"
    assert analysis.timestamp > 1
    assert analysis.is_mock is False
    assert analysis.image is None


def test_serialized_record_uses_camel_case():
    dumped = extract_analysis(POTHOS_REPLY).model_dump(by_alias=True, mode="json")
    assert dumped["healthStatus"] == "Healthy"
    assert dumped["careInstructions"]["water"] == "w"
    assert dumped["isMock"] is False


@pytest.mark.parametrize("language, common_name", [
    (Language.EN, "Golden pothos"),
    (Language.FR, "Pothos doré"),
])
def test_mock_analysis_is_fixed_and_flagged(language, common_name):
    first = build_mock_analysis(language)
    second = build_mock_analysis(language)

    assert first.common_name == common_name
    assert first.scientific_name == "Epipremnum aureum"
    assert first.health_status is HealthStatus.HEALTHY
    assert first.is_mock is True
    assert first.model_dump(exclude={"id", "timestamp"}) == second.model_dump(exclude={"id", "timestamp"})
