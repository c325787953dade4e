import asyncio
import json

import httpx
import openai
import pytest

from acne_backend.adapters import (
    DetectorAdapter,
    DirectClassifierAdapter,
    GenerativeAdapter,
    SeverityGraderAdapter,
    parse_classifier_label,
    parse_detector_label,
)
from acne_backend.imaging import normalize_image
from acne_backend.outcomes import AdapterError, Failure, FailureKind, Success
from helpers import FakeFiles, FakeOpenAI, FakeResponses, make_data_uri

IMAGE = normalize_image(make_data_uri())


def run_adapter(adapter):
    return asyncio.run(adapter.invoke(IMAGE))


def client_for(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def json_handler(payload, status=200, seen=None):
    def handler(request):
        if seen is not None:
            seen.append(request)
        return httpx.Response(status, json=payload)
    return handler


# ==================== DETECTOR ====================

def test_detector_takes_first_predicted_class():
    seen = []
    adapter = DetectorAdapter(
        client_for(json_handler({"predicted_classes": ["whitehead", "papular"]}, seen=seen)),
        "https://detect.test/model/1",
        api_key="secret",
    )
    outcome = run_adapter(adapter)

    assert outcome == Success(value="whitehead", raw_label="whitehead")
    request = seen[0]
    assert request.url.params["api_key"] == "secret"
    assert request.headers["content-type"] == "application/x-www-form-urlencoded"
    assert request.content.decode() == IMAGE.base64


def test_detector_picks_highest_confidence_prediction():
    payload = {"predictions": [
        {"class": "Blackhead", "confidence": 0.41},
        {"class": "Cystic", "confidence": 0.93},
        {"class": "Papular", "confidence": 0.77},
    ]}
    assert parse_detector_label(payload) == "Cystic"


def test_detector_without_predictions_is_unknown():
    assert parse_detector_label({"predictions": []}) == "Unknown"
    assert parse_detector_label({}) == "Unknown"


def test_detector_http_error_degrades_to_generic_label():
    def handler(request):
        return httpx.Response(500, text="upstream down")

    outcome = run_adapter(DetectorAdapter(client_for(handler), "https://detect.test"))
    assert outcome == Success(value="Acne", raw_label=None)


def test_detector_non_json_is_malformed():
    def handler(request):
        return httpx.Response(200, text="<html>oops</html>")

    outcome = run_adapter(DetectorAdapter(client_for(handler), "https://detect.test"))
    assert isinstance(outcome, Failure)
    assert outcome.kind is FailureKind.MALFORMED_RESPONSE


def test_detector_slow_source_times_out():
    async def handler(request):
        await asyncio.sleep(2)
        return httpx.Response(200, json={"predicted_classes": ["Cystic"]})

    adapter = DetectorAdapter(client_for(handler), "https://detect.test", timeout=0.05)
    outcome = run_adapter(adapter)
    assert outcome.kind is FailureKind.TIMEOUT


# ==================== DIRECT CLASSIFIER ====================

def test_classifier_selects_max_confidence_box():
    seen = []
    payload = {"bounding_boxes": [
        {"class_id": "Papular", "percentage_conf": 51.2},
        {"class_id": "Whitehead", "percentage_conf": 88.0},
    ]}
    adapter = DirectClassifierAdapter(client_for(json_handler(payload, seen=seen)), "https://cls.test/predict")
    outcome = run_adapter(adapter)

    assert outcome.value == "Whitehead"
    body = seen[0].content
    assert b'name="file"' in body
    assert b'filename="image.jpg"' in body


def test_classifier_empty_boxes_is_unknown():
    assert parse_classifier_label({"bounding_boxes": []}) == "Unknown"


def test_classifier_maps_numeric_class_ids_when_names_given():
    payload = {"bounding_boxes": [{"class_id": 1, "percentage_conf": 90}]}
    assert parse_classifier_label(payload, ["Blackhead", "Cystic"]) == "Cystic"
    assert parse_classifier_label(payload) == "1"


def test_classifier_accepts_bare_label_shape():
    assert parse_classifier_label({"label": "Milium", "confidence": 0.8}) == "Milium"


def test_classifier_missing_boxes_is_malformed():
    with pytest.raises(AdapterError) as info:
        parse_classifier_label({"something": "else"})
    assert info.value.kind is FailureKind.MALFORMED_RESPONSE


def test_classifier_http_error_is_hard_failure():
    adapter = DirectClassifierAdapter(client_for(json_handler({}, status=502)), "https://cls.test")
    outcome = run_adapter(adapter)
    assert outcome == Failure(FailureKind.HTTP_ERROR, "classifier HTTP 502")


# ==================== SEVERITY GRADER ====================

def test_grader_reads_predicted_grade():
    adapter = SeverityGraderAdapter(client_for(json_handler({"predicted_grade": 2})), "https://grade.test")
    assert run_adapter(adapter) == Success(value=2, raw_label="2")


def test_grader_missing_field_is_malformed():
    adapter = SeverityGraderAdapter(client_for(json_handler({"grade": 2})), "https://grade.test")
    outcome = run_adapter(adapter)
    assert outcome.kind is FailureKind.MALFORMED_RESPONSE


def test_grader_non_integer_is_malformed():
    adapter = SeverityGraderAdapter(client_for(json_handler({"predicted_grade": "severe"})), "https://grade.test")
    assert run_adapter(adapter).kind is FailureKind.MALFORMED_RESPONSE


def test_grader_http_error():
    adapter = SeverityGraderAdapter(client_for(json_handler({}, status=404)), "https://grade.test")
    assert run_adapter(adapter).kind is FailureKind.HTTP_ERROR


# ==================== GENERATIVE ====================

def test_generative_uploads_then_classifies():
    fake = FakeOpenAI(responses=FakeResponses(text="  Whitehead.\n"))
    adapter = GenerativeAdapter(fake, model="vision-model")
    outcome = run_adapter(adapter)

    assert outcome == Success(value="Whitehead", raw_label="Whitehead.")
    assert fake.files.calls[0]["purpose"] == "vision"
    request = fake.responses.calls[0]
    assert request["model"] == "vision-model"
    content = request["input"][0]["content"]
    assert content[0] == {"type": "input_image", "file_id": "file-abc"}
    assert "no acne" in content[1]["text"]


def test_generative_empty_answer_is_unknown():
    outcome = run_adapter(GenerativeAdapter(FakeOpenAI(responses=FakeResponses(text="   "))))
    assert outcome.value == "Unknown"


def test_generative_upload_timeout_reports_stage():
    fake = FakeOpenAI(files=FakeFiles(delay=2))
    adapter = GenerativeAdapter(fake, upload_timeout=0.05, generate_timeout=1)
    outcome = run_adapter(adapter)

    assert outcome.kind is FailureKind.TIMEOUT
    assert "uploading" in outcome.message
    assert fake.responses.calls == []


def test_generative_generation_timeout_reports_stage():
    fake = FakeOpenAI(responses=FakeResponses(delay=2))
    adapter = GenerativeAdapter(fake, upload_timeout=1, generate_timeout=0.05)
    outcome = run_adapter(adapter)

    assert outcome.timed_out
    assert "generating" in outcome.message


def test_generative_api_error_is_http_error():
    request = httpx.Request("POST", "https://api.openai.com/v1/responses")
    response = httpx.Response(429, request=request, content=json.dumps({"error": {"message": "slow down"}}))
    error = openai.RateLimitError("slow down", response=response, body=None)
    outcome = run_adapter(GenerativeAdapter(FakeOpenAI(responses=FakeResponses(error=error))))

    assert outcome.kind is FailureKind.HTTP_ERROR
    assert "generating" in outcome.message


def test_generative_without_client_fails_fast():
    outcome = run_adapter(GenerativeAdapter(None))
    assert outcome.kind is FailureKind.UNKNOWN


@pytest.mark.parametrize("answer", ["**Papular**", "`Papular`", "\"Papular.\"", "_Papular_"])
def test_generative_label_drops_markdown(answer):
    outcome = run_adapter(GenerativeAdapter(FakeOpenAI(responses=FakeResponses(text=answer))))
    assert outcome.value == "Papular"
    assert outcome.raw_label == answer
