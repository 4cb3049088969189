"""
Vision provider normalization and HTTP failure mapping.
"""
import json

import httpx
import pytest

from image_moderation_backend.core.exceptions import AdapterError
from image_moderation_backend.schemas.analysis_result import Category
from image_moderation_backend.schemas.decision import Verdict
from image_moderation_backend.services.decision_engine import evaluate
from image_moderation_backend.services.vision_adapter import (
    GoogleVisionAnalyzer, Likelihood, MockAnalyzer, likelihood_to_score, normalize_response,
)

ENDPOINT = "https://vision.test/v1/images:annotate"


def annotate_body(safe_search=None, labels=None, **extra):
    response = dict(extra)
    if safe_search is not None:
        response["safeSearchAnnotation"] = safe_search
    if labels is not None:
        response["labelAnnotations"] = [{"description": d, "score": s} for d, s in labels]
    return {"responses": [response]}


def analyzer_with(handler) -> GoogleVisionAnalyzer:
    return GoogleVisionAnalyzer(
        api_key="secret",
        endpoint=ENDPOINT,
        timeout_s=2,
        max_labels=5,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.parametrize("likelihood, score", [
    (Likelihood.VERY_UNLIKELY, 0.0),
    (Likelihood.UNLIKELY, 0.2),
    (Likelihood.POSSIBLE, 0.4),
    (Likelihood.LIKELY, 0.7),
    (Likelihood.VERY_LIKELY, 0.95),
    (Likelihood.UNKNOWN, 0.5),
])
def test_likelihood_scores(likelihood, score):
    assert likelihood_to_score(likelihood) == score


def test_every_likelihood_has_a_score():
    for member in Likelihood:
        assert 0.0 <= likelihood_to_score(member) <= 1.0


@pytest.mark.parametrize("raw, expected", [
    ("LIKELY", Likelihood.LIKELY),
    (" very_likely ", Likelihood.VERY_LIKELY),
    (0, Likelihood.UNKNOWN),
    (3, Likelihood.POSSIBLE),
    (5, Likelihood.VERY_LIKELY),
    (9, Likelihood.UNKNOWN),
    (True, Likelihood.UNKNOWN),
    ("SOMEWHAT", Likelihood.UNKNOWN),
    (None, Likelihood.UNKNOWN),
])
def test_likelihood_parse(raw, expected):
    assert Likelihood.parse(raw) is expected


def test_normalize_maps_safe_search_and_keeps_label_order():
    body = annotate_body(
        safe_search={"adult": "VERY_UNLIKELY", "racy": "POSSIBLE", "violence": "LIKELY", "medical": "UNLIKELY", "spoof": "VERY_LIKELY"},
        labels=[("Room", 0.91), ("Sofa", 0.8), ("Dog", 0.75)],
    )

    result = normalize_response(body)

    assert result.category_scores == {"adult": 0.0, "racy": 0.4, "violence": 0.7, "medical": 0.2, "spoof": 0.95}
    assert [label.description for label in result.labels] == ["Room", "Sofa", "Dog"]
    assert result.labels[0].score == 0.91


def test_missing_field_scores_zero_and_explicit_unknown_is_half():
    result = normalize_response(annotate_body(safe_search={"adult": "LIKELY", "racy": "UNKNOWN"}))

    assert result.score("adult") == 0.7
    assert result.score("racy") == 0.5
    assert result.score("violence") == 0.0
    assert result.score("spoof") == 0.0


def test_block_without_violence_field_is_safe():
    body = annotate_body(safe_search={"adult": "VERY_UNLIKELY", "racy": "VERY_UNLIKELY", "medical": "VERY_UNLIKELY"})

    decision = evaluate(normalize_response(body))

    assert decision.verdict == Verdict.SAFE
    assert decision.confidence_scores["violence"] == 0.0


def test_score_accepts_category_or_plain_name():
    result = normalize_response(annotate_body(safe_search={"medical": "POSSIBLE"}))

    assert result.score(Category.MEDICAL) == result.score("medical") == result.score("MEDICAL") == 0.4
    assert result.score("unheard_of") == 0.0


def test_missing_safe_search_scores_zero():
    result = normalize_response(annotate_body(labels=[("House", 0.9)]))

    assert result.category_scores["adult"] == 0.0
    assert result.category_scores["violence"] == 0.0
    assert len(result.labels) == 1


def test_label_scores_are_clamped():
    result = normalize_response(annotate_body(labels=[("Sky", 1.3), ("Tree", -0.2)]))
    assert [label.score for label in result.labels] == [1.0, 0.0]


@pytest.mark.parametrize("payload", [
    [],
    {"responses": []},
    {"responses": ["oops"]},
    {"responses": [{"error": {"code": 7, "message": "API key invalid"}}]},
    {"responses": [{"labelAnnotations": [{"score": 0.4}]}]},
    {"responses": [{"labelAnnotations": [{"description": "Sky", "score": "high"}]}]},
])
def test_bad_payloads_raise_adapter_error(payload):
    with pytest.raises(AdapterError):
        normalize_response(payload)


def test_provider_error_message_is_kept():
    with pytest.raises(AdapterError, match="API key invalid"):
        normalize_response({"responses": [{"error": {"message": "API key invalid"}}]})


def test_request_carries_key_and_features():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["key"] = request.url.params["key"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=annotate_body(safe_search={"adult": "UNLIKELY"}, labels=[("Room", 0.9)]))

    result = analyzer_with(handler).analyze(b"\x89PNG fake")

    assert seen["key"] == "secret"
    req = seen["body"]["requests"][0]
    assert req["image"]["content"] == "iVBORyBmYWtl"
    assert {"type": "SAFE_SEARCH_DETECTION"} in req["features"]
    assert {"type": "LABEL_DETECTION", "maxResults": 5} in req["features"]
    assert result.score("adult") == 0.2


def test_http_error_status_raises_adapter_error():
    analyzer = analyzer_with(lambda request: httpx.Response(503, text="unavailable"))

    with pytest.raises(AdapterError, match="HTTP 503"):
        analyzer.analyze(b"img")


def test_timeout_raises_adapter_error():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(AdapterError, match="timed out"):
        analyzer_with(handler).analyze(b"img")


def test_connection_error_raises_adapter_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(AdapterError):
        analyzer_with(handler).analyze(b"img")


def test_non_json_body_raises_adapter_error():
    analyzer = analyzer_with(lambda request: httpx.Response(200, text="<html>nope</html>"))

    with pytest.raises(AdapterError, match="non-JSON"):
        analyzer.analyze(b"img")


def test_mock_analyzer_is_clean():
    result = MockAnalyzer().analyze(b"anything")

    assert all(score == 0.0 for score in result.category_scores.values())
    assert [label.description for label in result.labels] == ["Interior design", "Room"]
