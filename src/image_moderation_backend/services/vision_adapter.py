import base64
from enum import Enum
from typing import Any, Dict, List, NoReturn, Optional, Protocol

import httpx

from image_moderation_backend.core.exceptions import AdapterError
from image_moderation_backend.core.settings import settings
from image_moderation_backend.schemas.analysis_result import AnalysisResult, LabelAnnotation
from image_moderation_backend.utils.logger import get_logger

logger = get_logger(__name__)

SAFE_SEARCH_FIELDS = ("adult", "racy", "violence", "medical", "spoof")


class Likelihood(str, Enum):
    UNKNOWN = "UNKNOWN"
    VERY_UNLIKELY = "VERY_UNLIKELY"
    UNLIKELY = "UNLIKELY"
    POSSIBLE = "POSSIBLE"
    LIKELY = "LIKELY"
    VERY_LIKELY = "VERY_LIKELY"

    @classmethod
    def parse(cls, value: Any) -> "Likelihood":
        """Accept REST names ("LIKELY") or protobuf numbers (0 = UNKNOWN .. 5 = VERY_LIKELY)."""
        if isinstance(value, bool):
            return cls.UNKNOWN
        if isinstance(value, int):
            members = list(cls)
            return members[value] if 0 <= value < len(members) else cls.UNKNOWN
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                return cls.UNKNOWN
        return cls.UNKNOWN


def _unreachable(value: NoReturn) -> NoReturn:
    raise ValueError(f"Unhandled likelihood: {value!r}")


def likelihood_to_score(likelihood: Likelihood) -> float:
    if likelihood is Likelihood.VERY_UNLIKELY:
        return 0.0
    if likelihood is Likelihood.UNLIKELY:
        return 0.2
    if likelihood is Likelihood.POSSIBLE:
        return 0.4
    if likelihood is Likelihood.LIKELY:
        return 0.7
    if likelihood is Likelihood.VERY_LIKELY:
        return 0.95
    if likelihood is Likelihood.UNKNOWN:
        return 0.5
    _unreachable(likelihood)


def normalize_response(payload: Any) -> AnalysisResult:
    """Convert a Vision `images:annotate` JSON body into an AnalysisResult.

    Label order is kept as returned by the provider. A missing SafeSearch block,
    or a field missing from it, scores 0.0; only an explicit UNKNOWN scores 0.5.
    """
    if not isinstance(payload, dict):
        raise AdapterError("Vision response is not a JSON object")
    responses = payload.get("responses")
    if not isinstance(responses, list) or not responses:
        raise AdapterError("No response from vision provider")
    response = responses[0]
    if not isinstance(response, dict):
        raise AdapterError("Vision response entry is not an object")

    error = response.get("error")
    if error:
        message = error.get("message", "Unknown API error") if isinstance(error, dict) else str(error)
        raise AdapterError(f"API Error: {message}")

    safe_search = response.get("safeSearchAnnotation")
    if not isinstance(safe_search, dict):
        safe_search = {}
    scores: Dict[str, float] = {}
    for field in SAFE_SEARCH_FIELDS:
        # REST output drops enum fields left at their default, so absent is not UNKNOWN
        raw = safe_search.get(field)
        scores[field] = 0.0 if raw is None else likelihood_to_score(Likelihood.parse(raw))

    labels: List[LabelAnnotation] = []
    for raw in response.get("labelAnnotations") or []:
        if not isinstance(raw, dict) or not isinstance(raw.get("description"), str):
            raise AdapterError(f"Malformed label annotation: {raw!r}")
        try:
            score = float(raw.get("score", 0.0))
        except (TypeError, ValueError) as exc:
            raise AdapterError(f"Malformed label score: {raw!r}") from exc
        labels.append(LabelAnnotation(description=raw["description"], score=min(1.0, max(0.0, score))))

    return AnalysisResult(category_scores=scores, labels=labels)


class ImageAnalyzer(Protocol):
    name: str

    def analyze(self, image_bytes: bytes) -> AnalysisResult:
        ...


class GoogleVisionAnalyzer:
    """SafeSearch + label detection through the Vision REST API.

    The HTTP client is opened per call and closed by its context manager on
    every exit path. Every failure surfaces as AdapterError.
    """

    name = "google_vision"

    def __init__(
        self,
        api_key: str,
        endpoint: str = settings.VISION_ENDPOINT,
        timeout_s: float = settings.VISION_TIMEOUT_S,
        max_labels: int = settings.VISION_MAX_LABELS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.endpoint = endpoint
        self.timeout_s = timeout_s
        self.max_labels = max_labels
        self._transport = transport  # injectable for tests

    def build_request(self, image_bytes: bytes) -> Dict[str, Any]:
        return {
            "requests": [{
                "image": {"content": base64.b64encode(image_bytes).decode("ascii")},
                "features": [
                    {"type": "SAFE_SEARCH_DETECTION"},
                    {"type": "LABEL_DETECTION", "maxResults": self.max_labels},
                ],
            }]
        }

    def analyze(self, image_bytes: bytes) -> AnalysisResult:
        body = self.build_request(image_bytes)
        try:
            with httpx.Client(timeout=self.timeout_s, transport=self._transport) as client:
                response = client.post(self.endpoint, params={"key": self.api_key}, json=body)
                response.raise_for_status()
                payload = response.json()
        except httpx.TimeoutException as exc:
            raise AdapterError(f"Vision request timed out after {self.timeout_s}s") from exc
        except httpx.HTTPStatusError as exc:
            raise AdapterError(f"Vision API returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise AdapterError(f"Vision request failed: {exc}") from exc
        except ValueError as exc:
            raise AdapterError("Vision API returned a non-JSON body") from exc
        return normalize_response(payload)


class MockAnalyzer:
    """Stable clean result for development when no API key is configured."""

    name = "mock"

    def analyze(self, image_bytes: bytes) -> AnalysisResult:
        return AnalysisResult(
            category_scores={field: 0.0 for field in SAFE_SEARCH_FIELDS},
            labels=[
                LabelAnnotation(description="Interior design", score=0.9),
                LabelAnnotation(description="Room", score=0.85),
            ],
        )


class AnalyzerFactory:
    @staticmethod
    def load_default_analyzer() -> ImageAnalyzer:
        if settings.VISION_API_KEY:
            logger.info("using vision provider", endpoint=settings.VISION_ENDPOINT)
            return GoogleVisionAnalyzer(api_key=settings.VISION_API_KEY)
        logger.warning("VISION_API_KEY is not set, falling back to mock analyzer")
        return MockAnalyzer()
