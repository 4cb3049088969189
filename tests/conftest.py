import io
from typing import Optional

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from image_moderation_backend.app import app
from image_moderation_backend.core.exceptions import AdapterError
from image_moderation_backend.core.settings import settings
from image_moderation_backend.schemas.analysis_result import AnalysisResult, LabelAnnotation


class StubAnalyzer:
    """Returns a canned result (or raises) and counts calls."""

    name = "stub"

    def __init__(self, result: Optional[AnalysisResult] = None, error: Optional[Exception] = None):
        self.result = result or AnalysisResult()
        self.error = error
        self.calls = 0

    def analyze(self, image_bytes: bytes) -> AnalysisResult:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


def make_result(labels=(), **scores) -> AnalysisResult:
    return AnalysisResult(
        category_scores=scores,
        labels=[LabelAnnotation(description=d, score=s) for d, s in labels],
    )


def encode_image(img: Image.Image, fmt: str, **save_kwargs) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=fmt, **save_kwargs)
    return buf.getvalue()


def noise_image(size=(640, 480), mode="RGB", seed=7) -> Image.Image:
    rng = np.random.RandomState(seed)
    channels = len(mode)
    arr = rng.randint(0, 256, size=(size[1], size[0], channels), dtype=np.uint8)
    return Image.fromarray(arr if channels > 1 else arr[..., 0])


@pytest.fixture
def stub_analyzer_factory():
    return StubAnalyzer


@pytest.fixture
def result_factory():
    return make_result


@pytest.fixture
def noisy_jpeg() -> bytes:
    return encode_image(noise_image((640, 480)), "JPEG", quality=90)


@pytest.fixture
def client(monkeypatch):
    # no provider key -> lifespan wires the mock analyzer
    monkeypatch.setattr(settings, "VISION_API_KEY", "")
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def adapter_error():
    return AdapterError("provider unavailable")
