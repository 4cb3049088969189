"""
Upload pre-checks: minimum dimensions and blur.
"""
import numpy as np
import pytest
from PIL import Image, ImageFilter

from conftest import noise_image
from image_moderation_backend.schemas.quality_report import QualityRating
from image_moderation_backend.services.quality import QualityInspector


@pytest.fixture
def inspector() -> QualityInspector:
    return QualityInspector(min_width=400, min_height=300, blur_check_enabled=True,
                            high_blur_threshold=50, medium_blur_threshold=100)


def test_small_image_is_low_quality(inspector):
    report = inspector.inspect(noise_image((399, 300)))

    assert not report.passed
    assert report.reason_code == "low_quality"
    assert "399x300" in report.message
    assert "400x300" in report.message


def test_flat_image_is_blurry(inspector):
    report = inspector.inspect(Image.new("RGB", (640, 480), (128, 128, 128)))

    assert not report.passed
    assert report.reason_code == "blur_detected"
    assert report.blur_variance == 0.0
    assert report.quality_rating == QualityRating.VERY_POOR


def test_heavily_smoothed_image_is_blurry(inspector):
    img = noise_image((640, 480)).filter(ImageFilter.GaussianBlur(radius=8))
    assert inspector.inspect(img).reason_code == "blur_detected"


def test_sharp_image_passes(inspector):
    report = inspector.inspect(noise_image((640, 480)))

    assert report.passed
    assert report.reason_code is None
    assert report.blur_variance > 2000
    assert report.quality_rating == QualityRating.GOOD


def test_blur_check_can_be_disabled():
    inspector = QualityInspector(min_width=10, min_height=10, blur_check_enabled=False)
    report = inspector.inspect(Image.new("RGB", (50, 50)))

    assert report.passed
    assert report.blur_variance is None


def test_laplacian_variance_of_tiny_images_is_zero():
    assert QualityInspector.laplacian_variance(np.ones((2, 50))) == 0.0


def test_blur_score_endpoints_and_monotonicity():
    assert QualityInspector.blur_score(0) == 1.0
    assert QualityInspector.blur_score(5000) == 0.0

    scores = [QualityInspector.blur_score(v) for v in range(0, 4000, 25)]
    assert all(a >= b for a, b in zip(scores, scores[1:]))


@pytest.mark.parametrize("score, rating", [
    (0.9, QualityRating.VERY_POOR),
    (0.5, QualityRating.POOR),
    (0.3, QualityRating.ACCEPTABLE),
    (0.1, QualityRating.GOOD),
])
def test_rating_bands(score, rating):
    assert QualityInspector.rating(score) == rating
