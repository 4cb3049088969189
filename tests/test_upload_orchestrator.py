"""
Upload state machine: one terminal outcome per image, watermark only on approval.
"""
import io

import pytest
from PIL import Image

from conftest import StubAnalyzer, make_result
from image_moderation_backend.schemas.decision import Verdict
from image_moderation_backend.schemas.image_buffer import ImageBuffer, ImageFormat
from image_moderation_backend.schemas.upload_outcome import TERMINAL_STATES, UploadState
from image_moderation_backend.services.decision_engine import ModerationDecisionEngine, ThresholdConfig
from image_moderation_backend.services.upload_orchestrator import UploadOrchestrator
from image_moderation_backend.services.watermark_engine import WatermarkEngine, WatermarkSpec

S = UploadState


def orchestrator_for(analyzer) -> UploadOrchestrator:
    return UploadOrchestrator(
        analyzer=analyzer,
        decision_engine=ModerationDecisionEngine(ThresholdConfig()),
        watermark_engine=WatermarkEngine(WatermarkSpec()),
    )


@pytest.fixture
def jpeg_buffer(noisy_jpeg) -> ImageBuffer:
    return ImageBuffer(data=noisy_jpeg, width=640, height=480, format=ImageFormat.JPEG)


def test_safe_image_is_approved_with_watermarked_bytes(jpeg_buffer):
    analyzer = StubAnalyzer(make_result(labels=[("Living Room", 0.9)], adult=0.0, racy=0.0, violence=0.0, medical=0.0))

    outcome = orchestrator_for(analyzer).process(jpeg_buffer)

    assert outcome.outcome == S.APPROVED
    assert outcome.history == [S.RECEIVED, S.ANALYZING, S.WATERMARKING, S.APPROVED]
    assert outcome.decision.verdict == Verdict.SAFE
    assert outcome.error is None
    assert outcome.image_bytes is not None and outcome.image_bytes != jpeg_buffer.data
    out = Image.open(io.BytesIO(outcome.image_bytes))
    assert (out.format, out.size) == ("JPEG", (640, 480))
    assert set(outcome.perf_ms) == {"analysis", "decision", "watermark"}


def test_unsafe_image_is_rejected_without_watermark(jpeg_buffer):
    outcome = orchestrator_for(StubAnalyzer(make_result(adult=0.9))).process(jpeg_buffer)

    assert outcome.outcome == S.REJECTED
    assert outcome.history == [S.RECEIVED, S.ANALYZING, S.REJECTED]
    assert outcome.decision.reason_code == "adult_content"
    assert outcome.image_bytes is None
    assert "watermark" not in outcome.perf_ms


def test_animal_label_is_rejected(jpeg_buffer):
    outcome = orchestrator_for(StubAnalyzer(make_result(labels=[("Dog", 0.9)]))).process(jpeg_buffer)

    assert outcome.outcome == S.REJECTED
    assert outcome.decision.flagged_labels[0].description == "Dog"


def test_borderline_image_waits_for_review(jpeg_buffer):
    outcome = orchestrator_for(StubAnalyzer(make_result(racy=0.55))).process(jpeg_buffer)

    assert outcome.outcome == S.PENDING_REVIEW
    assert outcome.history == [S.RECEIVED, S.ANALYZING, S.PENDING_REVIEW]
    assert outcome.image_bytes is None


def test_analysis_failure_is_not_retried(jpeg_buffer, adapter_error):
    analyzer = StubAnalyzer(error=adapter_error)

    outcome = orchestrator_for(analyzer).process(jpeg_buffer)

    assert outcome.outcome == S.ANALYSIS_FAILED
    assert outcome.history == [S.RECEIVED, S.ANALYZING, S.ANALYSIS_FAILED]
    assert outcome.decision is None
    assert outcome.image_bytes is None
    assert outcome.error == "provider unavailable"
    assert analyzer.calls == 1


def test_watermark_failure_never_returns_original_bytes():
    broken = ImageBuffer(data=b"\xff\xd8\xff" + b"\x00" * 64, width=640, height=480, format=ImageFormat.JPEG)

    outcome = orchestrator_for(StubAnalyzer(make_result())).process(broken)

    assert outcome.outcome == S.WATERMARK_FAILED
    assert outcome.history == [S.RECEIVED, S.ANALYZING, S.WATERMARKING, S.WATERMARK_FAILED]
    assert outcome.decision.verdict == Verdict.SAFE
    assert outcome.image_bytes is None
    assert outcome.error


def test_unexpected_errors_propagate(jpeg_buffer):
    analyzer = StubAnalyzer(error=RuntimeError("bug"))

    with pytest.raises(RuntimeError):
        orchestrator_for(analyzer).process(jpeg_buffer)


def test_each_image_is_analyzed_once(jpeg_buffer):
    analyzer = StubAnalyzer(make_result())
    orchestrator = orchestrator_for(analyzer)

    outcomes = [orchestrator.process(jpeg_buffer) for _ in range(3)]

    assert analyzer.calls == 3
    assert all(o.outcome in TERMINAL_STATES for o in outcomes)
    assert all(o.history[-1] == o.outcome for o in outcomes)


def test_terminal_states():
    assert {s for s in S if s.is_terminal} == {
        S.APPROVED, S.REJECTED, S.PENDING_REVIEW, S.ANALYSIS_FAILED, S.WATERMARK_FAILED,
    }
