import hashlib
from typing import Dict, List, Optional

from image_moderation_backend.core.exceptions import AdapterError, DecodeError
from image_moderation_backend.schemas.decision import Decision, Verdict
from image_moderation_backend.schemas.image_buffer import ImageBuffer
from image_moderation_backend.schemas.upload_outcome import UploadOutcome, UploadState
from image_moderation_backend.services.decision_engine import DecisionEngineFactory, ModerationDecisionEngine
from image_moderation_backend.services.vision_adapter import AnalyzerFactory, ImageAnalyzer
from image_moderation_backend.services.watermark_engine import WatermarkEngine, WatermarkEngineFactory
from image_moderation_backend.utils.logger import StageTimer, get_logger

logger = get_logger(__name__)

VERDICT_STATES: Dict[Verdict, UploadState] = {
    Verdict.SAFE: UploadState.WATERMARKING,
    Verdict.UNSAFE: UploadState.REJECTED,
    Verdict.NEEDS_REVIEW: UploadState.PENDING_REVIEW,
}


class UploadOrchestrator:
    """analyze -> decide -> (SAFE only) watermark, for one image per call.

    RECEIVED -> ANALYZING -> WATERMARKING -> APPROVED
                          -> REJECTED | PENDING_REVIEW
    ANALYZING fails into ANALYSIS_FAILED, WATERMARKING into WATERMARK_FAILED.
    Nothing is retried here, and an unwatermarked image is never returned.
    """

    def __init__(
        self,
        analyzer: ImageAnalyzer,
        decision_engine: ModerationDecisionEngine,
        watermark_engine: WatermarkEngine,
    ):
        self.analyzer = analyzer
        self.decision_engine = decision_engine
        self.watermark_engine = watermark_engine

    @staticmethod
    def _finish(
        state: UploadState,
        history: List[UploadState],
        perf_ms: Dict[str, float],
        decision: Optional[Decision] = None,
        image_bytes: Optional[bytes] = None,
        error: Optional[str] = None,
    ) -> UploadOutcome:
        history.append(state)
        return UploadOutcome(
            outcome=state,
            decision=decision,
            image_bytes=image_bytes if state is UploadState.APPROVED else None,
            error=error,
            history=history,
            perf_ms={k: round(v, 2) for k, v in perf_ms.items()},
        )

    def process(self, image: ImageBuffer) -> UploadOutcome:
        log = logger.bind(
            image_sha256=hashlib.sha256(image.data).hexdigest(),
            format=image.format.value,
            size=f"{image.width}x{image.height}",
        )
        history: List[UploadState] = [UploadState.RECEIVED, UploadState.ANALYZING]
        perf_ms: Dict[str, float] = {}

        timer = StageTimer("analysis", log)
        try:
            with timer:
                result = self.analyzer.analyze(image.data)
        except AdapterError as exc:
            perf_ms["analysis"] = timer.elapsed_ms
            log.error("image analysis failed", analyzer=self.analyzer.name, error=str(exc))
            return self._finish(UploadState.ANALYSIS_FAILED, history, perf_ms, error=str(exc))
        perf_ms["analysis"] = timer.elapsed_ms

        with StageTimer("decision", log) as decision_timer:
            decision = self.decision_engine.evaluate(result)
        perf_ms["decision"] = decision_timer.elapsed_ms

        next_state = VERDICT_STATES[decision.verdict]
        if next_state is not UploadState.WATERMARKING:
            log.info("upload not approved", outcome=next_state.value, reason_code=decision.reason_code)
            return self._finish(next_state, history, perf_ms, decision=decision)

        history.append(UploadState.WATERMARKING)
        timer = StageTimer("watermark", log)
        try:
            with timer:
                stamped = self.watermark_engine.apply(image)
        except DecodeError as exc:
            perf_ms["watermark"] = timer.elapsed_ms
            log.error("watermarking failed", error=str(exc))
            return self._finish(UploadState.WATERMARK_FAILED, history, perf_ms, decision=decision, error=str(exc))
        perf_ms["watermark"] = timer.elapsed_ms

        log.info("upload approved", bytes_out=len(stamped.data))
        return self._finish(UploadState.APPROVED, history, perf_ms, decision=decision, image_bytes=stamped.data)


class OrchestratorFactory:
    @staticmethod
    def load_default_orchestrator() -> UploadOrchestrator:
        return UploadOrchestrator(
            analyzer=AnalyzerFactory.load_default_analyzer(),
            decision_engine=DecisionEngineFactory.load_default_decision_engine(),
            watermark_engine=WatermarkEngineFactory.load_default_watermark_engine(),
        )
