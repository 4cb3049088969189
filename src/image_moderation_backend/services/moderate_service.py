import base64
import hashlib
import time
from typing import Optional, Tuple

from fastapi import UploadFile
from PIL import Image
from starlette.concurrency import run_in_threadpool
from starlette.status import (
    HTTP_200_OK, HTTP_202_ACCEPTED, HTTP_400_BAD_REQUEST,
    HTTP_500_INTERNAL_SERVER_ERROR, HTTP_502_BAD_GATEWAY,
)

from image_moderation_backend.core.exceptions import DecodeError
from image_moderation_backend.core.settings import settings
from image_moderation_backend.response_handlers.json_response_handler import Response_SUCCESS
from image_moderation_backend.schemas.image_buffer import ImageBuffer
from image_moderation_backend.schemas.moderation_response import ModerationResponse
from image_moderation_backend.schemas.quality_report import QualityReport
from image_moderation_backend.schemas.upload_outcome import UploadState
from image_moderation_backend.services.quality import QualityInspector
from image_moderation_backend.services.upload_orchestrator import UploadOrchestrator
from image_moderation_backend.services.vocabulary import get_message
from image_moderation_backend.utils.image_util import ImageUtil
from image_moderation_backend.utils.logger import get_logger

logger = get_logger(__name__)

OUTCOME_STATUS = {
    UploadState.APPROVED: (HTTP_200_OK, "Image approved"),
    UploadState.REJECTED: (HTTP_400_BAD_REQUEST, "Image rejected by moderation"),
    UploadState.PENDING_REVIEW: (HTTP_202_ACCEPTED, "Image queued for manual review"),
    UploadState.ANALYSIS_FAILED: (HTTP_502_BAD_GATEWAY, "Image verification failed. Please try again."),
    UploadState.WATERMARK_FAILED: (HTTP_500_INTERNAL_SERVER_ERROR, "Image could not be processed. Please try again."),
}


class ModerateService:
    """Upload pre-checks, then the moderation pipeline, then response packaging."""

    def __init__(self, max_upload_mb: Optional[int] = None) -> None:
        self.max_bytes = (max_upload_mb or settings.MAX_UPLOAD_MB) * 1024 * 1024

    async def run_moderate(
        self,
        *,
        input_img: UploadFile,
        include_image: bool,
        orchestrator: UploadOrchestrator,
        inspector: QualityInspector,
    ):
        content_type: Optional[str] = input_img.content_type
        image_bytes: bytes = await input_img.read()
        t0 = time.perf_counter()

        rejection = self._validate_image_payload(content_type, image_bytes)
        if rejection is not None:
            return Response_SUCCESS(status_code=HTTP_400_BAD_REQUEST, message=rejection.message, data=rejection)

        try:
            buffer, img = self._decode(image_bytes)
        except DecodeError as exc:
            logger.info("undecodable upload", error=str(exc))
            report = QualityReport(passed=False, reason_code="invalid_image", message=get_message("invalid_image"))
            return Response_SUCCESS(status_code=HTTP_400_BAD_REQUEST, message=report.message, data=report)

        quality = await run_in_threadpool(inspector.inspect, img)
        if not quality.passed:
            return Response_SUCCESS(status_code=HTTP_400_BAD_REQUEST, message=quality.message, data=quality)

        # CPU-bound; keep it off the event loop
        outcome = await run_in_threadpool(orchestrator.process, buffer)

        perf_ms = dict(outcome.perf_ms)
        perf_ms["total"] = round((time.perf_counter() - t0) * 1000.0, 2)
        encoded = None
        if include_image and outcome.image_bytes is not None:
            encoded = base64.b64encode(outcome.image_bytes).decode("ascii")

        status_code, message = OUTCOME_STATUS[outcome.outcome]
        if outcome.decision is not None and outcome.outcome in (UploadState.REJECTED, UploadState.PENDING_REVIEW):
            message = outcome.decision.message

        return Response_SUCCESS(
            status_code=status_code,
            message=message,
            data=ModerationResponse(
                image_sha256=hashlib.sha256(image_bytes).hexdigest(),
                outcome=outcome.outcome,
                format=buffer.format.value,
                width=buffer.width,
                height=buffer.height,
                decision=outcome.decision,
                quality=quality,
                error=outcome.error,
                perf_ms=perf_ms,
                watermarked_image_b64=encoded,
            ),
        )

    # ---------- private helpers ----------
    def _validate_image_payload(self, content_type: Optional[str], image_bytes: bytes) -> Optional[QualityReport]:
        cct = (content_type or "").lower()
        if cct not in settings.ALLOWED_CONTENT_TYPES or not image_bytes:
            return QualityReport(passed=False, reason_code="invalid_type", message=get_message("invalid_type"))
        if len(image_bytes) > self.max_bytes:
            return QualityReport(
                passed=False,
                reason_code="file_too_large",
                message=get_message("file_too_large", max_mb=self.max_bytes // 1024 // 1024),
            )
        return None

    @staticmethod
    def _decode(image_bytes: bytes) -> Tuple[ImageBuffer, Image.Image]:
        img = ImageUtil.open(image_bytes)
        buffer = ImageBuffer(data=image_bytes, width=img.width, height=img.height, format=ImageUtil.format_of(img))
        return buffer, img
