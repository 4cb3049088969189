from typing import Optional
from pydantic import BaseModel

from image_moderation_backend.schemas.decision import Decision
from image_moderation_backend.schemas.quality_report import QualityReport
from image_moderation_backend.schemas.upload_outcome import UploadState

class ModerationResponse(BaseModel):
    image_sha256: str
    outcome: UploadState
    format: str
    width: int
    height: int
    decision: Optional[Decision] = None
    quality: Optional[QualityReport] = None
    error: Optional[str] = None
    perf_ms: dict[str, float] = {}
    watermarked_image_b64: Optional[str] = None
