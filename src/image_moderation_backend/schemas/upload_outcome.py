from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum

from image_moderation_backend.schemas.decision import Decision

class UploadState(str, Enum):
    RECEIVED = "RECEIVED"
    ANALYZING = "ANALYZING"
    WATERMARKING = "WATERMARKING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PENDING_REVIEW = "PENDING_REVIEW"
    ANALYSIS_FAILED = "ANALYSIS_FAILED"
    WATERMARK_FAILED = "WATERMARK_FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES

TERMINAL_STATES = frozenset({
    UploadState.APPROVED,
    UploadState.REJECTED,
    UploadState.PENDING_REVIEW,
    UploadState.ANALYSIS_FAILED,
    UploadState.WATERMARK_FAILED,
})

class UploadOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcome: UploadState
    decision: Optional[Decision] = None
    image_bytes: Optional[bytes] = Field(default=None, repr=False)  # APPROVED only
    error: Optional[str] = None
    history: List[UploadState] = Field(default_factory=list)
    perf_ms: Dict[str, float] = Field(default_factory=dict)
