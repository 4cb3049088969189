from typing import Optional
from pydantic import BaseModel
from enum import Enum

class QualityRating(str, Enum):
    GOOD = "good"
    ACCEPTABLE = "acceptable"
    POOR = "poor"
    VERY_POOR = "very_poor"

class QualityReport(BaseModel):
    passed: bool
    reason_code: Optional[str] = None
    message: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    blur_variance: Optional[float] = None
    blur_score: Optional[float] = None
    quality_rating: Optional[QualityRating] = None
