from pydantic import BaseModel, Field
from typing import Annotated, Dict, List, Literal, Optional

Score = Annotated[float, Field(ge=0.0, le=1.0)]

class ThresholdUpdateRequestBody(BaseModel):
    """Partial threshold update; omitted fields keep their current values."""

    unsafe_thresholds: Optional[Dict[str, Score]] = Field(None, description="Per-category unsafe cutoffs")
    animal_threshold: Optional[Score] = Field(None, description="Minimum label score for animal rejection")
    borderline_bands: Optional[Dict[str, Annotated[List[Score], Field(min_length=2, max_length=2)]]] = Field(
        None, description="Per-category [lower, upper) review bands"
    )
    context_min_score: Optional[Score] = None
    label_match: Optional[Literal["substring", "word"]] = None
