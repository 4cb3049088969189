from typing import List, Dict
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum

class Verdict(str, Enum):
    SAFE = "SAFE"
    UNSAFE = "UNSAFE"
    NEEDS_REVIEW = "NEEDS_REVIEW"

class FlaggedLabel(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str
    score: float
    tag: str

class ContextLabel(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str
    score: float

class Decision(BaseModel):
    model_config = ConfigDict(frozen=True)

    verdict: Verdict
    reason: str
    reason_code: str
    message: str
    confidence_scores: Dict[str, float] = Field(default_factory=dict)
    flagged_labels: List[FlaggedLabel] = Field(default_factory=list)  # only for label-driven UNSAFE
    context_labels: List[ContextLabel] = Field(default_factory=list)  # informational
