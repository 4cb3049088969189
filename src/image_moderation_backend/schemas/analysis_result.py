from typing import List, Dict, Union
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum

class Category(str, Enum):
    ADULT = "adult"
    RACY = "racy"
    VIOLENCE = "violence"
    MEDICAL = "medical"

class LabelAnnotation(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str
    score: float = Field(..., ge=0.0, le=1.0)

class AnalysisResult(BaseModel):
    """Normalized provider output: safety scores per category plus ordered labels."""

    model_config = ConfigDict(frozen=True)

    category_scores: Dict[str, float] = Field(default_factory=dict)
    labels: List[LabelAnnotation] = Field(default_factory=list)

    def score(self, category: Union[Category, str]) -> float:
        # plain names ("adult", "spoof") are accepted too; missing categories count as 0.0
        key = category.value if isinstance(category, Category) else str(category).lower()
        return float(self.category_scores.get(key, 0.0))
