import os
import re
from typing import Dict, List, Literal, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from image_moderation_backend.core.settings import settings
from image_moderation_backend.schemas.analysis_result import AnalysisResult, Category
from image_moderation_backend.schemas.decision import ContextLabel, Decision, FlaggedLabel, Verdict
from image_moderation_backend.services.vocabulary import ANIMAL_LABELS, PROPERTY_LABELS, get_message
from image_moderation_backend.utils.logger import get_logger

logger = get_logger(__name__)

# Category checks run in this order; the first hit wins.
UNSAFE_ORDER: Tuple[Category, ...] = (Category.ADULT, Category.RACY, Category.VIOLENCE, Category.MEDICAL)
BORDERLINE_ORDER: Tuple[Category, ...] = (Category.ADULT, Category.RACY, Category.VIOLENCE)

CATEGORY_TITLES: Dict[Category, str] = {
    Category.ADULT: "Adult content",
    Category.RACY: "Racy content",
    Category.VIOLENCE: "Violence",
    Category.MEDICAL: "Medical content",
}

DEFAULT_UNSAFE_THRESHOLDS: Dict[str, float] = {
    "adult": 0.6,
    "racy": 0.7,
    "violence": 0.5,
    "medical": 0.6,
}
DEFAULT_BORDERLINE_BANDS: Dict[str, Tuple[float, float]] = {
    "adult": (0.4, 0.6),
    "racy": (0.5, 0.7),
    "violence": (0.3, 0.5),
}


class BorderlineBand(BaseModel):
    """Half-open score range [lower, upper) that sends an image to manual review."""

    model_config = ConfigDict(frozen=True)

    lower: float = Field(..., ge=0.0, le=1.0)
    upper: float = Field(..., ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _ordered(self) -> "BorderlineBand":
        if self.lower >= self.upper:
            raise ValueError(f"band lower bound {self.lower} must be below upper bound {self.upper}")
        return self

    def contains(self, score: float) -> bool:
        return self.lower <= score < self.upper


class ThresholdConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    unsafe_thresholds: Dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_UNSAFE_THRESHOLDS))
    animal_threshold: float = Field(0.7, ge=0.0, le=1.0)
    borderline_bands: Dict[str, BorderlineBand] = Field(
        default_factory=lambda: {k: BorderlineBand(lower=lo, upper=hi) for k, (lo, hi) in DEFAULT_BORDERLINE_BANDS.items()}
    )
    context_min_score: float = Field(0.0, ge=0.0, le=1.0)
    # "word" requires the term to stand on its own ("hen" no longer hits "kitchen")
    label_match: Literal["substring", "word"] = "substring"

    @field_validator("unsafe_thresholds")
    @classmethod
    def _complete_thresholds(cls, value: Dict[str, float]) -> Dict[str, float]:
        merged = dict(DEFAULT_UNSAFE_THRESHOLDS)
        merged.update({str(k).lower(): float(v) for k, v in value.items()})
        for category, threshold in merged.items():
            if not 0.0 <= threshold <= 1.0:
                raise ValueError(f"unsafe threshold for '{category}' must be within [0, 1], got {threshold}")
        return merged

    @field_validator("borderline_bands", mode="before")
    @classmethod
    def _coerce_bands(cls, value: object) -> object:
        # YAML/JSON form: {"adult": [0.4, 0.6]}
        if not isinstance(value, dict):
            return value
        out = {}
        for category, band in value.items():
            if isinstance(band, (list, tuple)):
                if len(band) != 2:
                    raise ValueError(f"band for '{category}' must be [lower, upper]")
                band = {"lower": band[0], "upper": band[1]}
            out[str(category).lower()] = band
        return out

    @model_validator(mode="after")
    def _bands_below_cutoff(self) -> "ThresholdConfig":
        for category, band in self.borderline_bands.items():
            if category not in {c.value for c in BORDERLINE_ORDER}:
                raise ValueError(f"no borderline band is defined for category '{category}'")
            cutoff = self.unsafe_thresholds[category]
            if band.lower >= cutoff:
                raise ValueError(
                    f"borderline band for '{category}' starts at {band.lower}, not below the unsafe cutoff {cutoff}"
                )
        return self

    def unsafe_threshold(self, category: Category) -> float:
        return self.unsafe_thresholds[category.value]

    def band(self, category: Category) -> Optional[BorderlineBand]:
        return self.borderline_bands.get(category.value)


class ModerationDecisionEngine:
    """Turns one AnalysisResult into a Decision.

    Checks, first match wins:
        1. category score >= unsafe threshold (adult, racy, violence, medical) -> UNSAFE
        2. label containing an animal term with score >= animal threshold   -> UNSAFE
        3. category score inside its borderline band (adult, racy, violence) -> NEEDS_REVIEW
        4. otherwise SAFE, with property-context labels attached for information
    The engine holds no mutable state, so one instance may serve concurrent requests.
    """

    def __init__(self, config: ThresholdConfig):
        self.config = config
        self._animal_terms = tuple(t.lower() for t in ANIMAL_LABELS)
        self._property_terms = tuple(t.lower() for t in PROPERTY_LABELS)
        self._patterns: Dict[str, "re.Pattern[str]"] = {}
        if config.label_match == "word":
            for term in self._animal_terms + self._property_terms:
                self._patterns[term] = re.compile(rf"(?<![0-9a-z]){re.escape(term)}(?![0-9a-z])")

    def _matches(self, description: str, term: str) -> bool:
        if self.config.label_match == "word":
            return self._patterns[term].search(description) is not None
        return term in description

    def _first_match(self, description: str, terms: Tuple[str, ...]) -> Optional[str]:
        lowered = description.lower()
        for term in terms:
            if self._matches(lowered, term):
                return term
        return None

    @staticmethod
    def _confidence_scores(result: AnalysisResult) -> Dict[str, float]:
        scores = {c.value: result.score(c) for c in UNSAFE_ORDER}
        for name, value in result.category_scores.items():
            scores.setdefault(name, float(value))
        return scores

    def _category_rule(self, result: AnalysisResult, scores: Dict[str, float]) -> Optional[Decision]:
        for category in UNSAFE_ORDER:
            score = result.score(category)
            if score >= self.config.unsafe_threshold(category):
                code = f"{category.value}_content"
                return Decision(
                    verdict=Verdict.UNSAFE,
                    reason=f"{CATEGORY_TITLES[category]} detected (score: {score:g})",
                    reason_code=code,
                    message=get_message(code),
                    confidence_scores=scores,
                )
        return None

    def _animal_rule(self, result: AnalysisResult, scores: Dict[str, float]) -> Optional[Decision]:
        for label in result.labels:
            if label.score < self.config.animal_threshold:
                continue
            if self._first_match(label.description, self._animal_terms) is None:
                continue
            return Decision(
                verdict=Verdict.UNSAFE,
                reason=f"Animal detected: {label.description} (confidence: {round(label.score * 100, 1)}%)",
                reason_code="animal_detected",
                message=get_message("animal_detected", animal_name=label.description),
                confidence_scores=scores,
                flagged_labels=[FlaggedLabel(description=label.description, score=label.score, tag="animal")],
            )
        return None

    def _borderline_rule(self, result: AnalysisResult, scores: Dict[str, float]) -> Optional[Decision]:
        for category in BORDERLINE_ORDER:
            band = self.config.band(category)
            if band is None:
                continue
            score = result.score(category)
            if band.contains(score) and score < self.config.unsafe_threshold(category):
                return Decision(
                    verdict=Verdict.NEEDS_REVIEW,
                    reason=f"{category.value.capitalize()} score is borderline ({score:g}); manual review required",
                    reason_code=f"borderline_{category.value}",
                    message=get_message("borderline"),
                    confidence_scores=scores,
                )
        return None

    def _context_labels(self, result: AnalysisResult) -> List[ContextLabel]:
        found: List[ContextLabel] = []
        for label in result.labels:
            if label.score < self.config.context_min_score:
                continue
            if self._first_match(label.description, self._property_terms) is not None:
                found.append(ContextLabel(description=label.description, score=label.score))
        return found

    def evaluate(self, result: AnalysisResult) -> Decision:
        scores = self._confidence_scores(result)
        decision = (
            self._category_rule(result, scores)
            or self._animal_rule(result, scores)
            or self._borderline_rule(result, scores)
        )
        if decision is not None:
            logger.info("moderation decision", verdict=decision.verdict.value, reason_code=decision.reason_code)
            return decision

        context = self._context_labels(result)
        logger.info("moderation decision", verdict=Verdict.SAFE.value, context_labels=len(context))
        return Decision(
            verdict=Verdict.SAFE,
            reason="Image passed all moderation checks",
            reason_code="approved",
            message=get_message("approved"),
            confidence_scores=scores,
            context_labels=context,
        )


def evaluate(result: AnalysisResult, config: Optional[ThresholdConfig] = None) -> Decision:
    """Evaluate a single result with the given (or default) thresholds."""
    return ModerationDecisionEngine(config or ThresholdConfig()).evaluate(result)


class DecisionEngineFactory:
    @staticmethod
    def load_threshold_config(path: Optional[str] = None) -> ThresholdConfig:
        config_path = path if path is not None else settings.MODERATION_CONFIG_PATH
        if config_path and os.path.exists(config_path):
            with open(config_path, "r") as f:
                raw = yaml.safe_load(f) or {}
            logger.info("loaded moderation thresholds", path=config_path)
            return ThresholdConfig(**raw)
        logger.info("moderation config not found, using defaults", path=config_path)
        return ThresholdConfig()

    @staticmethod
    def load_default_decision_engine() -> ModerationDecisionEngine:
        return ModerationDecisionEngine(DecisionEngineFactory.load_threshold_config())
