import numpy as np
from PIL import Image

from image_moderation_backend.core.settings import settings
from image_moderation_backend.schemas.quality_report import QualityRating, QualityReport
from image_moderation_backend.services.vocabulary import get_message
from image_moderation_backend.utils.image_util import ImageUtil
from image_moderation_backend.utils.logger import get_logger

logger = get_logger(__name__)


class QualityInspector:
    """Upload pre-checks run before moderation: minimum size, then blur.

    Blur uses the variance of the 4-neighbour Laplacian response over the
    grayscale image. Low variance means few edges, i.e. a blurry photo.
    """

    def __init__(
        self,
        min_width: int = settings.MIN_IMAGE_WIDTH,
        min_height: int = settings.MIN_IMAGE_HEIGHT,
        blur_check_enabled: bool = settings.BLUR_CHECK_ENABLED,
        high_blur_threshold: float = settings.HIGH_BLUR_THRESHOLD,
        medium_blur_threshold: float = settings.MEDIUM_BLUR_THRESHOLD,
    ):
        self.min_width = min_width
        self.min_height = min_height
        self.blur_check_enabled = blur_check_enabled
        self.high_blur_threshold = high_blur_threshold
        self.medium_blur_threshold = medium_blur_threshold

    @staticmethod
    def laplacian_variance(gray: np.ndarray) -> float:
        if gray.shape[0] < 3 or gray.shape[1] < 3:
            return 0.0
        center = gray[1:-1, 1:-1]
        lap = np.abs(
            4.0 * center
            - gray[:-2, 1:-1]   # top
            - gray[2:, 1:-1]    # bottom
            - gray[1:-1, :-2]   # left
            - gray[1:-1, 2:]    # right
        )
        return float(lap.var())

    @staticmethod
    def blur_score(variance: float) -> float:
        """Map variance to 0.0 (sharp) .. 1.0 (very blurry)."""
        if variance < 100:
            score = 0.8 + (100 - variance) / 100 * 0.2
        elif variance < 500:
            score = 0.5 + (500 - variance) / 400 * 0.3
        elif variance < 1000:
            score = 0.3 + (1000 - variance) / 500 * 0.2
        elif variance < 2000:
            score = 0.1 + (2000 - variance) / 1000 * 0.2
        else:
            score = min(0.1, max(0.0, 0.1 - (variance - 2000) / 10000))
        return max(0.0, min(1.0, score))

    @staticmethod
    def rating(score: float) -> QualityRating:
        if score > 0.6:
            return QualityRating.VERY_POOR
        if score > 0.4:
            return QualityRating.POOR
        if score > 0.2:
            return QualityRating.ACCEPTABLE
        return QualityRating.GOOD

    def inspect(self, img: Image.Image) -> QualityReport:
        width, height = img.size
        if width < self.min_width or height < self.min_height:
            return QualityReport(
                passed=False,
                reason_code="low_quality",
                message=get_message(
                    "low_quality", width=width, height=height,
                    min_width=self.min_width, min_height=self.min_height,
                ),
                width=width,
                height=height,
            )

        if not self.blur_check_enabled:
            return QualityReport(passed=True, width=width, height=height)

        variance = self.laplacian_variance(ImageUtil.grayscale_array(img))
        score = self.blur_score(variance)
        report = dict(
            width=width,
            height=height,
            blur_variance=round(variance, 2),
            blur_score=round(score, 3),
            quality_rating=self.rating(score),
        )
        if variance < self.high_blur_threshold:
            logger.info("blurry upload rejected", variance=round(variance, 2))
            return QualityReport(passed=False, reason_code="blur_detected", message=get_message("blur_detected"), **report)
        if variance < self.medium_blur_threshold:
            logger.info("medium blur accepted", variance=round(variance, 2))
        return QualityReport(passed=True, **report)
