from pydantic_settings import BaseSettings
from typing import Tuple

class Settings(BaseSettings):
    APP_NAME: str = "Image Moderation Backend API (FastAPI)"
    APP_VERSION: str = "0.1.0"
    MODERATION_CONFIG_PATH: str = "config/moderation.yaml"

    # vision provider settings
    VISION_API_KEY: str = ""  # empty -> mock analyzer (dev only)
    VISION_ENDPOINT: str = "https://vision.googleapis.com/v1/images:annotate"
    VISION_TIMEOUT_S: float = 15.0
    VISION_MAX_LABELS: int = 20

    # Watermark defaults
    WATERMARK_TEXT: str = "indiapropertys"
    WATERMARK_ANGLE: float = -45.0  # degrees
    WATERMARK_COLOR: Tuple[int, int, int] = (200, 200, 200)  # light grey
    WATERMARK_OPACITY: float = 0.76  # 0..1
    WATERMARK_CORNER_PADDING: int = 10  # pixels

    # Upload pre-checks
    MAX_UPLOAD_MB: int = 5
    ALLOWED_CONTENT_TYPES: Tuple[str, ...] = ("image/jpeg", "image/png", "image/webp")
    MIN_IMAGE_WIDTH: int = 400
    MIN_IMAGE_HEIGHT: int = 300
    BLUR_CHECK_ENABLED: bool = True
    HIGH_BLUR_THRESHOLD: float = 50.0  # laplacian variance, reject below
    MEDIUM_BLUR_THRESHOLD: float = 100.0  # informational only

    CORS_ORIGINS: str = "*"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    model_config = {
        "env_file": ".env",
        "extra": "ignore"
    }

settings = Settings()
