import math
from functools import lru_cache
from typing import List, Optional, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator
from PIL import Image, ImageDraw, ImageFont

from image_moderation_backend.core.settings import settings
from image_moderation_backend.schemas.image_buffer import ImageBuffer
from image_moderation_backend.utils.image_util import ImageUtil
from image_moderation_backend.utils.logger import get_logger

logger = get_logger(__name__)

# Relative anchors inside the usable rectangle: 3 on the top row, 4 on the bottom row.
DEFAULT_DIAGONAL_ANCHORS: Tuple[Tuple[float, float], ...] = (
    (0.15, 0.25), (0.50, 0.25), (0.85, 0.25),
    (0.10, 0.75), (0.35, 0.75), (0.65, 0.75), (0.90, 0.75),
)
DIAGONAL_COUNT = 7
MARGIN_RATIO = 0.12
MIN_FONT_PX = 16
MAX_FONT_PX = 32


class WatermarkSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str = Field(settings.WATERMARK_TEXT, min_length=1)
    angle: float = settings.WATERMARK_ANGLE  # degrees
    color: Tuple[int, int, int] = settings.WATERMARK_COLOR
    opacity: float = Field(settings.WATERMARK_OPACITY, ge=0.0, le=1.0)
    diagonal_anchors: Tuple[Tuple[float, float], ...] = DEFAULT_DIAGONAL_ANCHORS
    corner_padding: int = Field(settings.WATERMARK_CORNER_PADDING, ge=0)

    @field_validator("color")
    @classmethod
    def _rgb(cls, value: Tuple[int, int, int]) -> Tuple[int, int, int]:
        if any(not 0 <= c <= 255 for c in value):
            raise ValueError(f"color components must be within 0..255, got {value}")
        return value

    @field_validator("diagonal_anchors")
    @classmethod
    def _seven_anchors(cls, value: Tuple[Tuple[float, float], ...]) -> Tuple[Tuple[float, float], ...]:
        if len(value) != DIAGONAL_COUNT:
            raise ValueError(f"exactly {DIAGONAL_COUNT} diagonal anchors are required, got {len(value)}")
        for rx, ry in value:
            if not (0.0 <= rx <= 1.0 and 0.0 <= ry <= 1.0):
                raise ValueError(f"anchor ({rx}, {ry}) must use ratios within [0, 1]")
        return value


class Placement(BaseModel):
    """Top-left origin and size of one burned text instance."""

    model_config = ConfigDict(frozen=True)

    kind: str  # "diagonal" | "corner"
    x: int
    y: int
    width: int
    height: int


def font_size_for(width: int, height: int) -> int:
    """Glyph height in pixels: 1/20 of the shorter side, clamped to [16, 32]."""
    return max(MIN_FONT_PX, min(MAX_FONT_PX, int(min(width, height) / 20)))


@lru_cache(maxsize=64)
def render_text_mask(text: str, font_px: int) -> np.ndarray:
    """Coverage mask (0 or 1) of `text` in Pillow's built-in bitmap font, scaled to `font_px` high."""
    font = ImageFont.load_default_imagefont()
    left, top, right, bottom = font.getbbox(text)
    native_w, native_h = max(1, right - left), max(1, bottom - top)

    mask = Image.new("L", (native_w, native_h), 0)
    ImageDraw.Draw(mask).text((-left, -top), text, fill=255, font=font)

    scale = font_px / native_h
    scaled_w = max(1, int(round(native_w * scale)))
    mask = mask.resize((scaled_w, font_px), Image.Resampling.NEAREST)

    # bitmap glyphs: each pixel is either ink or background
    coverage = (np.asarray(mask) >= 128).astype(np.float32)
    coverage.setflags(write=False)
    return coverage


def _clamp(value: int, upper: int) -> int:
    return max(0, min(value, max(0, upper)))


def compute_layout(width: int, height: int, text_w: int, text_h: int, spec: WatermarkSpec) -> List[Placement]:
    """Seven rotated diagonal placements followed by the bottom-right corner placement.

    Anchors are positioned in the rectangle left after a 12% margin, rotated about
    the image centre by spec.angle, centred on the text and clamped so the text box
    stays inside [0, width - text_w] x [0, height - text_h]. Only positions rotate;
    glyphs are drawn upright.
    """
    margin_x = MARGIN_RATIO * width
    margin_y = MARGIN_RATIO * height
    usable_w = width - 2 * margin_x
    usable_h = height - 2 * margin_y
    cx, cy = width / 2.0, height / 2.0

    theta = math.radians(spec.angle)
    cos_t, sin_t = math.cos(theta), math.sin(theta)

    placements: List[Placement] = []
    for rx, ry in spec.diagonal_anchors:
        ax = margin_x + rx * usable_w
        ay = margin_y + ry * usable_h
        dx, dy = ax - cx, ay - cy
        px = cx + (dx * cos_t - dy * sin_t)
        py = cy + (dx * sin_t + dy * cos_t)

        x = _clamp(int(round(px - text_w / 2.0)), width - text_w)
        y = _clamp(int(round(py - text_h / 2.0)), height - text_h)
        placements.append(Placement(kind="diagonal", x=x, y=y, width=text_w, height=text_h))

    corner_x = max(0, width - text_w - spec.corner_padding)
    corner_y = max(0, height - text_h - spec.corner_padding)
    placements.append(Placement(kind="corner", x=corner_x, y=corner_y, width=text_w, height=text_h))
    return placements


def burn(pixels: np.ndarray, coverage: np.ndarray, x: int, y: int, color: Tuple[int, int, int], opacity: float) -> None:
    """Alpha-blend `color` through `coverage` into `pixels` (H, W, 3|4 uint8) in place."""
    if opacity <= 0.0:
        return
    img_h, img_w = pixels.shape[:2]
    mask_h, mask_w = coverage.shape

    x0, y0 = max(x, 0), max(y, 0)
    x1, y1 = min(x + mask_w, img_w), min(y + mask_h, img_h)
    if x1 <= x0 or y1 <= y0:
        return

    alpha = coverage[y0 - y:y1 - y, x0 - x:x1 - x, None] * np.float32(opacity)
    region = pixels[y0:y1, x0:x1, :3].astype(np.float32)
    blended = region * (1.0 - alpha) + np.asarray(color, dtype=np.float32) * alpha
    pixels[y0:y1, x0:x1, :3] = np.clip(np.rint(blended), 0, 255).astype(np.uint8)

    if pixels.shape[2] == 4:
        # make the text visible over transparent areas
        current = pixels[y0:y1, x0:x1, 3].astype(np.float32)
        pixels[y0:y1, x0:x1, 3] = np.maximum(current, np.rint(alpha[..., 0] * 255.0)).astype(np.uint8)


class WatermarkEngine:
    """Burns the fixed 8-instance watermark into an encoded image.

    Stateless: safe to call concurrently for different images.
    """

    def __init__(self, spec: Optional[WatermarkSpec] = None):
        self.spec = spec or WatermarkSpec()

    def layout(self, width: int, height: int, spec: Optional[WatermarkSpec] = None) -> List[Placement]:
        spec = spec or self.spec
        coverage = render_text_mask(spec.text, font_size_for(width, height))
        text_h, text_w = coverage.shape
        return compute_layout(width, height, text_w, text_h, spec)

    def apply(self, image: ImageBuffer, spec: Optional[WatermarkSpec] = None) -> ImageBuffer:
        """Return a new buffer with the watermark burned in, re-encoded in the source format.

        Raises DecodeError when the bytes cannot be decoded or the format cannot be
        encoded; the input buffer is never modified.
        """
        spec = spec or self.spec
        source = ImageUtil.open(image.data, expected=image.format)
        working = ImageUtil.to_working_mode(source)
        width, height = working.size

        coverage = render_text_mask(spec.text, font_size_for(width, height))
        text_h, text_w = coverage.shape
        placements = compute_layout(width, height, text_w, text_h, spec)

        pixels = np.array(working, dtype=np.uint8)
        for placement in placements:
            burn(pixels, coverage, placement.x, placement.y, spec.color, spec.opacity)

        data = ImageUtil.encode(Image.fromarray(pixels), image.format)
        logger.debug(
            "watermark applied",
            format=image.format.value,
            width=width,
            height=height,
            burns=len(placements),
            font_px=text_h,
        )
        return ImageBuffer(data=data, width=width, height=height, format=image.format)


class WatermarkEngineFactory:
    @staticmethod
    def load_default_watermark_engine() -> WatermarkEngine:
        return WatermarkEngine(WatermarkSpec())
