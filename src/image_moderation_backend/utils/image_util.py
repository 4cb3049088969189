import io
from typing import Optional

import numpy as np
from PIL import Image, UnidentifiedImageError, features

from image_moderation_backend.core.exceptions import DecodeError
from image_moderation_backend.schemas.image_buffer import ImageBuffer, ImageFormat

JPEG_QUALITY = 90
WEBP_QUALITY = 90
PNG_COMPRESS_LEVEL = 9  # max zlib compression, still lossless

_DECODE_ERRORS = (UnidentifiedImageError, OSError, ValueError, SyntaxError, Image.DecompressionBombError)


class ImageUtil:
    """Decode / encode helpers around Pillow for the supported upload formats."""

    @staticmethod
    def webp_supported() -> bool:
        return bool(features.check("webp"))

    @staticmethod
    def open(image_bytes: bytes, expected: Optional[ImageFormat] = None) -> Image.Image:
        """Fully decode bytes into a PIL image; raise DecodeError on anything unusable."""
        if not image_bytes:
            raise DecodeError("Empty image payload")
        try:
            img = Image.open(io.BytesIO(image_bytes))
            img.load()
        except _DECODE_ERRORS as exc:
            raise DecodeError(f"Could not decode image: {exc}") from exc

        actual = ImageUtil.format_of(img)
        if expected is not None and actual != expected:
            raise DecodeError(f"Image data is {actual.value}, expected {expected.value}")
        return img

    @staticmethod
    def format_of(img: Image.Image) -> ImageFormat:
        # multi-picture JPEGs from phone cameras open as MPO
        name = "JPEG" if img.format == "MPO" else img.format
        try:
            return ImageFormat(name)
        except ValueError as exc:
            raise DecodeError(f"Unsupported image format: {name}") from exc

    @staticmethod
    def to_buffer(image_bytes: bytes) -> ImageBuffer:
        img = ImageUtil.open(image_bytes)
        return ImageBuffer(data=image_bytes, width=img.width, height=img.height, format=ImageUtil.format_of(img))

    @staticmethod
    def has_alpha(img: Image.Image) -> bool:
        return img.mode in ("RGBA", "LA", "PA") or (img.mode == "P" and "transparency" in img.info)

    @staticmethod
    def to_working_mode(img: Image.Image) -> Image.Image:
        """RGBA when the source carries transparency, RGB otherwise."""
        return img.convert("RGBA" if ImageUtil.has_alpha(img) else "RGB")

    @staticmethod
    def encode(img: Image.Image, fmt: ImageFormat) -> bytes:
        buf = io.BytesIO()
        try:
            if fmt == ImageFormat.JPEG:
                img.convert("RGB").save(buf, format="JPEG", quality=JPEG_QUALITY)
            elif fmt == ImageFormat.PNG:
                img.save(buf, format="PNG", optimize=True, compress_level=PNG_COMPRESS_LEVEL)
            elif fmt == ImageFormat.WEBP:
                if not ImageUtil.webp_supported():
                    raise DecodeError("WEBP encoding is not available in this runtime")
                img.save(buf, format="WEBP", quality=WEBP_QUALITY)
            else:
                raise DecodeError(f"Unsupported output format: {fmt}")
        except (OSError, ValueError, KeyError) as exc:
            raise DecodeError(f"Could not encode {fmt.value}: {exc}") from exc
        return buf.getvalue()

    @staticmethod
    def grayscale_array(img: Image.Image) -> np.ndarray:
        # ITU-R 601 luma, same weights as PIL "L"
        return np.asarray(img.convert("L"), dtype=np.float64)
