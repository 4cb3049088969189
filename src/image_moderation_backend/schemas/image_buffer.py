from pydantic import BaseModel, ConfigDict, Field
from enum import Enum

class ImageFormat(str, Enum):
    JPEG = "JPEG"
    PNG = "PNG"
    WEBP = "WEBP"

    @property
    def content_type(self) -> str:
        return f"image/{self.value.lower()}"

class ImageBuffer(BaseModel):
    """Encoded image bytes with their decoded geometry and format tag."""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False)
    width: int = Field(..., ge=1)
    height: int = Field(..., ge=1)
    format: ImageFormat
