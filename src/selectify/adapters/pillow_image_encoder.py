"""Image re-encoding for uploaded photos."""

import io
from dataclasses import dataclass
from typing import Protocol

from PIL import Image, ImageOps, UnidentifiedImageError

from selectify.domain.errors import ValidationError


class ImageEncoder(Protocol):
    """Interface for shrinking uploaded images before storage."""

    def encode(self, content: bytes) -> bytes:
        """Return a smaller representation of the image."""


@dataclass
class PillowJpegEncoder(ImageEncoder):
    """Re-encodes any Pillow-readable image as a low-quality JPEG."""

    quality: int = 20

    def encode(self, content: bytes) -> bytes:
        """Apply EXIF orientation and save as RGB JPEG."""
        try:
            with Image.open(io.BytesIO(content)) as image:
                oriented = ImageOps.exif_transpose(image)
                rgb = oriented.convert("RGB")
        except (UnidentifiedImageError, OSError) as exc:
            raise ValidationError("Uploaded file is not a readable image") from exc
        buffer = io.BytesIO()
        rgb.save(buffer, format="JPEG", quality=self.quality)
        return buffer.getvalue()
