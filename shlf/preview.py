"""Preview-image generation for thumbnails.

Pillow is imported on first use so listing a directory never pays for it.
"""

from __future__ import annotations

import io
from pathlib import Path

DEFAULT_THUMBNAIL_SIZE = (192, 192)


def generate_preview(path: Path, target_size: tuple[int, int] = DEFAULT_THUMBNAIL_SIZE) -> bytes:
    """Return PNG bytes of ``path`` scaled to fit ``target_size``.

    Raises whatever Pillow raises for missing, unsupported, or corrupt files;
    the thumbnail cache treats any exception as "no thumbnail".
    """
    from PIL import Image, ImageOps

    with Image.open(path) as image:
        image = ImageOps.exif_transpose(image)
        image.thumbnail(target_size)
        if image.mode not in ("RGB", "RGBA", "L", "LA"):
            image = image.convert("RGBA")
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
    return buffer.getvalue()


__all__ = [
    "DEFAULT_THUMBNAIL_SIZE",
    "generate_preview",
]
