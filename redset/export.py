"""
export.py — Bundle finished images into a ZIP file.

    redset_images.zip
      redset_images/
        01_Cover_Hero.jpg
        02_Product_Hero.jpg
        ...

File names are the zero-padded plan order plus the role, with every
character other than ASCII letters, digits and CJK ideographs replaced
by an underscore.
"""

from __future__ import annotations

import io
import logging
import re
import zipfile
from pathlib import Path
from typing import Iterable

from PIL import Image

from .models import GeneratedImage

logger = logging.getLogger(__name__)

ZIP_NAME = "redset_images.zip"
FOLDER = "redset_images"
JPEG_QUALITY = 95

_UNSAFE_RE = re.compile(r"[^A-Za-z0-9一-龥]")


def export_filename(order: int, role: str) -> str:
    return f"{order:02d}_{_UNSAFE_RE.sub('_', role)}.jpg"


def to_jpeg(data: bytes, mime_type: str) -> bytes:
    """Re-encode as JPEG. Bytes Pillow cannot read are returned unchanged."""
    if mime_type in ("image/jpeg", "image/jpg"):
        return data
    try:
        with Image.open(io.BytesIO(data)) as img:
            buf = io.BytesIO()
            img.convert("RGB").save(buf, format="JPEG", quality=JPEG_QUALITY)
            return buf.getvalue()
    except Exception as e:
        logger.warning(f"Could not re-encode {mime_type} image as JPEG ({e}); storing original bytes")
        return data


def create_export_zip(images: Iterable[GeneratedImage], output_dir: Path) -> Path:
    """
    Write every completed image into `output_dir/redset_images.zip`.

    Returns:
        Path to the ZIP file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    zip_path = output_dir / ZIP_NAME
    count = 0
    with zipfile.ZipFile(zip_path, "w", zipfile.ZIP_DEFLATED) as zf:
        for img in images:
            if not img.is_completed:
                logger.warning(f"Skipping item {img.plan_item.order} ({img.plan_item.role}): not completed")
                continue
            name = export_filename(img.plan_item.order, img.plan_item.role)
            zf.writestr(f"{FOLDER}/{name}", to_jpeg(img.image_bytes, img.mime_type))
            count += 1

    logger.info(f"Export ZIP: {zip_path} ({count} image(s), {zip_path.stat().st_size // 1024}KB)")
    return zip_path
