"""Tests for ZIP export."""

import io
import zipfile

import pytest
from PIL import Image

from redset.export import create_export_zip, export_filename, to_jpeg
from redset.models import GeneratedImage, ImagePlanItem


def _image(order: int, role: str, data: bytes = None, mime: str = "image/png") -> GeneratedImage:
    img = GeneratedImage(plan_item=ImagePlanItem(order=order, role=role, description=""))
    if data is not None:
        img.complete(data, mime)
    return img


class TestExportFilename:
    @pytest.mark.parametrize(
        "order,role,expected",
        [
            (3, "Cover Hero!", "03_Cover_Hero_.jpg"),
            (1, "Title Slide", "01_Title_Slide.jpg"),
            (12, "封面", "12_封面.jpg"),
            (2, "Page 1 / 封面-B", "02_Page_1___封面_B.jpg"),
        ],
    )
    def test_sanitised_names(self, order, role, expected) -> None:
        assert export_filename(order, role) == expected


class TestToJpeg:
    def test_png_is_reencoded(self, png_bytes) -> None:
        out = to_jpeg(png_bytes, "image/png")

        with Image.open(io.BytesIO(out)) as img:
            assert img.format == "JPEG"
            assert img.size == (8, 12)

    def test_jpeg_passes_through(self) -> None:
        assert to_jpeg(b"already-jpeg", "image/jpeg") == b"already-jpeg"

    def test_undecodable_bytes_are_kept(self, caplog) -> None:
        assert to_jpeg(b"not an image", "image/png") == b"not an image"
        assert "storing original bytes" in caplog.text


class TestCreateExportZip:
    """Test suite for create_export_zip."""

    def test_zip_layout(self, tmp_path, png_bytes) -> None:
        images = [_image(1, "Cover Hero", png_bytes), _image(2, "Product Hero", png_bytes)]

        zip_path = create_export_zip(images, tmp_path / "out")

        assert zip_path == tmp_path / "out" / "redset_images.zip"
        with zipfile.ZipFile(zip_path) as zf:
            assert zf.namelist() == ["redset_images/01_Cover_Hero.jpg", "redset_images/02_Product_Hero.jpg"]
            assert zf.read("redset_images/01_Cover_Hero.jpg")[:2] == b"\xff\xd8"

    def test_incomplete_images_are_skipped(self, tmp_path, png_bytes) -> None:
        images = [_image(1, "Cover Hero", png_bytes), _image(2, "Product Hero")]

        zip_path = create_export_zip(images, tmp_path)

        with zipfile.ZipFile(zip_path) as zf:
            assert zf.namelist() == ["redset_images/01_Cover_Hero.jpg"]
