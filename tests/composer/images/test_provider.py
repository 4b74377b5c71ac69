"""
Tests for composer.images.provider

Test Coverage:
- decode_image(): paths, bytes, streams, EXIF orientation, failures
- ImageTable: add/remove/close lifecycle
"""

from unittest.mock import MagicMock

import pytest
from PIL import Image

from compai.composer.images.provider import (
    ImageDecodeError,
    ImageTable,
    decode_image,
    new_image_id,
)


class TestDecodeImage:

    def test_decode_from_path(self, sample_image):
        # Act
        meta, img = decode_image(sample_image)

        # Assert
        assert (meta.width, meta.height) == (200, 100)
        assert img.size == (200, 100)
        assert img.mode == "RGB"
        assert meta.source_path == sample_image

    def test_decode_from_bytes(self, sample_image):
        meta, img = decode_image(sample_image.read_bytes(), image_id="fixed")

        assert meta.id == "fixed"
        assert meta.source_path is None
        assert img.size == (200, 100)

    def test_decode_from_stream(self, sample_image):
        with open(sample_image, "rb") as f:
            meta, _ = decode_image(f)

        assert meta.width == 200

    def test_palette_image_converted_to_rgb(self, tmp_path):
        path = tmp_path / "p.png"
        Image.new("P", (10, 10)).save(path)

        _, img = decode_image(path)

        assert img.mode == "RGB"

    def test_exif_orientation_applied(self, tmp_path):
        # Arrange: 200x100 stored, orientation 6 (rotate 90 on display)
        path = tmp_path / "rotated.jpg"
        exif = Image.Exif()
        exif[0x0112] = 6
        Image.new("RGB", (200, 100), "white").save(path, format="JPEG", exif=exif)

        # Act
        meta, img = decode_image(path)

        # Assert
        assert (meta.width, meta.height) == (100, 200)
        assert img.size == (100, 200)

    def test_not_an_image_raises(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")

        with pytest.raises(ImageDecodeError) as exc:
            decode_image(path)
        assert exc.value.source == str(path)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ImageDecodeError):
            decode_image(tmp_path / "missing.jpg")

    def test_garbage_bytes_raise(self):
        with pytest.raises(ImageDecodeError, match="bytes"):
            decode_image(b"\x00\x01\x02")

    def test_new_image_ids_are_unique(self):
        ids = {new_image_id() for _ in range(100)}

        assert len(ids) == 100
        assert all(i.startswith("img-") for i in ids)


class TestImageTable:

    def test_add_and_lookup(self, solid_image):
        table = ImageTable()
        img = solid_image("red")

        table.add("a", img)

        assert table["a"] is img
        assert len(table) == 1
        assert list(table) == ["a"]

    def test_remove_closes_image(self):
        table = ImageTable()
        img = MagicMock()
        table.add("a", img)

        assert table.remove("a") is True
        assert "a" not in table
        img.close.assert_called_once()

    def test_add_closes_replaced_image(self):
        table = ImageTable()
        old, new = MagicMock(), MagicMock()
        table.add("a", old)

        table.add("a", new)

        old.close.assert_called_once()
        new.close.assert_not_called()
        assert table["a"] is new

    def test_remove_unknown_returns_false(self):
        assert ImageTable().remove("nope") is False

    def test_snapshot_is_independent(self, solid_image):
        table = ImageTable()
        table.add("a", solid_image("red"))

        snap = table.snapshot()
        table.remove("a")

        assert "a" in snap

    def test_context_manager_closes_all(self, solid_image):
        with ImageTable() as table:
            table.add("a", solid_image("red"))
            table.add("b", solid_image("blue"))

        assert len(table) == 0
