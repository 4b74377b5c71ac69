"""
Tests for composer.output.zip_writer

Test Coverage:
- write_composites_zip(): layout, suffix handling, pre-encoded entries
- write_job_package(): composite plus source files, missing sources
"""

import zipfile
from io import BytesIO

import pytest
from PIL import Image

from compai.core.models import CompositionJob, Rect, SlotAssignment, SourceImage
from compai.composer.output.zip_writer import (
    source_arcname,
    write_composites_zip,
    write_job_package,
)


class TestWriteCompositesZip:

    def test_layout(self, tmp_path, solid_image):
        # Arrange
        surfaces = [solid_image("red"), solid_image("green"), solid_image("blue")]

        # Act
        path = write_composites_zip(surfaces, tmp_path / "out" / "composites.zip")

        # Assert
        with zipfile.ZipFile(path) as zf:
            assert zf.namelist() == ["composite_1.jpg", "composite_2.jpg", "composite_3.jpg"]
            img = Image.open(BytesIO(zf.read("composite_2.jpg")))
            assert img.format == "JPEG"
            assert img.size == (400, 300)

    def test_appends_zip_suffix(self, tmp_path, solid_image):
        path = write_composites_zip([solid_image("red")], tmp_path / "composites")

        assert path.name == "composites.zip"
        assert path.exists()

    def test_accepts_encoded_bytes(self, tmp_path):
        path = write_composites_zip([b"\xff\xd8already-encoded"], tmp_path / "c.zip")

        with zipfile.ZipFile(path) as zf:
            assert zf.read("composite_1.jpg") == b"\xff\xd8already-encoded"


class TestWriteJobPackage:

    @pytest.fixture
    def sources(self, tmp_path):
        hero_path = tmp_path / "house.PNG"
        Image.new("RGB", (40, 30), "red").save(hero_path, format="PNG")
        detail_path = tmp_path / "kitchen.jpeg"
        Image.new("RGB", (40, 30), "blue").save(detail_path, format="JPEG")
        return {
            "h": SourceImage("h", 40, 30, source_path=hero_path),
            "k": SourceImage("k", 40, 30, source_path=detail_path),
            "mem": SourceImage("mem", 40, 30),
        }

    def test_package_layout(self, tmp_path, sources, solid_image):
        # Arrange
        crop = Rect(0, 0, 30, 30)
        job = CompositionJob(
            "job-abc-0", "hero-left", 1.0,
            (SlotAssignment("hero", "h", crop), SlotAssignment("d1", "k", crop)),
        )

        # Act
        path = write_job_package(job, solid_image("white"), sources, tmp_path / f"package_{job.id}.zip")

        # Assert
        with zipfile.ZipFile(path) as zf:
            assert sorted(zf.namelist()) == [
                "composite_result.jpg",
                "source_images/slot_1_hero.png",
                "source_images/slot_2_d1.jpeg",
            ]
            assert zf.read("source_images/slot_1_hero.png") == sources["h"].source_path.read_bytes()

    def test_sources_without_files_are_skipped(self, tmp_path, sources, solid_image, caplog):
        crop = Rect(0, 0, 30, 30)
        job = CompositionJob(
            "j", "t", 1.0,
            (SlotAssignment("a", "mem", crop), SlotAssignment("b", "k", crop)),
        )

        path = write_job_package(job, solid_image("white"), sources, tmp_path / "p.zip")

        with zipfile.ZipFile(path) as zf:
            assert sorted(zf.namelist()) == ["composite_result.jpg", "source_images/slot_2_b.jpeg"]
        assert "mem" in caplog.text

    def test_deleted_source_file_is_skipped(self, tmp_path, sources, solid_image):
        sources["h"].source_path.unlink()
        job = CompositionJob("j", "t", 1.0, (SlotAssignment("hero", "h", Rect(0, 0, 1, 1)),))

        path = write_job_package(job, solid_image("white"), sources, tmp_path / "p.zip")

        with zipfile.ZipFile(path) as zf:
            assert zf.namelist() == ["composite_result.jpg"]


def test_source_arcname_defaults_to_jpg():
    assert source_arcname(2, "s3", SourceImage("a", 1, 1)) == "source_images/slot_3_s3.jpg"
