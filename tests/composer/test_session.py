"""
Tests for composer.session

Test Coverage:
- Fixed image upload and analysis
- Variable pool ceiling and decode failures
- Removal, clearing and reset
- can_generate threshold
"""

from unittest.mock import MagicMock

import pytest

from compai.core.models import ImageCategory, Point
from compai.composer.images.analysis import AnalysisResult
from compai.composer.images.provider import ImageDecodeError
from compai.composer.session import ImageSession

HOUSE = AnalysisResult(Point(0.3, 0.4), ImageCategory.HOUSE, "Two storey brick house")


@pytest.fixture
def analyzer():
    return MagicMock(return_value=HOUSE)


@pytest.fixture
def session(analyzer):
    with ImageSession(analyzer=analyzer) as s:
        yield s


class TestFixedImage:

    def test_set_fixed_applies_analysis(self, session, analyzer, photo_files):
        # Act
        fixed = session.set_fixed(photo_files[0])

        # Assert
        analyzer.assert_called_once_with(photo_files[0].read_bytes())
        assert fixed.category == ImageCategory.HOUSE
        assert fixed.focal_point == Point(0.3, 0.4)
        assert fixed.source_path == photo_files[0]
        assert session.fixed_image == fixed
        assert fixed.id in session.images

    def test_set_fixed_without_analysis(self, session, analyzer, photo_files):
        fixed = session.set_fixed(photo_files[0], analyze=False)

        analyzer.assert_not_called()
        assert fixed.category == ImageCategory.OTHER

    def test_replacing_fixed_releases_previous(self, session, photo_files):
        first = session.set_fixed(photo_files[0])
        second = session.set_fixed(photo_files[1])

        assert session.fixed_image == second
        assert first.id not in session.images

    def test_undecodable_fixed_raises(self, session, tmp_path):
        bad = tmp_path / "bad.jpg"
        bad.write_text("not an image")

        with pytest.raises(ImageDecodeError):
            session.set_fixed(bad)
        assert session.fixed_image is None

    def test_missing_fixed_raises(self, session, tmp_path):
        with pytest.raises(ImageDecodeError):
            session.set_fixed(tmp_path / "missing.jpg")


class TestVariablePool:

    def test_add_variable(self, session, photo_files):
        update = session.add_variable(photo_files[:3])

        assert len(update.added) == 3
        assert update.failures == ()
        assert update.dropped == 0
        assert update.notice is None
        assert [img.source_path for img in session.pool] == photo_files[:3]

    def test_ceiling_keeps_first_images(self, analyzer, photo_files):
        with ImageSession(pool_ceiling=2, analyzer=analyzer) as session:
            update = session.add_variable(photo_files)

            assert update.dropped == 3
            assert "limited to 2" in update.notice
            assert [img.source_path for img in session.pool] == photo_files[:2]

    def test_ceiling_counts_existing_pool(self, analyzer, photo_files):
        with ImageSession(pool_ceiling=3, analyzer=analyzer) as session:
            session.add_variable(photo_files[:2])
            update = session.add_variable(photo_files[2:])

            assert len(update.added) == 1
            assert update.dropped == 1

    def test_decode_failure_is_reported_not_raised(self, session, photo_files, tmp_path):
        bad = tmp_path / "broken.jpg"
        bad.write_bytes(b"\x00" * 10)

        update = session.add_variable([photo_files[0], bad, photo_files[1]])

        assert len(update.added) == 2
        assert len(update.failures) == 1
        assert update.failures[0][0] == str(bad)

    def test_invalid_ceiling_raises(self):
        with pytest.raises(ValueError):
            ImageSession(pool_ceiling=0)


class TestSessionViews:

    def test_all_images_fixed_first(self, session, photo_files):
        session.add_variable(photo_files[1:3])
        fixed = session.set_fixed(photo_files[0])

        assert session.all_images[0] == fixed
        assert session.all_images[1:] == session.pool

    @pytest.mark.parametrize("pool_size,with_fixed,expected", [
        (2, False, False),
        (3, False, True),
        (2, True, True),
        (1, True, False),
    ])
    def test_can_generate(self, session, photo_files, pool_size, with_fixed, expected):
        if with_fixed:
            session.set_fixed(photo_files[4])
        session.add_variable(photo_files[:pool_size])

        assert session.can_generate is expected

    def test_sources_lookup(self, session, photo_files):
        session.add_variable(photo_files[:2])

        assert set(session.sources) == {img.id for img in session.pool}


class TestRemoval:

    def test_remove_pool_image(self, session, photo_files):
        update = session.add_variable(photo_files[:3])
        victim = update.added[1]

        assert session.remove(victim.id) is True
        assert victim not in session.pool
        assert victim.id not in session.images

    def test_remove_fixed_image(self, session, photo_files):
        fixed = session.set_fixed(photo_files[0])

        assert session.remove(fixed.id) is True
        assert session.fixed_image is None

    def test_remove_unknown(self, session):
        assert session.remove("nope") is False

    def test_clear_variable_keeps_fixed(self, session, photo_files):
        fixed = session.set_fixed(photo_files[0])
        session.add_variable(photo_files[1:])

        session.clear_variable()

        assert session.pool == ()
        assert list(session.images) == [fixed.id]

    def test_reset(self, session, photo_files):
        session.set_fixed(photo_files[0])
        session.add_variable(photo_files[1:])

        session.reset()

        assert session.all_images == ()
        assert len(session.images) == 0
