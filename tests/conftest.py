import pytest
import sys
from pathlib import Path
from PIL import Image

# Add src to sys.path so we can import compai
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from compai.core.models import ImageCategory, Point, SourceImage  # noqa: E402


# Common test fixtures
@pytest.fixture
def make_source():
    """Factory for SourceImage metadata."""
    def _make(
        image_id: str,
        width: int = 400,
        height: int = 300,
        category: ImageCategory = ImageCategory.OTHER,
        focal: Point = None,
    ) -> SourceImage:
        return SourceImage(
            id=image_id,
            width=width,
            height=height,
            focal_point=focal or Point.center(),
            category=category,
        )
    return _make


@pytest.fixture
def solid_image():
    """Factory for solid-color RGB images."""
    def _make(color, size=(400, 300)) -> Image.Image:
        return Image.new("RGB", size, color=color)
    return _make


@pytest.fixture
def photo_files(tmp_path: Path):
    """Five small JPEG photos on disk, each a different color."""
    colors = ["red", "green", "blue", "yellow", "purple"]
    paths = []
    for i, color in enumerate(colors, start=1):
        path = tmp_path / f"photo_{i}.jpg"
        Image.new("RGB", (320, 240), color=color).save(path, format="JPEG")
        paths.append(path)
    return paths


@pytest.fixture
def sample_image(tmp_path: Path):
    """Create a simple test image."""
    img = Image.new("RGB", (200, 100), color="white")
    img_path = tmp_path / "sample.png"
    img.save(img_path)
    return img_path


@pytest.fixture(autouse=True)
def no_vision_model(monkeypatch):
    """Keep tests offline: no vision model unless a test sets one."""
    monkeypatch.delenv("COMPAI_VISION_MODEL", raising=False)
