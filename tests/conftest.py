import pytest
import numpy as np
from pathlib import Path
import tempfile

from angio_lib.core.types import ProjectionAngles
from angio_lib.api.workflow import ImageCapture


def draw_vessel(image, start, end, value=0, half_width=1):
    """Draw a straight dark vessel of width ``2*half_width + 1`` pixels."""
    (x0, y0), (x1, y1) = start, end
    n = int(np.ceil(np.hypot(x1 - x0, y1 - y0))) * 2 + 1
    for t in np.linspace(0.0, 1.0, n):
        x = int(round(x0 + t * (x1 - x0)))
        y = int(round(y0 + t * (y1 - y0)))
        image[y - half_width:y + half_width + 1, x - half_width:x + half_width + 1] = value
    return image


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def bifurcation_image():
    """White 200x200 frame with a dark Y-shaped bifurcation at (100, 100)."""
    image = np.full((200, 200), 255, dtype=np.uint8)
    draw_vessel(image, (100, 20), (100, 100))
    draw_vessel(image, (100, 100), (160, 160))
    draw_vessel(image, (100, 100), (40, 160))
    return image


@pytest.fixture
def bifurcation_seeds():
    """Seeds placed on the vessels of ``bifurcation_image``."""
    return {
        "main": [(100, 20), (100, 100)],
        "branch1": [(100, 100), (160, 160)],
        "branch2": [(100, 100), (40, 160)],
    }


@pytest.fixture
def two_captures(bifurcation_image, bifurcation_seeds):
    """The same bifurcation captured at 30 RAO and 30 LAO."""
    return (
        ImageCapture(bifurcation_image, ProjectionAngles(30.0, 0.0), bifurcation_seeds),
        ImageCapture(bifurcation_image.copy(), ProjectionAngles(-30.0, 0.0), bifurcation_seeds),
    )
