"""
Grayscale and vessel-intensity fields.

Images are ``(H, W)`` grayscale or ``(H, W, 3|4)`` RGB(A) arrays with values in
``[0, 255]``. Fields returned here are float64 ``(H, W)`` arrays indexed
``[y, x]``.
"""

import numpy as np

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """
    Convert an image to a float grayscale field.

    RGB(A) input uses the luma weights 0.299/0.587/0.114 (alpha is ignored).
    Grayscale input is returned as a float copy.
    """
    arr = np.asarray(image)
    if arr.ndim == 2:
        return arr.astype(float)
    if arr.ndim == 3 and arr.shape[2] in (3, 4):
        return arr[..., :3].astype(float) @ LUMA_WEIGHTS
    raise ValueError(f"Expected (H, W) or (H, W, 3|4) image, got shape {arr.shape}")


def create_intensity_map(image: np.ndarray) -> np.ndarray:
    """Inverted grayscale (``255 - gray``) so contrast-filled vessels are bright."""
    return 255.0 - to_grayscale(image)


def sample_intensity(field: np.ndarray, x: float, y: float) -> float:
    """
    Bilinear sample of ``field`` at sub-pixel ``(x, y)``.

    Returns 0 when the sample footprint leaves the image.
    """
    height, width = field.shape
    x1 = int(np.floor(x))
    y1 = int(np.floor(y))
    if x1 < 0 or y1 < 0 or x1 >= width or y1 >= height:
        return 0.0
    x2 = min(x1 + 1, width - 1)
    y2 = min(y1 + 1, height - 1)

    fx = x - x1
    fy = y - y1
    top = field[y1, x1] * (1 - fx) + field[y1, x2] * fx
    bottom = field[y2, x1] * (1 - fx) + field[y2, x2] * fx
    return float(top * (1 - fy) + bottom * fy)
