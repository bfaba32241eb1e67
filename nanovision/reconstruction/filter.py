"""
Reconstruction Filter
Median-based unsharp sharpening of interior pixels
"""

import logging

import cv2
import numpy as np

from nanovision.constants import MEDIAN_KERNEL, SHARPEN_CENTER_WEIGHT, SHARPEN_MEDIAN_WEIGHT
from nanovision.features.extractor import check_rgba

logger = logging.getLogger(__name__)


class ReconstructionFilter:
    """
    Sharpens each colour channel against its 3x3 median.

    For interior pixels: round(clamp(center * 1.45 - median * 0.45, 0, 255)).
    Alpha and the outermost 1-pixel ring are copied unchanged; there is no
    edge extrapolation.
    """

    def __init__(self, center_weight: float = SHARPEN_CENTER_WEIGHT,
                 median_weight: float = SHARPEN_MEDIAN_WEIGHT):
        self.center_weight = center_weight
        self.median_weight = median_weight

    def apply(self, rgba: np.ndarray) -> np.ndarray:
        """Return a new sharpened RGBA8 array; the input is not modified."""
        rgba = check_rgba(rgba)
        out = np.array(rgba, dtype=np.uint8, copy=True)

        color = np.ascontiguousarray(rgba[:, :, :3])
        # Per-channel median of the 3x3 neighborhood (rank 4 of 9)
        median = cv2.medianBlur(color, MEDIAN_KERNEL)

        center = color[1:-1, 1:-1].astype(np.float64)
        med = median[1:-1, 1:-1].astype(np.float64)
        sharpened = center * self.center_weight - med * self.median_weight

        out[1:-1, 1:-1, :3] = round_half_up_pixels(np.clip(sharpened, 0, 255)).astype(np.uint8)

        logger.debug("Reconstructed %dx%d image", rgba.shape[1], rgba.shape[0])
        return out


def round_half_up_pixels(values: np.ndarray) -> np.ndarray:
    """
    Round non-negative values half up, elementwise.

    Compares the exact fractional part against 0.5, so values just below a
    tie (0.49999999999999994) round down where floor(x + 0.5) would not.
    """
    floored = np.floor(values)
    return floored + (values - floored >= 0.5)
