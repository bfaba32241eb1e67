"""
Feature Extractor
Global pixel statistics used to characterize a microscopy image
"""

import logging
import math
from typing import Tuple

import cv2
import numpy as np

from nanovision.constants import (
    BRIGHT_THRESHOLD, EDGE_THRESHOLD, LUMA_WEIGHTS, PARTICLE_BIN_LABELS, PARTICLE_BIN_LIMITS
)
from nanovision.models import ParticleBin, PixelFeatures
from nanovision.utils import clamp, round_half_up

logger = logging.getLogger(__name__)


def check_rgba(rgba: np.ndarray) -> np.ndarray:
    """Validate an RGBA8 buffer of at least 3x3 pixels."""
    rgba = np.asarray(rgba)
    if rgba.ndim != 3 or rgba.shape[2] != 4:
        raise ValueError(f"Expected an (H, W, 4) RGBA array, got shape {rgba.shape}")
    if rgba.dtype != np.uint8:
        raise ValueError(f"Expected uint8 pixels, got {rgba.dtype}")
    h, w = rgba.shape[:2]
    if h < 3 or w < 3:
        raise ValueError(f"Image too small for 3x3 neighborhoods: {w}x{h}")
    return rgba


def to_grayscale(rgba: np.ndarray) -> np.ndarray:
    """
    Luma (0.299 R + 0.587 G + 0.114 B), summed in float64 and stored as float32.

    Storing in float32 drops the last-digit noise of the weighted sum, so a
    25-level step gives a Sobel magnitude of exactly 100.
    """
    wr, wg, wb = LUMA_WEIGHTS
    gray = (rgba[:, :, 0].astype(np.float64) * wr
            + rgba[:, :, 1].astype(np.float64) * wg
            + rgba[:, :, 2].astype(np.float64) * wb)
    return gray.astype(np.float32)


class FeatureExtractor:
    """Computes PixelFeatures from an RGBA8 buffer."""

    def __init__(self, bright_threshold: float = BRIGHT_THRESHOLD,
                 edge_threshold: float = EDGE_THRESHOLD):
        self.bright_threshold = bright_threshold
        self.edge_threshold = edge_threshold

    def extract(self, rgba: np.ndarray) -> PixelFeatures:
        """Run all statistics on one image."""
        rgba = check_rgba(rgba)
        h, w = rgba.shape[:2]
        gray = to_grayscale(rgba)

        total = gray.size
        # Exactly rounded sum keeps the mean of a uniform image equal to its value
        mean_intensity = math.fsum(gray.ravel()) / total
        bright_pixel_ratio = float(np.count_nonzero(gray > self.bright_threshold) / total)

        edge_density, contrast = self._interior_statistics(gray, mean_intensity)

        features = PixelFeatures(
            mean_intensity=mean_intensity,
            contrast=contrast,
            edge_density=edge_density,
            bright_pixel_ratio=bright_pixel_ratio,
            particle_bins=particle_bins(contrast, edge_density, bright_pixel_ratio),
        )
        logger.debug("Features for %dx%d image: mean=%.2f contrast=%.4f edges=%.4f bright=%.4f",
                     w, h, mean_intensity, contrast, edge_density, bright_pixel_ratio)
        return features

    def _interior_statistics(self, gray: np.ndarray, mean_intensity: float) -> Tuple[float, float]:
        """
        Sobel edge density and contrast over the interior (1-pixel border excluded).

        Contrast is the std of interior gray values around the mean of ALL
        pixels, normalized by 255.
        """
        h, w = gray.shape
        interior = (w - 2) * (h - 2)

        # Only interior outputs are used, so the border mode does not matter
        gx = cv2.Sobel(gray, cv2.CV_64F, 1, 0, ksize=3)[1:-1, 1:-1]
        gy = cv2.Sobel(gray, cv2.CV_64F, 0, 1, ksize=3)[1:-1, 1:-1]
        magnitude = np.sqrt(gx ** 2 + gy ** 2)
        edge_density = float(np.count_nonzero(magnitude > self.edge_threshold) / interior)

        diff = gray[1:-1, 1:-1].astype(np.float64) - mean_intensity
        variance = float(np.sum(diff * diff))
        contrast = float(np.sqrt(variance / interior) / 255)

        return edge_density, contrast


def particle_bins(contrast: float, edge_density: float,
                  bright_pixel_ratio: float) -> Tuple[ParticleBin, ...]:
    """
    Approximate particle-size histogram from global statistics.

    The 100-200 bucket is built from the unclamped small and medium counts.
    """
    small = round_half_up(bright_pixel_ratio * 350 + edge_density * 90)
    medium = round_half_up(contrast * 420 + bright_pixel_ratio * 220)
    large = round_half_up((1 - edge_density) * 65 + contrast * 120)

    raw = (
        small,
        medium,
        round_half_up((small + medium) * 0.58),
        large,
        round_half_up(large * 0.42),
        round_half_up(large * 0.2),
    )
    return tuple(
        ParticleBin(label, int(clamp(count, *PARTICLE_BIN_LIMITS[label])))
        for label, count in zip(PARTICLE_BIN_LABELS, raw)
    )
