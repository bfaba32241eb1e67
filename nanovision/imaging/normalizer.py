"""
Image Normalizer
Decodes input images and resamples them to the pipeline's working size
"""

import io
import logging
from pathlib import Path
from typing import Tuple, Union

import cv2
import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from nanovision.constants import MAX_SIDE, MIN_SIDE
from nanovision.utils import round_half_up

logger = logging.getLogger(__name__)


class DecodeError(ValueError):
    """Input could not be decoded, or no pixel surface could be allocated."""


WIDE_INTEGER_MODES = ("I", "I;16", "I;16L", "I;16B", "I;16N")


def to_8bit(img: Image.Image) -> Image.Image:
    """
    Scale 16-bit grayscale down to 8 bits by dropping the low byte.

    Pillow's own conversion of these modes clips at 255 instead of scaling.
    """
    if img.mode not in WIDE_INTEGER_MODES:
        return img
    wide = np.clip(np.asarray(img).astype(np.int64), 0, 65535)
    return Image.fromarray((wide >> 8).astype(np.uint8))


class ImageNormalizer:
    """Turns raw image bytes into an RGBA8 array at the working size."""

    def __init__(self, max_side: int = MAX_SIDE, min_side: int = MIN_SIDE):
        if min_side < 3 or max_side < min_side:
            raise ValueError(f"Invalid working size bounds: min={min_side}, max={max_side}")
        self.max_side = max_side
        self.min_side = min_side

    def target_size(self, width: int, height: int) -> Tuple[int, int]:
        """
        Working size for a width x height image.

        Downsamples only (scale never exceeds 1) so the longer side fits
        max_side, then floors each side at min_side.
        """
        if width <= 0 or height <= 0:
            raise DecodeError(f"Image has empty dimensions: {width}x{height}")
        scale = min(1.0, self.max_side / max(width, height))
        out_w = max(self.min_side, round_half_up(width * scale))
        out_h = max(self.min_side, round_half_up(height * scale))
        return out_w, out_h

    def decode(self, data: bytes) -> np.ndarray:
        """Decode image bytes (any format Pillow reads) into a full-size RGBA array."""
        if not data:
            raise DecodeError("Could not decode image: input is empty")
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                upright = ImageOps.exif_transpose(img)
                rgba = np.array(to_8bit(upright).convert("RGBA"), dtype=np.uint8)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError,
                SyntaxError, ValueError, EOFError) as e:
            raise DecodeError(f"Could not decode image: {e}") from e
        except MemoryError as e:
            raise DecodeError("Could not allocate a pixel surface for the image") from e
        return rgba

    def resample(self, rgba: np.ndarray) -> np.ndarray:
        """Resize an RGBA array to the working size."""
        h, w = rgba.shape[:2]
        out_w, out_h = self.target_size(w, h)
        if (out_w, out_h) == (w, h):
            return rgba.copy()

        # Area averaging when shrinking, bilinear when the floor forces growth
        if out_w * out_h < w * h:
            interpolation = cv2.INTER_AREA
        else:
            interpolation = cv2.INTER_LINEAR
        try:
            resized = cv2.resize(rgba, (out_w, out_h), interpolation=interpolation)
        except (cv2.error, MemoryError) as e:
            raise DecodeError(f"Could not allocate a {out_w}x{out_h} pixel surface: {e}") from e
        logger.debug("Resampled %dx%d -> %dx%d", w, h, out_w, out_h)
        return resized

    def load_bytes(self, data: bytes) -> np.ndarray:
        """Decode and resample; the only pipeline step that can fail."""
        return self.resample(self.decode(data))

    def load_file(self, path: Union[str, Path]) -> np.ndarray:
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            raise DecodeError(f"Could not load image: {path}") from e
        return self.load_bytes(data)


def encode_png(rgba: np.ndarray) -> bytes:
    """Losslessly encode an RGBA8 array as PNG."""
    bgra = cv2.cvtColor(np.ascontiguousarray(rgba), cv2.COLOR_RGBA2BGRA)
    ok, buf = cv2.imencode(".png", bgra)
    if not ok:
        raise ValueError("PNG encoding failed")
    return buf.tobytes()
