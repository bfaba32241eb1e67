"""Synthetic image builders used across the test modules."""
import io

import numpy as np
from PIL import Image


def solid_rgba(width, height, color=(128, 128, 128, 255)):
    img = np.empty((height, width, 4), dtype=np.uint8)
    img[:, :] = color
    return img


def checkerboard_rgba(width, height, block=2):
    """Black/white checkerboard of block x block squares, opaque."""
    ys, xs = np.mgrid[0:height, 0:width]
    white = ((xs // block + ys // block) % 2).astype(bool)
    img = np.zeros((height, width, 4), dtype=np.uint8)
    img[white, :3] = 255
    img[:, :, 3] = 255
    return img


def encode(rgba, fmt="PNG"):
    buf = io.BytesIO()
    image = Image.fromarray(rgba, "RGBA")
    if fmt == "JPEG":
        image = image.convert("RGB")
    image.save(buf, fmt)
    return buf.getvalue()


def decode_png(data):
    with Image.open(io.BytesIO(data)) as img:
        return np.array(img.convert("RGBA"))
