"""
Helpers for moving rectangular canvas regions between Pixel lists and
numpy arrays.

Arrays are uint8 with shape (height, width, 4) holding r, g, b, a, so they
can be handed straight to image libraries.
"""

from typing import List, Sequence

import numpy as np

from py2pixelflut.core.errors import InvalidArgumentError
from py2pixelflut.models.pixel import COORD_MAX, Pixel


def region_pixels(x: int, y: int, width: int, height: int) -> List[Pixel]:
    """
    Return one Pixel per coordinate of a rectangle, in row-major order.

    Raises:
        InvalidArgumentError: If the rectangle leaves the 16-bit coordinate space
    """
    if width < 0 or height < 0:
        raise InvalidArgumentError(f"Invalid region size: {width}x{height}")
    if x < 0 or y < 0 or x + width - 1 > COORD_MAX or y + height - 1 > COORD_MAX:
        raise InvalidArgumentError(
            f"Region {width}x{height} at ({x}, {y}) exceeds coordinate range"
        )
    ys, xs = np.mgrid[y:y + height, x:x + width]
    return [Pixel(int(px), int(py)) for py, px in zip(ys.ravel(), xs.ravel())]


def pixels_to_array(pixels: Sequence[Pixel], width: int, height: int) -> np.ndarray:
    """
    Pack a row-major list of width*height pixels into an RGBA array.
    """
    if len(pixels) != width * height:
        raise InvalidArgumentError(
            f"Expected {width * height} pixels for {width}x{height}, got {len(pixels)}"
        )
    flat = np.fromiter(
        (channel for px in pixels for channel in px.rgba),
        dtype=np.uint8,
        count=len(pixels) * 4
    )
    return flat.reshape(height, width, 4)


def array_to_pixels(array: np.ndarray, x: int = 0, y: int = 0) -> List[Pixel]:
    """
    Convert an (h, w, 3) or (h, w, 4) uint8 array into pixels placed at (x, y).

    RGB arrays produce opaque pixels.
    """
    array = np.asarray(array)
    if array.ndim != 3 or array.shape[2] not in (3, 4):
        raise InvalidArgumentError(f"Expected (h, w, 3|4) array, got shape {array.shape}")
    height, width = array.shape[:2]
    if array.shape[2] == 3:
        alpha = np.full((height, width, 1), 0xFF, dtype=np.uint8)
        array = np.concatenate([array.astype(np.uint8), alpha], axis=2)
    else:
        array = array.astype(np.uint8)

    pixels = region_pixels(x, y, width, height)
    for px, (r, g, b, a) in zip(pixels, array.reshape(-1, 4).tolist()):
        px.r, px.g, px.b, px.a = r, g, b, a
    return pixels


def invert_pixels(pixels: Sequence[Pixel]) -> Sequence[Pixel]:
    """Invert r, g and b of every pixel in place."""
    if not pixels:
        return pixels
    rgb = 0xFF - np.array([px.rgb for px in pixels], dtype=np.uint8)
    for px, (r, g, b) in zip(pixels, rgb.tolist()):
        px.r, px.g, px.b = r, g, b
    return pixels
