"""
Unbuffered canvas operations.

Each call issues one command and, for reads, waits for exactly one reply
line. This is simple but pays a full round trip per pixel; use
bulk_service for anything beyond a handful of pixels.

Every function closes the connection on I/O or protocol failure.
"""

import logging
from typing import Tuple

from py2pixelflut.core.errors import InvalidArgumentError, UnexpectedCoordsError
from py2pixelflut.core.framed_buffer import read_single_line
from py2pixelflut.core.protocol import (
    MIN_BUFFER_SIZE,
    SIZE_REQUEST,
    decode_pixel,
    decode_size,
    encode_get,
    encode_put,
)
from py2pixelflut.core.tcp_connection import PixelflutConnection
from py2pixelflut.models.pixel import Pixel

logger = logging.getLogger(__name__)


def _require_pixel(px: Pixel) -> None:
    if px is None:
        raise InvalidArgumentError("pixel must not be None", field_name='px')
    if not isinstance(px, Pixel):
        raise InvalidArgumentError(
            f"expected Pixel, got {type(px).__name__}", field_name='px'
        )
    px.validate()


def get_size(conn: PixelflutConnection) -> Tuple[int, int]:
    """
    Query the canvas size.

    Returns:
        (width, height)

    Raises:
        InvalidStateError: If the connection is not valid
        ProtocolError: If the reply is not "SIZE <w> <h>"
        TransportError: On I/O failure
    """
    conn.ensure_valid()
    with conn.teardown_on_failure():
        conn.write_all(SIZE_REQUEST)
        line = read_single_line(conn, bytearray(MIN_BUFFER_SIZE))
        width, height = decode_size(line)
    logger.debug(f"Canvas size is {width}x{height}")
    return width, height


def put_pixel(conn: PixelflutConnection, px: Pixel, use_alpha: bool = False) -> None:
    """
    Set a single pixel. No reply is expected.

    Args:
        conn: Open connection
        px: Pixel to write
        use_alpha: Send the alpha channel (8 hex digits instead of 6)
    """
    conn.ensure_valid()
    _require_pixel(px)
    line = encode_put(px, use_alpha)
    with conn.teardown_on_failure():
        conn.write_all(line)
    conn.num_pixels_written += 1


def get_pixel(conn: PixelflutConnection, px: Pixel) -> Pixel:
    """
    Read the color at px's coordinates into px.

    r, g and b are replaced with the canvas color and a is set to 0xFF.

    Returns:
        px, updated in place

    Raises:
        UnexpectedCoordsError: If the reply echoes different coordinates
        ProtocolError: If the reply is malformed
    """
    conn.ensure_valid()
    _require_pixel(px)
    with conn.teardown_on_failure():
        conn.write_all(encode_get(px))
        line = read_single_line(conn, bytearray(MIN_BUFFER_SIZE))
        x, y, r, g, b = decode_pixel(line)
        if (x, y) != (px.x, px.y):
            raise UnexpectedCoordsError(
                f"requested pixel ({px.x}, {px.y}) but server answered ({x}, {y})",
                expected=(px.x, px.y),
                received=(x, y)
            )
    px.set_rgb(r, g, b)
    conn.num_pixels_read += 1
    return px
