"""
Buffered and pipelined bulk operations.

put_pixels() packs many set commands into the caller's buffer and writes
it out only when the next command would not fit.

get_pixels() pipelines read requests in batches. Writing every request
before reading any reply is fastest, but the replies then pile up in the
server's send buffer and well-behaved servers start throttling or dropping
requests once their own limit is hit. Reading each reply before the next
request is slow. Batching sits in between: at most ``batch_limit``
requests are in flight before their replies are drained and checked.

Shrinking the buffer does not bound the in-flight data; it only spreads
the same requests over more send() calls. batch_limit does.
"""

import logging
from typing import Sequence, Union

from py2pixelflut.core.errors import (
    InvalidArgumentError,
    ReadTooMuchError,
    UnexpectedCoordsError,
)
from py2pixelflut.core.framed_buffer import FramedBuffer
from py2pixelflut.core.protocol import decode_pixel, encode_get, encode_put
from py2pixelflut.core.tcp_connection import PixelflutConnection
from py2pixelflut.models.pixel import Pixel

logger = logging.getLogger(__name__)

Buffer = Union[bytearray, memoryview]


def _check_pixels(pixels: Sequence[Pixel]) -> None:
    if pixels is None:
        raise InvalidArgumentError("pixels must not be None", field_name='pixels')
    for i, px in enumerate(pixels):
        if not isinstance(px, Pixel):
            raise InvalidArgumentError(
                f"pixels[{i}] is {type(px).__name__}, expected Pixel",
                field_name='pixels'
            )
        px.validate()


def put_pixels(
    conn: PixelflutConnection,
    pixels: Sequence[Pixel],
    buffer: Buffer,
    use_alpha: bool = False
) -> None:
    """
    Write many pixels through an accumulation buffer.

    The buffer is flushed whenever the next command does not fit and once
    more at the end, so it is always empty when this returns. Throughput
    depends heavily on the buffer size.

    Args:
        conn: Open connection
        pixels: Pixels to write, sent in order
        buffer: Caller-owned storage, at least MIN_BUFFER_SIZE bytes
        use_alpha: Send alpha channels

    Raises:
        InvalidStateError: If the connection is not valid
        InvalidArgumentError: If pixels or buffer is missing or invalid
        BufferSizeError: If buffer is smaller than MIN_BUFFER_SIZE
        WriteError: If a flush fails (connection closed)
    """
    conn.ensure_valid()
    _check_pixels(pixels)
    out = FramedBuffer(buffer)

    with conn.teardown_on_failure():
        for px in pixels:
            out.append(conn, encode_put(px, use_alpha))
        out.flush(conn)

    conn.num_pixels_written += len(pixels)
    logger.debug(f"Wrote {len(pixels)} pixels")


def get_pixels(
    conn: PixelflutConnection,
    pixels: Sequence[Pixel],
    buffer: Buffer,
    batch_limit: int = 0
) -> Sequence[Pixel]:
    """
    Read many pixels with pipelined, batched requests.

    Requests use the x and y of each pixel; on success r, g and b are
    filled in and a is set to 0xFF. Both requests and replies go through
    ``buffer``.

    Args:
        conn: Open connection
        pixels: Pixels to read, updated in place
        buffer: Caller-owned storage, at least MIN_BUFFER_SIZE bytes
        batch_limit: Maximum requests in flight before their replies are
                     read. 0 sends everything before reading anything.

    Returns:
        pixels

    Raises:
        InvalidStateError: If the connection is not valid
        InvalidArgumentError: If an argument is missing or batch_limit < 0
        BufferSizeError: If buffer is smaller than MIN_BUFFER_SIZE
        UnexpectedCoordsError: If a reply does not match its request
        ReadTooMuchError: If the server sent more replies than requested
        ProtocolError: If a reply is malformed
        TransportError: On I/O failure

    On failure the connection is closed. Pixels whose replies were already
    processed keep their new colors; the rest are unchanged.
    """
    conn.ensure_valid()
    _check_pixels(pixels)
    if isinstance(batch_limit, bool) or not isinstance(batch_limit, int) or batch_limit < 0:
        raise InvalidArgumentError(
            f"batch_limit must be a non-negative integer, got {batch_limit!r}",
            field_name='batch_limit'
        )
    buf = FramedBuffer(buffer)

    count = len(pixels)
    with conn.teardown_on_failure():
        batch_start = 0
        for idx in range(count):
            buf.append(conn, encode_get(pixels[idx]))
            if batch_limit > 0 and idx + 1 - batch_start == batch_limit:
                _exchange_batch(conn, buf, pixels, batch_start, idx + 1)
                batch_start = idx + 1
                if batch_start < count:
                    _reuse_for_requests(buf)

        if batch_start < count:
            _exchange_batch(conn, buf, pixels, batch_start, count)

        if buf.has_unread:
            raise ReadTooMuchError(
                f"{buf.length - buf.read_pos} unexpected bytes after {count} replies"
            )

    conn.num_pixels_read += count
    return pixels


def _exchange_batch(
    conn: PixelflutConnection,
    buf: FramedBuffer,
    pixels: Sequence[Pixel],
    start: int,
    stop: int
) -> None:
    """Flush the pending requests for pixels[start:stop] and read their replies."""
    buf.flush(conn)
    logger.debug(f"Sent requests {start}..{stop - 1}, reading replies")

    for idx in range(start, stop):
        px = pixels[idx]
        x, y, r, g, b = decode_pixel(buf.line_advance(conn))
        if (x, y) != (px.x, px.y):
            raise UnexpectedCoordsError(
                f"reply {idx}: requested pixel ({px.x}, {px.y}) "
                f"but server answered ({x}, {y})",
                expected=(px.x, px.y),
                received=(x, y)
            )
        px.set_rgb(r, g, b)


def _reuse_for_requests(buf: FramedBuffer) -> None:
    """
    Hand the drained read buffer back to the request writer.

    Bytes still unread here cannot be replies to requests that have not
    been sent yet, and would be overwritten by them.
    """
    if buf.has_unread:
        raise ReadTooMuchError(
            f"{buf.length - buf.read_pos} unexpected bytes between batches"
        )
    buf.reset()
