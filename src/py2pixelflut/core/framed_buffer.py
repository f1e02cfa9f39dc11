"""
Framed byte buffer for the pixelflut line protocol.

A FramedBuffer wraps caller-owned storage (normally a ``bytearray``) and
tracks three offsets over it:

    0 <= read_pos <= length <= capacity

``length`` is how many bytes hold valid data and ``read_pos`` is the
boundary between consumed and unconsumed bytes. The same type is used on
both sides of a connection:

- Write side: commands are appended until the next one does not fit, then
  the buffer is flushed to the socket and emptied.
- Read side: line_advance() hands out newline-terminated lines, pulling
  more bytes from the socket only when no complete line is buffered. This
  decouples reply framing from TCP segment boundaries.

The buffer never allocates, resizes or keeps storage beyond its own
lifetime; reusing one bytearray across calls is up to the caller.
"""

import logging
from typing import TYPE_CHECKING, Union

from py2pixelflut.core.errors import (
    BufferSizeError,
    InvalidArgumentError,
    ProtocolError,
    ReadTooMuchError,
)
from py2pixelflut.core.protocol import MIN_BUFFER_SIZE

if TYPE_CHECKING:
    from py2pixelflut.core.tcp_connection import PixelflutConnection

logger = logging.getLogger(__name__)

NEWLINE = b"\n"


class FramedBuffer:
    """
    Bounded byte region with fill length and read cursor.

    Offsets are read-only from outside; only the buffer's own methods move
    them, so the ordering invariant cannot be broken by callers.

    Example:
        >>> storage = bytearray(4096)
        >>> buf = FramedBuffer(storage)
        >>> buf.append(conn, b"PX 1 2\\n")
        >>> buf.flush(conn)
    """

    def __init__(self, storage: Union[bytearray, memoryview]):
        """
        Args:
            storage: Writable byte storage of at least MIN_BUFFER_SIZE bytes

        Raises:
            InvalidArgumentError: If storage is None or not writable bytes
            BufferSizeError: If storage is smaller than MIN_BUFFER_SIZE
        """
        if storage is None:
            raise InvalidArgumentError("buffer must not be None", field_name='buffer')
        try:
            view = memoryview(storage)
        except TypeError:
            raise InvalidArgumentError(
                f"buffer must be a bytearray or writable memoryview, got {type(storage).__name__}",
                field_name='buffer'
            )
        if view.readonly:
            raise InvalidArgumentError("buffer must be writable", field_name='buffer')
        if view.ndim != 1 or view.itemsize != 1:
            view = view.cast('B')

        if view.nbytes < MIN_BUFFER_SIZE:
            raise BufferSizeError(
                f"buffer too small: {view.nbytes} bytes (minimum {MIN_BUFFER_SIZE})",
                field_name='buffer'
            )

        self._storage = storage
        self._view = view
        self._capacity = view.nbytes
        self._length = 0
        self._read_pos = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def length(self) -> int:
        return self._length

    @property
    def read_pos(self) -> int:
        return self._read_pos

    @property
    def free(self) -> int:
        """Bytes that can still be appended without flushing."""
        return self._capacity - self._length

    @property
    def has_unread(self) -> bool:
        return self._read_pos < self._length

    def reset(self) -> None:
        """Forget all buffered data."""
        self._length = 0
        self._read_pos = 0

    # ========== Write side ==========

    def append(self, conn: "PixelflutConnection", data: bytes) -> None:
        """
        Append data, flushing first if it does not fit.

        Raises:
            WriteError: If the flush fails
        """
        n = len(data)
        assert 0 < n <= self._capacity, n
        if self._capacity - self._length < n:
            self.flush(conn)
        self._view[self._length:self._length + n] = data
        self._length += n

    def flush(self, conn: "PixelflutConnection") -> None:
        """
        Write every buffered byte to the connection and empty the buffer.

        Raises:
            WriteError: If the write fails or makes no progress
        """
        if self._length:
            conn.write_all(self._view[:self._length])
        self.reset()

    # ========== Read side ==========

    def compact(self) -> None:
        """Move unread bytes to the front of the buffer."""
        unread = self._length - self._read_pos
        if self._read_pos and unread:
            self._view[:unread] = self._view[self._read_pos:self._length]
        self._length = unread
        self._read_pos = 0

    def line_advance(self, conn: "PixelflutConnection") -> bytes:
        """
        Return the next line (without its newline), reading as needed.

        Bytes already scanned are never scanned again, so the cost is linear
        in the reply size however the stream is fragmented.

        Raises:
            ProtocolError: If more than MIN_BUFFER_SIZE bytes arrive without
                           a newline, or the buffer fills up without one
            ReadError: If recv fails
            ReadReturnedZeroError: If the peer closed the connection
        """
        searched = 0
        while True:
            end = self._find_newline(self._read_pos + searched, self._length)
            if end >= 0:
                line = bytes(self._view[self._read_pos:end])
                self._read_pos = end + 1
                return line

            searched = self._length - self._read_pos
            if searched > MIN_BUFFER_SIZE:
                raise ProtocolError(
                    f"no newline after {searched} bytes from server",
                    line=bytes(self._view[self._read_pos:self._length])
                )

            self.compact()
            if self._length == self._capacity:
                raise ProtocolError(
                    f"reply line does not fit into {self._capacity}-byte buffer",
                    line=bytes(self._view[:self._length])
                )

            self._length += conn.read_into(self._view[self._length:])

    def _find_newline(self, start: int, end: int) -> int:
        if start >= end:
            return -1
        if isinstance(self._storage, bytearray):
            return self._storage.find(NEWLINE, start, end)
        index = bytes(self._view[start:end]).find(NEWLINE)
        return start + index if index >= 0 else -1


def read_single_line(conn: "PixelflutConnection", scratch: bytearray) -> bytes:
    """
    Read exactly one reply line with nothing following it.

    Raises:
        ReadTooMuchError: If the server sent more than one line
    """
    buf = FramedBuffer(scratch)
    line = buf.line_advance(conn)
    if buf.has_unread:
        raise ReadTooMuchError(
            f"{buf.length - buf.read_pos} unexpected bytes after reply",
            line=line
        )
    return line
