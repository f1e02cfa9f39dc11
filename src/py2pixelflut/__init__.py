# py2pixelflut package
"""
Client library for the pixelflut line protocol.

Quick start:
    >>> from py2pixelflut import open_connection, get_size, Pixel, put_pixels
    >>> conn = open_connection("127.0.0.1", "1234")
    >>> width, height = get_size(conn)
    >>> put_pixels(conn, [Pixel(0, 0, 255, 0, 0)], bytearray(4096))
    >>> conn.close()
"""

__version__ = "0.1.0"

from .core.errors import (
    PixelflutError,
    TransportError,
    ProtocolError,
    ValidationError,
    InvalidStateError,
    InvalidArgumentError,
    AddressParseError,
    PortParseError,
    SocketCreateError,
    ConnectError,
    WriteError,
    WriteReturnedZeroError,
    ReadError,
    ReadReturnedZeroError,
    ReadTooMuchError,
    UnexpectedCoordsError,
    BufferSizeError,
    ConfigurationError,
    ErrorCodes,
    error_message,
)
from .core.protocol import MIN_BUFFER_SIZE
from .core.tcp_connection import PixelflutConnection, open_connection, disconnect
from .models.pixel import Pixel
from .services.canvas_service import get_size, put_pixel, get_pixel
from .services.bulk_service import put_pixels, get_pixels
from .client import PixelflutClient

__all__ = [
    "PixelflutError",
    "TransportError",
    "ProtocolError",
    "ValidationError",
    "InvalidStateError",
    "InvalidArgumentError",
    "AddressParseError",
    "PortParseError",
    "SocketCreateError",
    "ConnectError",
    "WriteError",
    "WriteReturnedZeroError",
    "ReadError",
    "ReadReturnedZeroError",
    "ReadTooMuchError",
    "UnexpectedCoordsError",
    "BufferSizeError",
    "ConfigurationError",
    "ErrorCodes",
    "error_message",
    "MIN_BUFFER_SIZE",
    "PixelflutConnection",
    "open_connection",
    "disconnect",
    "Pixel",
    "get_size",
    "put_pixel",
    "get_pixel",
    "put_pixels",
    "get_pixels",
    "PixelflutClient",
]
