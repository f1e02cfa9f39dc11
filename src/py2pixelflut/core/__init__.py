"""
Core layer for pixelflut communication.

This package contains the error hierarchy, the line codec, the framed
byte buffer and the connection itself.
"""

from .errors import PixelflutError, ErrorCodes, error_message
from .protocol import MIN_BUFFER_SIZE, MAX_COMMAND_LENGTH
from .framed_buffer import FramedBuffer, read_single_line
from .tcp_connection import PixelflutConnection, open_connection, disconnect

__all__ = [
    'PixelflutError',
    'ErrorCodes',
    'error_message',
    'MIN_BUFFER_SIZE',
    'MAX_COMMAND_LENGTH',
    'FramedBuffer',
    'read_single_line',
    'PixelflutConnection',
    'open_connection',
    'disconnect',
]
